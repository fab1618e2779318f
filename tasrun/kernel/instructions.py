"""Instructions — the tagged values that decide when a Step is done."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, TypeAlias, Union

from tasrun.types import format_inputs

FLAG_NAMES: tuple[str, ...] = ("ignorePause", "ignoreDeath")


@dataclass
class Countdown:
    """Holds for `remaining` evaluations, then is satisfied once."""

    remaining: int

    def tick(self) -> bool:
        current = self.remaining
        self.remaining -= 1
        return current == 0


@dataclass
class FlagToggle:
    name: str


@dataclass
class Builtin:
    name: str
    args: list[Any] = field(default_factory=list)


@dataclass
class Native:
    """A Python predicate embedded directly in the program."""

    fn: Callable[[Any], bool]
    label: str = ""


Instruction: TypeAlias = Union[Countdown, FlagToggle, Builtin, Native]

INSTRUCTION_TYPES = (Countdown, FlagToggle, Builtin, Native)


def describe(instr: Any) -> str:
    """Short human-readable rendering, used in logs and the CLI."""
    if isinstance(instr, Countdown):
        return str(instr.remaining)
    if isinstance(instr, FlagToggle):
        return instr.name
    if isinstance(instr, Native):
        return f"<native {instr.label or getattr(instr.fn, '__name__', '?')}>"
    if isinstance(instr, Builtin):
        if not instr.args:
            return instr.name
        return f"{instr.name}({', '.join(_describe_arg(a) for a in instr.args)})"
    return repr(instr)


def _describe_arg(arg: Any) -> str:
    if isinstance(arg, INSTRUCTION_TYPES):
        return describe(arg)
    if isinstance(arg, list):
        return f"[{len(arg)} items]"
    if isinstance(arg, frozenset):
        return repr(format_inputs(arg))
    return repr(arg)
