"""Program — the mutable instruction arena the sequencer walks.

A program is an ordered list of Steps, each an (inputs, condition)
pair. The file encoding is flat: an input string is followed by its
condition cell; a condition written where an input is expected is a
standalone Step with no inputs (how macros are usually written).
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Iterable, TYPE_CHECKING

from tasrun.builtins.schema import ParamKind
from tasrun.exceptions import InvalidInstructionError
from tasrun.kernel.instructions import (
    Builtin,
    Countdown,
    FLAG_NAMES,
    FlagToggle,
    INSTRUCTION_TYPES,
    Instruction,
    Native,
)
from tasrun.types import InputSet, NO_INPUT, parse_inputs

if TYPE_CHECKING:
    from tasrun.builtins.registry import BuiltinRegistry


@dataclass
class Step:
    inputs: InputSet
    condition: Instruction


class Program:
    """Steps addressed by index, plus the cursor into them."""

    def __init__(self, steps: Iterable[Step] | None = None) -> None:
        self._steps: list[Step] = list(steps or [])
        self.cursor = 0

    def __len__(self) -> int:
        return len(self._steps)

    def __getitem__(self, index: int) -> Step:
        return self._steps[index]

    @property
    def steps(self) -> list[Step]:
        return list(self._steps)

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self._steps)

    def current(self) -> Step | None:
        if self.exhausted:
            return None
        return self._steps[self.cursor]

    def advance(self) -> None:
        self.cursor += 1

    def splice(self, steps: Iterable[Step]) -> int:
        """Insert deep copies of `steps` right after the cursor."""
        fresh = [copy.deepcopy(s) for s in steps]
        at = self.cursor + 1
        self._steps[at:at] = fresh
        return len(fresh)


# ── Parsing ──────────────────────────────────────────────────────────────────


def parse_condition(raw: Any, registry: BuiltinRegistry | None = None) -> Instruction:
    """Turn one condition cell into an Instruction."""
    if isinstance(raw, INSTRUCTION_TYPES):
        return raw
    if isinstance(raw, bool):
        raise InvalidInstructionError(f"Invalid instruction: {raw!r}")
    if isinstance(raw, int):
        return Countdown(raw)
    if isinstance(raw, str):
        if raw in FLAG_NAMES:
            return FlagToggle(raw)
        return Builtin(raw, [])
    if callable(raw):
        return Native(raw)
    if isinstance(raw, (list, tuple)):
        if not raw:
            raise InvalidInstructionError("Empty instruction")
        head = raw[0]
        # inputs,{{c1},{c2}} is an implicit `then`
        if isinstance(head, (list, tuple)):
            return _build("then", list(raw), registry)
        if isinstance(head, bool):
            raise InvalidInstructionError(f"Invalid instruction: {head!r}")
        if isinstance(head, int):
            return Countdown(head)
        if isinstance(head, str):
            if head in FLAG_NAMES and len(raw) == 1:
                return FlagToggle(head)
            return _build(head, list(raw[1:]), registry)
        if isinstance(head, INSTRUCTION_TYPES) and len(raw) == 1:
            return head
        if callable(head):
            return Native(head)
    raise InvalidInstructionError(f"Invalid instruction: {raw!r}")


def parse_steps(raw: Iterable[Any], registry: BuiltinRegistry | None = None) -> list[Step]:
    """Turn a flat cell list (or a list of Steps) into Steps."""
    steps: list[Step] = []
    cells = iter(raw)
    for cell in cells:
        if isinstance(cell, Step):
            steps.append(cell)
        elif isinstance(cell, str) and cell in FLAG_NAMES:
            steps.append(Step(NO_INPUT, FlagToggle(cell)))
        elif isinstance(cell, str):
            try:
                condition = next(cells)
            except StopIteration:
                raise InvalidInstructionError(
                    f"Input {cell!r} has no condition after it"
                ) from None
            steps.append(Step(parse_inputs(cell), parse_condition(condition, registry)))
        else:
            steps.append(Step(NO_INPUT, parse_condition(cell, registry)))
    return steps


def _build(name: str, args: list[Any], registry: BuiltinRegistry | None) -> Builtin:
    spec = registry.spec(name) if registry is not None else None
    if spec is None:
        # Unknown names fail when evaluated, not when loaded
        return Builtin(name, args)

    # Legacy single-list form: ["then", [[c1], [c2]]]
    if (
        spec.variadic
        and len(args) == 1
        and isinstance(args[0], list)
        and args[0]
        and isinstance(args[0][0], (list, tuple))
    ):
        args = list(args[0])

    parsed = []
    for i, arg in enumerate(args):
        param = spec.param_for(i)
        parsed.append(_parse_arg(param.kind if param else ParamKind.VALUE, arg, registry))
    return Builtin(name, parsed)


def _parse_arg(kind: ParamKind, arg: Any, registry: BuiltinRegistry | None) -> Any:
    if arg is None:
        return None
    if kind == ParamKind.CONDITION:
        return parse_condition(arg, registry)
    if kind == ParamKind.STEPS:
        return parse_steps(arg, registry)
    if kind == ParamKind.INPUTS:
        return parse_inputs(arg)
    if kind == ParamKind.INPUT_CHOICES:
        return [parse_inputs(c) for c in arg]
    if kind == ParamKind.SCRIPT:
        return parse_script(arg)
    return arg


def parse_script(raw: Any) -> list[tuple[InputSet, int]]:
    """Alternating [inputs, repeat, inputs, repeat, ...] cells."""
    if raw and all(isinstance(e, (list, tuple)) and len(e) == 2 for e in raw):
        return [(parse_inputs(i), int(n)) for i, n in raw]
    cells = list(raw)
    if len(cells) % 2:
        raise InvalidInstructionError("Scripted input needs (inputs, repeat) pairs")
    return [
        (parse_inputs(cells[i]), int(cells[i + 1]))
        for i in range(0, len(cells), 2)
    ]
