"""Builtin Registry — one namespace for every predicate and macro."""

from __future__ import annotations

from typing import Any, Callable, TYPE_CHECKING

from tasrun.builtins.schema import BuiltinKind, BuiltinSpec
from tasrun.exceptions import UnknownBuiltinError
from tasrun.types import Verdict

if TYPE_CHECKING:
    from tasrun.kernel.evaluator import Evaluator
    from tasrun.kernel.instructions import Builtin

BuiltinHandler = Callable[["Evaluator", "Builtin"], Any]


class BuiltinRegistry:
    """Central registry of all builtins a program may name.

    Predicates and macros share the namespace. Dispatch is by name
    only; a macro differs from a predicate solely by mutating the
    program and answering EXPANDED.
    """

    def __init__(self) -> None:
        self._builtins: dict[str, tuple[BuiltinSpec, BuiltinHandler]] = {}

    def register(self, spec: BuiltinSpec, handler: BuiltinHandler) -> None:
        self._builtins[spec.name] = (spec, handler)

    def __contains__(self, name: object) -> bool:
        return name in self._builtins

    def spec(self, name: str) -> BuiltinSpec | None:
        entry = self._builtins.get(name)
        return entry[0] if entry else None

    def list_builtins(self, kind: BuiltinKind | None = None) -> list[BuiltinSpec]:
        return [
            spec for spec, _ in self._builtins.values()
            if kind is None or spec.kind == kind
        ]

    def invoke(self, evaluator: Evaluator, instr: Builtin) -> Verdict:
        """Run a builtin by name and normalize its answer to a Verdict."""
        entry = self._builtins.get(instr.name)
        if entry is None:
            raise UnknownBuiltinError(f"No builtin with name '{instr.name}'")

        _, handler = entry
        result = handler(evaluator, instr)
        if isinstance(result, Verdict):
            return result
        return Verdict.SATISFIED if result else Verdict.NOT_YET_SATISFIED


def default_registry() -> BuiltinRegistry:
    """Registry holding every builtin tasrun ships with."""
    from tasrun.builtins.macros import register_macros
    from tasrun.builtins.predicates import register_predicates

    registry = BuiltinRegistry()
    register_predicates(registry)
    register_macros(registry)
    return registry
