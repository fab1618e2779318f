"""Condition Evaluator — turns one Instruction into a Verdict.

The evaluator is also the context every builtin receives: it exposes
the live player snapshot, the lazily loaded overlay, the one-shot
flags, the engine RNG and the sequencer's splice primitive.
"""

from __future__ import annotations

import logging
import operator
import random
from dataclasses import dataclass
from typing import Any, Callable, Iterable, TYPE_CHECKING

from tasrun.builtins.registry import BuiltinRegistry
from tasrun.exceptions import InvalidComparatorError, InvalidInstructionError
from tasrun.host import OverlayHost, OverlaySnapshot, PlayerSnapshot, SimulationHost
from tasrun.kernel.instructions import Builtin, Countdown, FlagToggle, Instruction, Native
from tasrun.kernel.program import Step, parse_condition, parse_steps
from tasrun.types import InputSet, NO_INPUT, Verdict

if TYPE_CHECKING:
    from tasrun.kernel.override import ScriptedOverride
    from tasrun.kernel.sequencer import Sequencer
    from tasrun.optimizer.search import ParameterOptimizer

_logger = logging.getLogger(__name__)

# The closed comparator set; "~=" is "not equal"
COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "~=": operator.ne,
    "!=": operator.ne,
    ">=": operator.ge,
    ">": operator.gt,
}


def validate_comparator(token: Any) -> Callable[[Any, Any], bool]:
    if not isinstance(token, str):
        raise InvalidComparatorError(f"Comparator must be a string, got {token!r}")
    fn = COMPARATORS.get(token)
    if fn is None:
        raise InvalidComparatorError(f"Invalid comparator '{token}'")
    return fn


@dataclass
class Flags:
    """One-shot booleans toggled by FlagToggle instructions."""

    ignore_pause: bool = False
    ignore_death: bool = False

    _ATTRS = {"ignorePause": "ignore_pause", "ignoreDeath": "ignore_death"}

    def toggle(self, name: str) -> bool:
        attr = self._ATTRS.get(name)
        if attr is None:
            raise InvalidInstructionError(f"Unknown flag '{name}'")
        value = not getattr(self, attr)
        setattr(self, attr, value)
        return value


class Evaluator:
    def __init__(
        self,
        registry: BuiltinRegistry,
        host: SimulationHost,
        flags: Flags | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.registry = registry
        self.flags = flags or Flags()
        self.rng = rng or random.Random()
        self.message_box = False

        # Wired in by the components that own them
        self.sequencer: Sequencer | None = None
        self.optimizer: ParameterOptimizer | None = None
        self.scripted: ScriptedOverride | None = None

        self._host = host
        self._player: PlayerSnapshot | None = None
        self._overlay_host: OverlayHost | None = None
        self._overlay: OverlaySnapshot | None = None

    # ── Live state ───────────────────────────────────────────────

    def begin_tick(self) -> None:
        """Forget the cached snapshots; the next read sees this tick."""
        self._player = None
        self._overlay = None

    @property
    def player(self) -> PlayerSnapshot:
        if self._player is None:
            self._player = self._host.snapshot()
        return self._player

    @property
    def overlay(self) -> OverlaySnapshot:
        if self._overlay_host is None:
            self._overlay_host = self._host.load_overlay()
            _logger.info("Overlay simulation loaded")
        if self._overlay is None:
            self._overlay = self._overlay_host.snapshot()
        return self._overlay

    # ── Evaluation ───────────────────────────────────────────────

    def evaluate(self, instr: Instruction | Any) -> Verdict:
        if not isinstance(instr, (Countdown, FlagToggle, Builtin, Native)):
            instr = self.parse_condition(instr)

        if isinstance(instr, Countdown):
            return Verdict.SATISFIED if instr.tick() else Verdict.NOT_YET_SATISFIED
        if isinstance(instr, FlagToggle):
            self.flags.toggle(instr.name)
            return Verdict.SATISFIED
        if isinstance(instr, Builtin):
            return self.registry.invoke(self, instr)
        return Verdict.SATISFIED if instr.fn(self) else Verdict.NOT_YET_SATISFIED

    def check(self, instr: Instruction | Any) -> bool:
        """Nested boolean form; an expansion counts as true."""
        return self.evaluate(instr) is not Verdict.NOT_YET_SATISFIED

    # ── Program access for macros ────────────────────────────────

    def parse_condition(self, raw: Any) -> Instruction:
        return parse_condition(raw, self.registry)

    def parse_steps(self, raw: Iterable[Any]) -> list[Step]:
        return parse_steps(raw, self.registry)

    def splice(self, steps: Iterable[Step]) -> int:
        if self.sequencer is None:
            raise InvalidInstructionError("No program to expand into")
        return self.sequencer.splice(self.parse_steps(steps))

    def current_inputs(self) -> InputSet:
        if self.sequencer is None:
            return NO_INPUT
        return self.sequencer.current_inputs()
