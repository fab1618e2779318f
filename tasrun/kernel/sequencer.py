"""Sequencer — the fetch-execute loop of the input VM.

Called once per host tick. Zero-length Steps and macro expansions
chain inside a single call; the loop stops at the first Step whose
condition is not yet satisfied and commits that Step's inputs.

A program whose macros keep expanding without ever reaching a held
Step never returns from `step`. That is an authoring error in the
program and is not guarded against here.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, TYPE_CHECKING

from tasrun.exceptions import InvalidInstructionError
from tasrun.kernel.evaluator import Evaluator
from tasrun.kernel.instructions import describe
from tasrun.kernel.override import InputOverride
from tasrun.kernel.program import Program, Step
from tasrun.types import InputSet, NO_INPUT, Verdict

if TYPE_CHECKING:
    from tasrun.optimizer.search import ParameterOptimizer

_logger = logging.getLogger(__name__)

KeySink = Callable[[InputSet], None]


class TickKind(str, Enum):
    COMMITTED = "committed"
    OVERRIDDEN = "overridden"
    PAUSED = "paused"
    EXHAUSTED = "exhausted"
    IDLE = "idle"
    ENDED = "ended"


@dataclass(frozen=True)
class TickOutcome:
    kind: TickKind
    keys: InputSet = NO_INPUT


class Sequencer:
    """Owns the program and its cursor; commits at most one input per tick."""

    def __init__(
        self,
        evaluator: Evaluator,
        sink: KeySink,
        override: InputOverride | None = None,
    ) -> None:
        self._evaluator = evaluator
        self._sink = sink
        self.override = override or InputOverride(self.current_inputs)
        self.optimizer: ParameterOptimizer | None = None
        self.program: Program | None = None
        self.commits = 0
        evaluator.sequencer = self

    # ── Program management ───────────────────────────────────────

    def load(self, steps: Iterable[Step] | None) -> None:
        """Install a fresh deep copy of `steps`, cursor at the start."""
        if steps is None:
            self.program = None
            return
        self.program = Program(copy.deepcopy(list(steps)))
        _logger.debug("Program loaded with %d steps", len(self.program))

    def clear(self) -> None:
        self.program = None
        self.override.clear()

    def splice(self, steps: Iterable[Step]) -> int:
        if self.program is None:
            raise InvalidInstructionError("No program loaded to expand into")
        return self.program.splice(steps)

    def current_inputs(self) -> InputSet:
        if self.program is None:
            return NO_INPUT
        step = self.program.current()
        return step.inputs if step else NO_INPUT

    @property
    def exhausted(self) -> bool:
        return self.program is not None and self.program.exhausted

    # ── The tick ─────────────────────────────────────────────────

    def step(self, paused: bool = False) -> TickOutcome:
        ev = self._evaluator
        if paused and not ev.flags.ignore_pause:
            return TickOutcome(TickKind.PAUSED)

        ev.begin_tick()

        if self.override.active:
            keys = self.override.tick()
            self._sink(keys)
            return TickOutcome(TickKind.OVERRIDDEN, keys)

        # Optimizer outcomes are checked once per tick, before the program
        if self.optimizer is not None and self.optimizer.running:
            if self.optimizer.classify() is not None:
                return TickOutcome(TickKind.ENDED)

        program = self.program
        if program is None:
            return TickOutcome(TickKind.IDLE)

        while not program.exhausted:
            current = program.current()
            verdict = ev.evaluate(current.condition)
            if verdict is Verdict.NOT_YET_SATISFIED:
                self._sink(current.inputs)
                self.commits += 1
                return TickOutcome(TickKind.COMMITTED, current.inputs)
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "step %d %s -> %s", program.cursor, describe(current.condition), verdict.value
                )
            # SATISFIED moves to the next Step; EXPANDED moves past the
            # macro's own Step into whatever it just inserted
            program.advance()

        self._sink(NO_INPUT)
        return TickOutcome(TickKind.EXHAUSTED)
