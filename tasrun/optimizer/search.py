"""Parameter optimizer — tune how long an input must be held.

Finds the shortest (LO) or longest (HI) duration for which holding an
input satisfies a success condition without first tripping a failure
condition. While no upper bound is known the candidate doubles
(exponential probing); afterwards the interval is halved. Every run
tests one candidate; the bounds persist through OptimizerStore so the
search resumes after the host restarts the level or the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import structlog

from tasrun.exceptions import MissingOptimizerArgumentError
from tasrun.host import RunEndReason, RunReport
from tasrun.kernel.evaluator import Evaluator
from tasrun.kernel.instructions import Countdown, Instruction
from tasrun.kernel.program import Step
from tasrun.optimizer.state import OptimizationRecord, OptimizerStore
from tasrun.types import InputSet, OptimizationMode, parse_inputs

logger = structlog.get_logger()

_REQUIRED = ("input", "mode", "fail_low", "fail_high", "success")


class ProbeOutcome(str, Enum):
    TOO_LOW = "Too low!"
    TOO_HIGH = "Too high!"
    WITHIN_RANGE = "Within range!"


@dataclass
class OptimizationSession:
    """The half of an optimization rebuilt every time `optimize` runs."""

    inputs: InputSet
    mode: OptimizationMode
    fail_low: Instruction
    fail_high: Instruction
    success: Instruction


def next_candidate(record: OptimizationRecord, mode: OptimizationMode) -> int:
    lo = record.lo_bound or 0
    if record.hi_bound is None:
        return max(lo * 2, 1)
    total = lo + record.hi_bound
    if mode == OptimizationMode.LO:
        return total // 2
    return -(-total // 2)


def apply_outcome(record: OptimizationRecord, mode: OptimizationMode, outcome: ProbeOutcome) -> None:
    """Move the persisted bounds according to one classified probe."""
    mid = record.mid_value
    lo = record.lo_bound or 0
    if outcome == ProbeOutcome.TOO_LOW:
        if record.hi_bound is not None:
            record.lo_bound = mid + 1
        else:
            record.lo_bound = max(lo * 2, 1)
    elif outcome == ProbeOutcome.TOO_HIGH:
        record.hi_bound = mid - 1
    elif mode == OptimizationMode.LO:
        record.hi_bound = mid
    else:
        record.lo_bound = mid


class ParameterOptimizer:
    def __init__(
        self,
        evaluator: Evaluator,
        store: OptimizerStore,
        terminate: Callable[[RunReport], None],
    ) -> None:
        self._evaluator = evaluator
        self._store = store
        self._terminate = terminate
        self._session: OptimizationSession | None = None
        evaluator.optimizer = self

    @property
    def running(self) -> bool:
        return self._session is not None

    @property
    def record(self) -> OptimizationRecord:
        return self._store.record

    def start(self, args: list[Any]) -> int:
        """Begin one probe: pick a candidate and splice it into the program."""
        for i, name in enumerate(_REQUIRED):
            if i >= len(args) or args[i] is None:
                raise MissingOptimizerArgumentError(f"optimize: no {name} given")

        ev = self._evaluator
        session = OptimizationSession(
            inputs=parse_inputs(args[0]),
            mode=OptimizationMode.parse(args[1]),
            fail_low=ev.parse_condition(args[2]),
            fail_high=ev.parse_condition(args[3]),
            success=ev.parse_condition(args[4]),
        )

        record = self._store.record
        if record.lo_bound is None:
            record.lo_bound = int(args[5]) if len(args) > 5 and args[5] is not None else 0
        if record.hi_bound is None and len(args) > 6 and args[6] is not None:
            record.hi_bound = int(args[6])

        mid = next_candidate(record, session.mode)
        record.mid_value = mid
        record.history.append(mid)
        self._store.save()

        ev.splice([Step(session.inputs, Countdown(mid))])
        self._session = session
        logger.info(
            "optimizer.probe",
            candidate=mid,
            lo=record.lo_bound,
            hi=record.hi_bound,
            mode=session.mode.value,
        )
        return mid

    def classify(self) -> RunReport | None:
        """Check the outcome conditions; a match ends the run."""
        session = self._session
        if session is None:
            return None

        ev = self._evaluator
        if ev.check(session.fail_low):
            outcome = ProbeOutcome.TOO_LOW
        elif ev.check(session.fail_high):
            outcome = ProbeOutcome.TOO_HIGH
        elif ev.check(session.success):
            outcome = ProbeOutcome.WITHIN_RANGE
        else:
            return None

        record = self._store.record
        apply_outcome(record, session.mode, outcome)
        self._store.save()
        self._session = None

        report = self._report(record, outcome)
        logger.info(
            "optimizer.classified",
            outcome=outcome.value,
            reason=report.reason.value,
            lo=record.lo_bound,
            hi=record.hi_bound,
        )
        self._terminate(report)
        return report

    def reset(self) -> None:
        """Drop the session; persisted bounds are kept."""
        self._session = None

    def clear_data(self) -> None:
        self._store.clear()

    def _report(self, record: OptimizationRecord, outcome: ProbeOutcome) -> RunReport:
        history = list(record.history)
        if record.converged:
            return RunReport(
                reason=RunEndReason.CONVERGED,
                message=f"Optimal time: {record.lo_bound} ticks",
                value=record.lo_bound,
                history=history,
            )
        if record.exhausted:
            return RunReport(
                reason=RunEndReason.EXHAUSTED,
                message="Options for time value exhausted",
                history=history,
            )
        return RunReport(
            reason=RunEndReason.PROBED,
            message=f"{outcome.value} {record.mid_value} ticks",
            value=record.mid_value,
            history=history,
        )
