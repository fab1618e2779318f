"""Optimizer state persistence — the bounds that survive restarts.

Each run tests a single candidate duration, so the search only
converges across many runs. The record is loaded when the process
starts and saved after every change, by default to
__runs/optimization.json.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from tasrun.config import settings

logger = logging.getLogger(__name__)


class OptimizationRecord(BaseModel):
    """The persisted half of an optimization."""

    lo_bound: int | None = None
    hi_bound: int | None = None
    mid_value: int | None = None
    history: list[int] = Field(default_factory=list)
    last_saved: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def converged(self) -> bool:
        return self.lo_bound is not None and self.lo_bound == self.hi_bound

    @property
    def exhausted(self) -> bool:
        return (
            self.lo_bound is not None
            and self.hi_bound is not None
            and self.lo_bound > self.hi_bound
        )


class OptimizerStore:
    """Explicit persistence handle for the optimization record."""

    def __init__(self, save_path: Path | str | None = None) -> None:
        self._path = Path(save_path) if save_path else settings.optimizer_state_path
        self._record = OptimizationRecord()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def record(self) -> OptimizationRecord:
        return self._record

    def save(self) -> None:
        """Persist the current record to disk."""
        self._record.last_saved = datetime.now(timezone.utc).isoformat()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self._record.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Optimization state saved to %s", self._path)

    def load(self) -> bool:
        """Load the record from disk. Returns True if loaded successfully."""
        if not self._path.exists():
            return False
        try:
            raw = self._path.read_text(encoding="utf-8")
            self._record = OptimizationRecord.model_validate_json(raw)
        except Exception as e:
            logger.warning("Failed to load optimization state: %s", e)
            self._record = OptimizationRecord()
            return False
        logger.info(
            "Loaded optimization state: lo=%s hi=%s, %d probes",
            self._record.lo_bound,
            self._record.hi_bound,
            len(self._record.history),
        )
        return True

    def clear(self) -> None:
        """Forget all bounds and history, on disk as well."""
        self._record = OptimizationRecord()
        self.save()
        logger.info("Optimization data cleared")
