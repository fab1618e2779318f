"""Host interface — what tasrun needs from the simulation it drives.

The simulation itself lives outside tasrun. A host adapter exposes a
read-only snapshot of the player, a sink for the keys held this tick,
and a way to end the current run (restart or exit the level).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, Field

from tasrun.exceptions import OverlayUnavailableError
from tasrun.types import InputSet, SectionId


class PlayerSnapshot(BaseModel):
    """Live player state for one tick."""

    x: float = 0.0
    y: float = 0.0
    speed_x: float = 0.0
    speed_y: float = 0.0
    on_ground: bool = False
    in_water: bool = False
    climbing: bool = False
    forced_state: bool = False
    dead: bool = False
    standing_on_npc: bool = False
    holding_npc: bool = False
    section: SectionId = 0

    model_config = {"frozen": True}


class OverlaySnapshot(BaseModel):
    """Player state on the overlay (map screen) simulation."""

    x: float = 0.0
    y: float = 0.0
    state: int = 0

    model_config = {"frozen": True}


class RunEndReason(str, Enum):
    PROBED = "probed"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    PLAYER_DIED = "player_died"


class RunReport(BaseModel):
    """Carried by the termination signal when tasrun ends a run."""

    reason: RunEndReason
    message: str = ""
    value: int | None = None
    history: list[int] = Field(default_factory=list)


class OverlayHost(ABC):
    @abstractmethod
    def snapshot(self) -> OverlaySnapshot: ...


class SimulationHost(ABC):
    """Adapter between tasrun and a running simulation."""

    @abstractmethod
    def snapshot(self) -> PlayerSnapshot: ...

    @abstractmethod
    def is_paused(self) -> bool: ...

    @abstractmethod
    def write_keys(self, keys: InputSet) -> None:
        """Hold exactly `keys` for the current tick."""

    @abstractmethod
    def held_keys(self) -> InputSet:
        """Keys actually held this tick, whoever pressed them."""

    @abstractmethod
    def end_run(self, report: RunReport) -> None:
        """Restart or exit the level."""

    def load_overlay(self) -> OverlayHost:
        raise OverlayUnavailableError(
            f"{type(self).__name__} has no overlay simulation"
        )

    def seed_rng(self, seed: int, legacy_seed: int) -> None:
        pass
