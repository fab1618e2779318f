"""Demo host — a tiny side-scrolling platformer to drive programs against.

Not a real game: one flat floor per section with optional pits, a
right-hand exit that moves the player into the next section, and just
enough physics (acceleration, friction, gravity, jumps) for the
predicates to have something to read. Used by `tasrun run` and the
integration tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tasrun.host import PlayerSnapshot, RunReport, SimulationHost
from tasrun.types import InputSet, Key, NO_INPUT, SectionId

_logger = logging.getLogger(__name__)

WALK_SPEED = 3.0
RUN_SPEED = 6.0
ACCEL = 0.5
FRICTION = 0.25
GRAVITY = 0.4
JUMP_SPEED = -7.0
FLOOR_Y = 0.0
DEATH_Y = 300.0


@dataclass
class Section:
    width: float = 800.0
    pits: list[tuple[float, float]] = field(default_factory=list)

    def has_floor(self, x: float) -> bool:
        return not any(lo <= x < hi for lo, hi in self.pits)


class ToyPlatformer(SimulationHost):
    def __init__(self, sections: list[Section] | None = None) -> None:
        self.sections = sections or [Section()]
        self.tick = 0
        self.paused = False
        self.reports: list[RunReport] = []
        self.finished = False
        self.won = False
        self.seed: int | None = None
        self._keys: InputSet = NO_INPUT
        self._reset()

    def _reset(self) -> None:
        self.section: SectionId = 0
        self.x = 0.0
        self.y = FLOOR_Y
        self.speed_x = 0.0
        self.speed_y = 0.0
        self.on_ground = True
        self.dead = False

    # ── SimulationHost ───────────────────────────────────────────

    def snapshot(self) -> PlayerSnapshot:
        return PlayerSnapshot(
            x=self.x,
            y=self.y,
            speed_x=self.speed_x,
            speed_y=self.speed_y,
            on_ground=self.on_ground,
            dead=self.dead,
            section=self.section,
        )

    def is_paused(self) -> bool:
        return self.paused

    def write_keys(self, keys: InputSet) -> None:
        self._keys = frozenset(keys)

    def held_keys(self) -> InputSet:
        return self._keys

    def end_run(self, report: RunReport) -> None:
        _logger.info("Run ended at tick %d: %s", self.tick, report.message)
        self.reports.append(report)
        self.finished = True

    def seed_rng(self, seed: int, legacy_seed: int) -> None:
        self.seed = seed

    # ── Simulation ───────────────────────────────────────────────

    def advance(self) -> None:
        """Apply this tick's keys, move the player, clear the keys."""
        keys = self._keys
        self._keys = NO_INPUT
        self.tick += 1
        if self.paused or self.dead:
            return

        top = RUN_SPEED if Key.RUN in keys or Key.ALT_RUN in keys else WALK_SPEED
        if Key.RIGHT in keys and Key.LEFT not in keys:
            self.speed_x = min(self.speed_x + ACCEL, top)
        elif Key.LEFT in keys and Key.RIGHT not in keys:
            self.speed_x = max(self.speed_x - ACCEL, -top)
        elif self.speed_x > 0:
            self.speed_x = max(self.speed_x - FRICTION, 0.0)
        else:
            self.speed_x = min(self.speed_x + FRICTION, 0.0)

        if self.on_ground and (Key.JUMP in keys or Key.ALT_JUMP in keys):
            self.speed_y = JUMP_SPEED
            self.on_ground = False

        self.x = max(self.x + self.speed_x, 0.0)
        self.speed_y += GRAVITY
        self.y += self.speed_y

        current = self.sections[self.section]
        if self.y >= FLOOR_Y and current.has_floor(self.x) and self.y - self.speed_y <= FLOOR_Y:
            self.y = FLOOR_Y
            self.speed_y = 0.0
            self.on_ground = True
        else:
            self.on_ground = False
        if self.y > DEATH_Y:
            self.dead = True
            return

        if self.x >= current.width:
            if self.section + 1 < len(self.sections):
                self.section += 1
                self.x = 0.0
            else:
                self.finished = True
                self.won = True
