"""Shared test fixtures — FakeHost for driving the VM without a simulation."""

from __future__ import annotations

import pytest

from tasrun.builtins.registry import default_registry
from tasrun.exceptions import OverlayUnavailableError
from tasrun.host import OverlayHost, OverlaySnapshot, PlayerSnapshot, RunReport, SimulationHost
from tasrun.kernel.evaluator import Evaluator
from tasrun.kernel.sequencer import Sequencer
from tasrun.optimizer.state import OptimizerStore
from tasrun.types import InputSet, NO_INPUT


class FakeOverlay(OverlayHost):
    def __init__(self, snapshot: OverlaySnapshot):
        self.current = snapshot

    def snapshot(self) -> OverlaySnapshot:
        return self.current


class FakeHost(SimulationHost):
    """Host whose player state the test sets directly. No physics."""

    def __init__(self, player: PlayerSnapshot | None = None):
        self.player = player or PlayerSnapshot()
        self.paused = False
        self.written: list[InputSet] = []
        self.pressed: InputSet = NO_INPUT  # keys the "human" holds
        self.reports: list[RunReport] = []
        self.overlay: OverlaySnapshot | None = None
        self.overlay_loads = 0
        self.seeds: tuple[int, int] | None = None
        self._tick_keys: InputSet = NO_INPUT

    def snapshot(self) -> PlayerSnapshot:
        return self.player

    def is_paused(self) -> bool:
        return self.paused

    def write_keys(self, keys: InputSet) -> None:
        self.written.append(keys)
        self._tick_keys = keys

    def held_keys(self) -> InputSet:
        return self._tick_keys | self.pressed

    def end_run(self, report: RunReport) -> None:
        self.reports.append(report)

    def load_overlay(self) -> OverlayHost:
        if self.overlay is None:
            raise OverlayUnavailableError("no overlay in this test")
        self.overlay_loads += 1
        return FakeOverlay(self.overlay)

    def seed_rng(self, seed: int, legacy_seed: int) -> None:
        self.seeds = (seed, legacy_seed)

    # ── Test helpers ─────────────────────────────────────────────

    def move(self, **changes) -> None:
        self.player = self.player.model_copy(update=changes)

    def end_tick(self) -> None:
        self._tick_keys = NO_INPUT


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def evaluator(registry, host):
    return Evaluator(registry, host)


@pytest.fixture
def sequencer(evaluator, host):
    return Sequencer(evaluator, host.write_keys)


@pytest.fixture
def store(tmp_path):
    return OptimizerStore(tmp_path / "optimization.json")


@pytest.fixture
def make_host():
    return FakeHost
