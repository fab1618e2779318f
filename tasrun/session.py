"""Level session — wires the input VM to a host's per-tick events.

The host forwards its events here: level start, one input update per
tick, message boxes, player death and level exit. Everything a run
owns (program, cursor, overrides, optimizer session, recorder) is dropped
when the run is cancelled or the level starts again; flags and the
persisted optimizer record are not.
"""

from __future__ import annotations

import random
from typing import Iterable

import structlog

from tasrun.builtins.registry import BuiltinRegistry, default_registry
from tasrun.config import TasSettings, settings as default_settings
from tasrun.files.programs import LevelProgram, compile_program, load_program_file, program_path
from tasrun.files.recording import (
    Recorder,
    backup_path,
    load_recording,
    recording_path,
    recording_program,
    restore_backup,
    save_recording,
)
from tasrun.host import RunEndReason, RunReport, SimulationHost
from tasrun.kernel.evaluator import Evaluator, Flags
from tasrun.kernel.override import InputOverride, ScriptedOverride
from tasrun.kernel.sequencer import Sequencer, TickKind, TickOutcome
from tasrun.optimizer.search import ParameterOptimizer
from tasrun.optimizer.state import OptimizerStore
from tasrun.types import Key, SectionId

logger = structlog.get_logger()


class TasSession:
    """One level's worth of automation against a host simulation."""

    def __init__(
        self,
        host: SimulationHost,
        level: str = "",
        registry: BuiltinRegistry | None = None,
        store: OptimizerStore | None = None,
        config: TasSettings | None = None,
        flags: Flags | None = None,
    ) -> None:
        self.host = host
        self.level = level
        self.config = config or default_settings
        self.registry = registry or default_registry()
        self.rng = random.Random(self.config.default_seed)

        self.evaluator = Evaluator(self.registry, host, flags=flags, rng=self.rng)
        self.sequencer = Sequencer(self.evaluator, host.write_keys)
        self.scripted = ScriptedOverride(
            self.sequencer.override,
            interval=self.config.scripted_interval_ticks,
            initial_delay=self.config.scripted_initial_delay,
        )
        self.evaluator.scripted = self.scripted

        self.store = store or OptimizerStore(self.config.optimizer_state_path)
        self.store.load()
        self.optimizer = ParameterOptimizer(self.evaluator, self.store, self._end_run)
        self.sequencer.optimizer = self.optimizer

        self.recorder = Recorder()
        self.program: LevelProgram | None = None
        self.seed = self.config.default_seed
        self._section: SectionId | None = None
        self._recorded_new_inputs = False
        self._ended_level = False

    @property
    def flags(self) -> Flags:
        return self.evaluator.flags

    @property
    def override(self) -> InputOverride:
        return self.sequencer.override

    @property
    def survives_death(self) -> bool:
        """Keep ticking through a death so `dead` can be evaluated."""
        return self.flags.ignore_death or self.optimizer.running

    # ── Host events ──────────────────────────────────────────────

    def on_start(self) -> None:
        """Load the level's program (or recording) and fix the RNG seeds."""
        self._reset_run()
        runs_dir = self.config.runs_dir
        program_file = load_program_file(program_path(self.level, runs_dir))
        self.program = compile_program(program_file, self.registry, self.config.default_seed)

        if self.config.playback_inputs:
            self._load_playback()

        if self.program.is_global:
            self.sequencer.load(self.program.steps)

        self.seed = self.program.seed
        self.rng.seed(self.program.seed)
        self.host.seed_rng(self.program.seed, self.program.legacy_seed)
        logger.info(
            "session.started",
            level=self.level,
            seed=self.program.seed,
            is_global=self.program.is_global,
            sections=sorted(self.program.sections),
        )

    def load_program(self, program: LevelProgram) -> None:
        """Install an already compiled program without touching the disk."""
        self.program = program
        self._section = None
        self.sequencer.load(program.steps if program.is_global else None)

    def on_input_update(self) -> TickOutcome | None:
        """The once-per-tick entry point."""
        player = self.host.snapshot()
        paused = self.host.is_paused()

        if self.program is not None and not self.program.is_global:
            if player.section != self._section:
                self._section = player.section
                self.sequencer.load(self.program.for_section(player.section))
                logger.debug("session.section", section=player.section)

        self.scripted.tick(paused)

        if player.dead and not self.survives_death:
            return None

        if self.config.record_inputs and self.host.held_keys():
            # The player took over; playback stays off until the level reloads
            self._recorded_new_inputs = True

        outcome = None
        if not self._recorded_new_inputs and self.sequencer.program is not None:
            outcome = self.sequencer.step(paused)

        if self.config.record_inputs and (outcome is None or outcome.kind is not TickKind.PAUSED):
            self.recorder.record(player.section, self.host.held_keys())

        self.evaluator.message_box = False
        return outcome

    def on_message_box(self) -> None:
        self.evaluator.message_box = True

    def on_player_killed(self) -> None:
        self.on_end_level()
        if self.config.restart_on_death and not self.survives_death:
            self._end_run(RunReport(reason=RunEndReason.PLAYER_DIED, message="Player died"))

    def on_level_exit(self, won: bool = False) -> None:
        if won:
            logger.info("session.succeeded", level=self.level, seed=self.seed)
        self.on_end_level()
        self.cancel()

    def on_end_level(self) -> None:
        """Save the recording, at most once per level load."""
        if not (self.config.record_inputs and self._recorded_new_inputs and not self._ended_level):
            return
        self.recorder.finalize()
        save_recording(recording_path(self.level, self.config.runs_dir), self.recorder.to_file())
        self._ended_level = True
        self._recorded_new_inputs = False

    def cancel(self) -> None:
        """Abort the run: program, overrides and optimizer session go away."""
        self.sequencer.clear()
        self.scripted.clear()
        self.optimizer.reset()
        self.program = None
        self._section = None

    # ── Level code API ───────────────────────────────────────────

    def override_input(
        self,
        replace: str | Iterable[Key] | None = None,
        duration: int = 1,
        *,
        add: str | Iterable[Key] = "",
        subtract: str | Iterable[Key] = "",
    ) -> None:
        """Force the input for `duration` ticks.

        override_input("rj") replaces the input for one tick;
        override_input(add="j", subtract="r", duration=3) edits the
        active Step's input instead.
        """
        if replace is not None:
            self.override.set(replace, duration)
        else:
            self.override.modify(add=add, subtract=subtract, duration=duration)

    # ── Internals ────────────────────────────────────────────────

    def _reset_run(self) -> None:
        """Everything `cancel` drops, plus the recorder and its save markers."""
        self.cancel()
        self.recorder.clear()
        self._recorded_new_inputs = False
        self._ended_level = False

    def _load_playback(self) -> None:
        runs_dir = self.config.runs_dir
        path = recording_path(self.level, runs_dir)
        backup = backup_path(runs_dir)
        if self.config.restore_backup_recording:
            if not restore_backup(path, backup):
                return
            # Never overwrite a freshly restored take in this level load
            self._ended_level = True
            logger.warning("session.backup_restored", path=str(path))
        recording = load_recording(path, backup=backup)
        self.program = LevelProgram(
            sections=recording_program(recording),
            seed=self.program.seed,
            legacy_seed=self.program.legacy_seed,
        )

    def _end_run(self, report: RunReport) -> None:
        logger.info(
            "session.run_ended",
            reason=report.reason.value,
            message=report.message,
            value=report.value,
            history=report.history,
        )
        self.host.end_run(report)
