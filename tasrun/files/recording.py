"""Input recordings — run-length encoded logs of what was held each tick.

Format: {runs_dir}/{level}.rec

    {"version": 0, "sections": {"0": ["r", 3, "", 2, "rj", 1]}}

Cells use the program encoding: an input string, then the number of
ticks it was held as a Countdown. A recording therefore plays back as
an ordinary section-keyed program. Every playback also writes a plain
duplicate to {runs_dir}/latest.rec.bak so a take can be recovered.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

import orjson
from pydantic import BaseModel, Field, ValidationError

from tasrun.config import settings
from tasrun.exceptions import ProgramFileError
from tasrun.files.programs import level_stem
from tasrun.kernel.instructions import Countdown
from tasrun.kernel.program import Step, parse_steps
from tasrun.types import InputSet, SectionId, format_inputs, parse_inputs

_logger = logging.getLogger(__name__)

RECORDING_VERSION = 0


class RecordingFile(BaseModel):
    version: int = RECORDING_VERSION
    sections: dict[SectionId, list[Any]] = Field(default_factory=dict)


class Recorder:
    """Accumulates per-section input runs as the level is played."""

    def __init__(self) -> None:
        self._runs: dict[SectionId, list[list[Any]]] = {}
        self.last_section: SectionId | None = None

    @property
    def empty(self) -> bool:
        return not any(self._runs.values())

    def record(self, section: SectionId, keys: InputSet) -> bool:
        """Append one tick. Returns True if any input was held."""
        runs = self._runs.setdefault(section, [])
        codes = format_inputs(keys)
        if runs and runs[-1][0] == codes:
            runs[-1][1] += 1
        else:
            runs.append([codes, 1])
        self.last_section = section
        return bool(keys)

    def runs(self, section: SectionId) -> list[tuple[InputSet, int]]:
        return [(parse_inputs(codes), n) for codes, n in self._runs.get(section, [])]

    def finalize(self) -> None:
        """Trim a trailing idle run in the last section to a single tick."""
        if self.last_section is None:
            return
        runs = self._runs.get(self.last_section)
        if runs and runs[-1][0] == "":
            runs[-1][1] = 1

    def to_file(self) -> RecordingFile:
        return RecordingFile(
            sections={
                section: [cell for run in runs for cell in run]
                for section, runs in self._runs.items()
            }
        )

    def clear(self) -> None:
        self._runs.clear()
        self.last_section = None


# ── Encoding ─────────────────────────────────────────────────────────────────


def encode_log(log: Iterable[InputSet]) -> list[Any]:
    """Run-length encode a tick-by-tick input log into flat cells."""
    cells: list[Any] = []
    for keys in log:
        codes = format_inputs(keys)
        if cells and cells[-2] == codes:
            cells[-1] += 1
        else:
            cells.extend([codes, 1])
    return cells


def decode_steps(cells: Iterable[Any]) -> list[Step]:
    steps = parse_steps(cells)
    for step in steps:
        if not isinstance(step.condition, Countdown):
            raise ProgramFileError("Recordings may only contain countdown steps")
    return steps


def expand_steps(steps: Iterable[Step]) -> list[InputSet]:
    """The tick-by-tick inputs a list of countdown Steps plays back as."""
    log: list[InputSet] = []
    for step in steps:
        log.extend([step.inputs] * step.condition.remaining)
    return log


# ── Files ────────────────────────────────────────────────────────────────────


def recording_path(level: str, runs_dir: Path | None = None) -> Path:
    return (runs_dir or settings.runs_dir) / f"{level_stem(level)}.rec"


def backup_path(runs_dir: Path | None = None) -> Path:
    return (runs_dir or settings.runs_dir) / settings.backup_filename


def save_recording(path: Path, recording: RecordingFile) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(
        orjson.dumps(recording.model_dump(), option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS)
    )
    _logger.info("Recording saved to %s", path)


def load_recording(path: Path, backup: Path | None = None) -> RecordingFile:
    """Read a recording; a missing file is an empty recording.

    When `backup` is given the raw file is duplicated there first.
    """
    if not path.exists():
        _logger.info("No recording at %s", path)
        return RecordingFile()
    raw = path.read_bytes()
    if backup is not None:
        backup.parent.mkdir(parents=True, exist_ok=True)
        backup.write_bytes(raw)
    try:
        return RecordingFile.model_validate(orjson.loads(raw))
    except (orjson.JSONDecodeError, ValidationError) as e:
        raise ProgramFileError(f"Malformed recording {path}: {e}") from e


def restore_backup(path: Path, backup: Path) -> bool:
    """Copy the backup over a level's recording. False if there is no backup."""
    if not backup.exists():
        _logger.warning("Unable to restore backup: %s not found", backup)
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(backup.read_bytes())
    _logger.info("Backup %s restored to %s", backup, path)
    return True


def recording_program(recording: RecordingFile) -> dict[SectionId, list[Step]]:
    return {section: decode_steps(cells) for section, cells in recording.sections.items()}

