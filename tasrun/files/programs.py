"""Program files — the per-level input programs, stored as JSON.

Format: {runs_dir}/{level}.json

    {"global": false, "seed": 1234, "legacySeed": 99,
     "sections": {"0": ["rn", ["x", ">=", 512], ...]}}

With "global": true the program lives under "steps" and runs for the
whole level; otherwise each section has its own program, swapped in
whenever the player enters that section.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, Field, ValidationError

from tasrun.builtins.registry import BuiltinRegistry
from tasrun.config import settings
from tasrun.exceptions import ProgramFileError
from tasrun.kernel.program import Step, parse_steps
from tasrun.types import SectionId

_logger = logging.getLogger(__name__)

_EXTENSIONS = (".lvlx", ".lvl")


class ProgramFile(BaseModel):
    """A program file as it sits on disk."""

    is_global: bool = Field(False, alias="global")
    seed: int | None = None
    legacy_seed: int | None = Field(None, alias="legacySeed")
    steps: list[Any] = Field(default_factory=list)
    sections: dict[SectionId, list[Any]] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


@dataclass
class LevelProgram:
    """A program file parsed into Steps, ready for the sequencer."""

    is_global: bool = False
    steps: list[Step] = field(default_factory=list)
    sections: dict[SectionId, list[Step]] = field(default_factory=dict)
    seed: int = 8675309
    legacy_seed: int = 8675309

    def for_section(self, section: SectionId) -> list[Step] | None:
        if self.is_global:
            return self.steps
        return self.sections.get(section)


def level_stem(level: str) -> str:
    """Level file name without its extension ("castle.lvlx" -> "castle")."""
    name = Path(level).name
    for ext in _EXTENSIONS:
        if name.endswith(ext):
            return name[: -len(ext)]
    return name


def program_path(level: str, runs_dir: Path | None = None) -> Path:
    return (runs_dir or settings.runs_dir) / f"{level_stem(level)}.json"


def load_program_file(path: Path) -> ProgramFile:
    """Read a program file; a missing file is an empty section-keyed program."""
    if not path.exists():
        _logger.info("No program at %s, running without one", path)
        return ProgramFile()
    try:
        data = orjson.loads(path.read_bytes())
        return ProgramFile.model_validate(data)
    except (orjson.JSONDecodeError, ValidationError) as e:
        raise ProgramFileError(f"Malformed program file {path}: {e}") from e


def compile_program(
    program: ProgramFile,
    registry: BuiltinRegistry,
    default_seed: int | None = None,
) -> LevelProgram:
    """Parse every cell list of a program file into Steps."""
    seed = default_seed if default_seed is not None else settings.default_seed
    return LevelProgram(
        is_global=program.is_global,
        steps=parse_steps(program.steps, registry) if program.is_global else [],
        sections={
            section: parse_steps(cells, registry)
            for section, cells in program.sections.items()
        },
        seed=program.seed if program.seed is not None else seed,
        legacy_seed=program.legacy_seed if program.legacy_seed is not None else seed,
    )
