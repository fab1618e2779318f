"""Recording commands — tasrun recording show, tasrun recording restore."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from tasrun.config import settings
from tasrun.exceptions import ProgramFileError
from tasrun.files.recording import (
    backup_path,
    decode_steps,
    expand_steps,
    load_recording,
    recording_path,
    restore_backup,
)
from tasrun.types import format_inputs

app = typer.Typer(help="Input recordings")
console = Console()

_RunsDirOption = typer.Option(None, "--runs-dir", "-d", help="Directory holding run files")


@app.command()
def show(
    level: str = typer.Argument(help="Level name, e.g. castle or castle.lvlx"),
    runs_dir: Optional[Path] = _RunsDirOption,
):
    """List the input runs of a level's recording, per section."""
    path = recording_path(level, runs_dir or settings.runs_dir)
    try:
        recording = load_recording(path)
    except ProgramFileError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    if not recording.sections:
        console.print(f"[dim]No recording at {path}.[/dim]")
        return

    for section, cells in sorted(recording.sections.items()):
        steps = decode_steps(cells)
        table = Table(title=f"Section {section} — {len(expand_steps(steps))} ticks")
        table.add_column("Inputs", style="cyan")
        table.add_column("Ticks", justify="right")
        for step in steps:
            table.add_row(format_inputs(step.inputs) or "-", str(step.condition.remaining))
        console.print(table)


@app.command()
def restore(
    level: str = typer.Argument(help="Level whose recording the backup replaces"),
    runs_dir: Optional[Path] = _RunsDirOption,
):
    """Copy the last playback backup over a level's recording."""
    directory = runs_dir or settings.runs_dir
    if not restore_backup(recording_path(level, directory), backup_path(directory)):
        console.print(f"[red]No backup at {backup_path(directory)}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Restored {recording_path(level, directory)}[/green]")
