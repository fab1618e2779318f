"""Optimizer commands — tasrun optimizer status, tasrun optimizer clear."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from tasrun.optimizer.state import OptimizerStore

app = typer.Typer(help="Persisted optimizer bounds")
console = Console()

_PathOption = typer.Option(None, "--path", "-p", help="Optimizer state file")


@app.command()
def status(path: Optional[Path] = _PathOption):
    """Show the persisted search bounds and probe history."""
    store = OptimizerStore(path)
    if not store.load():
        console.print(f"[dim]No optimizer state at {store.path}.[/dim]")
        return

    record = store.record
    if record.converged:
        state = f"[green]converged on {record.lo_bound} ticks[/green]"
    elif record.exhausted:
        state = "[red]exhausted[/red]"
    else:
        state = "[yellow]searching[/yellow]"

    history = ", ".join(str(v) for v in record.history) or "-"
    console.print(Panel(
        f"State:    {state}\n"
        f"Low:      {record.lo_bound}\n"
        f"High:     {'unknown' if record.hi_bound is None else record.hi_bound}\n"
        f"Last:     {record.mid_value}\n"
        f"Probes:   {len(record.history)} ({history})\n"
        f"Saved:    {record.last_saved}",
        title=str(store.path),
        border_style="cyan",
    ))


@app.command()
def clear(
    path: Optional[Path] = _PathOption,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Forget all bounds so the next optimize call starts over."""
    store = OptimizerStore(path)
    if not yes and not typer.confirm(f"Clear optimizer state at {store.path}?"):
        raise typer.Abort()
    store.clear()
    console.print(f"[green]Cleared {store.path}[/green]")
