"""tasrun CLI — run, inspect and debug input programs.

`tasrun run level.json` drives the program against the demo platformer.
`tasrun check`, `tasrun builtins` and the `optimizer` / `recording`
groups are offline tools for the files under the runs directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tasrun.cli import optimizer, recording
from tasrun.config import settings

console = Console()

_app = typer.Typer(
    name="tasrun",
    help="tasrun -- a tick-synchronous input VM for tool-assisted runs.",
    no_args_is_help=True,
)

_app.add_typer(optimizer.app, name="optimizer", help="Inspect or reset persisted optimizer bounds")
_app.add_typer(recording.app, name="recording", help="Inspect or restore input recordings")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@_app.command("run")
def run(
    program: Path = typer.Argument(help="Program file ({runs_dir}/{level}.json)"),
    ticks: int = typer.Option(600, "--ticks", "-t", help="Tick limit per attempt"),
    attempts: int = typer.Option(1, "--attempts", "-a", help="Restart the level up to N times"),
    width: float = typer.Option(800.0, "--width", help="Width of each demo section"),
    sections: int = typer.Option(1, "--sections", "-s", help="Number of demo sections"),
):
    """Drive a program against the demo platformer.

    Example: tasrun run __runs/castle.json --attempts 20
    """
    from tasrun.demo import Section, ToyPlatformer
    from tasrun.exceptions import TasError
    from tasrun.host import RunEndReason
    from tasrun.optimizer.state import OptimizerStore
    from tasrun.session import TasSession
    from tasrun.types import format_inputs

    config = settings.model_copy(update={"runs_dir": program.parent})
    store = OptimizerStore(config.optimizer_state_path)

    for attempt in range(1, attempts + 1):
        host = ToyPlatformer([Section(width=width) for _ in range(sections)])
        session = TasSession(host, program.stem, store=store, config=config)
        try:
            session.on_start()
            killed = False
            while host.tick < ticks and not host.finished:
                session.on_input_update()
                host.advance()
                if host.dead and not killed:
                    killed = True
                    session.on_player_killed()
                    # ignoreDeath and optimizations keep going so `dead` gets evaluated
                    if not session.survives_death:
                        break
        except TasError as e:
            console.print(f"[red]{type(e).__name__}: {e}[/red]")
            raise typer.Exit(code=1)
        if host.won:
            session.on_level_exit(won=True)

        table = Table(title=f"Attempt {attempt}")
        table.add_column("Ticks", justify="right", style="cyan")
        table.add_column("Section", justify="right")
        table.add_column("x", justify="right")
        table.add_column("Inputs committed", justify="right")
        table.add_column("Result", style="white")
        result = "[green]won[/green]" if host.won else "[dim]tick limit[/dim]"
        if host.dead:
            result = "[red]died[/red]"
        if host.reports:
            result = host.reports[-1].message
        table.add_row(
            str(host.tick),
            str(host.section),
            f"{host.x:.1f}",
            str(session.sequencer.commits),
            result,
        )
        console.print(table)

        if session.recorder.last_section is not None:
            runs = session.recorder.runs(session.recorder.last_section)
            console.print(
                "[dim]" + " ".join(f"{format_inputs(k) or '-'}x{n}" for k, n in runs) + "[/dim]"
            )

        if not host.reports or host.reports[-1].reason is not RunEndReason.PROBED:
            break


@_app.command("check")
def check(program: Path = typer.Argument(help="Program file to parse")):
    """Parse a program file and list its Steps."""
    from tasrun.builtins.registry import default_registry
    from tasrun.exceptions import TasError
    from tasrun.files.programs import compile_program, load_program_file
    from tasrun.kernel.instructions import Builtin, describe
    from tasrun.types import format_inputs

    registry = default_registry()
    try:
        compiled = compile_program(load_program_file(program), registry)
    except TasError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1)

    listings = {"global": compiled.steps} if compiled.is_global else compiled.sections
    if not any(listings.values()):
        console.print("[dim]Program is empty.[/dim]")
        return

    unknown = short = 0
    for name, steps in listings.items():
        table = Table(title=f"Section {name}")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Inputs", style="cyan")
        table.add_column("Condition", style="white")
        for i, step in enumerate(steps):
            cond = describe(step.condition)
            if isinstance(step.condition, Builtin) and step.condition.name not in registry:
                cond = f"[red]{cond}[/red]"
                unknown += 1
            elif isinstance(step.condition, Builtin):
                if len(step.condition.args) < registry.spec(step.condition.name).required_count:
                    cond = f"[yellow]{cond}[/yellow]"
                    short += 1
            table.add_row(str(i), format_inputs(step.inputs) or "-", cond)
        console.print(table)

    console.print(f"seed={compiled.seed} legacySeed={compiled.legacy_seed}")
    if unknown:
        console.print(f"[yellow]{unknown} step(s) name an unknown builtin[/yellow]")
    if short:
        console.print(f"[yellow]{short} step(s) lack required arguments[/yellow]")


@_app.command("builtins")
def builtins(
    kind: str = typer.Option("", "--kind", "-k", help="predicate or macro"),
):
    """List every builtin a program may name."""
    from tasrun.builtins.registry import default_registry
    from tasrun.builtins.schema import BuiltinKind

    selected = BuiltinKind(kind) if kind else None
    table = Table(title="Builtins")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Kind", style="blue")
    table.add_column("Usage", style="white")
    table.add_column("Description", style="dim")
    for spec in sorted(default_registry().list_builtins(selected), key=lambda s: s.name):
        table.add_row(spec.name, spec.kind.value, spec.usage(), spec.description)
    console.print(table)


@_app.command("version")
def version_cmd():
    """Show tasrun version."""
    from tasrun import __version__
    console.print(f"tasrun v{__version__}")


def app(args: list[str] | None = None) -> None:
    """Entry point: set up logging, then hand over to Typer."""
    configure_logging(settings.log_level)
    _app(args=args, prog_name="tasrun")
