"""Built-in predicates — pure checks against the live simulation."""

from __future__ import annotations

from typing import Any, Callable

from tasrun.builtins.registry import BuiltinRegistry
from tasrun.builtins.schema import BuiltinParameter, BuiltinSpec, ParamKind
from tasrun.exceptions import InvalidInstructionError
from tasrun.kernel.evaluator import Evaluator, validate_comparator
from tasrun.kernel.instructions import Builtin

# name -> (description, reader)
_FLAG_PREDICATES: dict[str, tuple[str, Callable[[Evaluator], bool]]] = {
    "t": ("Always true.", lambda ev: True),
    "mu": ("Moving up.", lambda ev: ev.player.speed_y < 0),
    "md": (
        "Moving down: airborne and not rising (true at the apex of a jump).",
        lambda ev: not ev.player.on_ground and ev.player.speed_y >= 0,
    ),
    "ml": ("Moving left (or standing still).", lambda ev: ev.player.speed_x <= 0),
    "mr": ("Moving right (or standing still).", lambda ev: ev.player.speed_x >= 0),
    "tg": ("Touching the ground.", lambda ev: ev.player.on_ground),
    "ntg": ("Not touching the ground.", lambda ev: not ev.player.on_ground),
    "mb": ("A message box was shown this tick.", lambda ev: ev.message_box),
    "cl": ("Climbing.", lambda ev: ev.player.climbing),
    "fs": ("In a forced state (pipe, door, powerup...).", lambda ev: ev.player.forced_state),
    "nfs": ("Not in a forced state.", lambda ev: not ev.player.forced_state),
    "iw": ("In water.", lambda ev: ev.player.in_water),
    "niw": ("Not in water.", lambda ev: not ev.player.in_water),
    "dead": ("The player is dying.", lambda ev: ev.player.dead),
    "snpc": ("Standing on an NPC.", lambda ev: ev.player.standing_on_npc),
    "hnpc": ("Holding an item.", lambda ev: ev.player.holding_npc),
    "nhnpc": ("Not holding an item.", lambda ev: not ev.player.holding_npc),
}

# name -> (description, reader of the compared value)
_COMPARISONS: dict[str, tuple[str, Callable[[Evaluator], Any]]] = {
    "x": ("Compare the player's x position.", lambda ev: ev.player.x),
    "y": ("Compare the player's y position.", lambda ev: ev.player.y),
    "sx": ("Compare the player's horizontal speed.", lambda ev: ev.player.speed_x),
    "sy": ("Compare the player's vertical speed.", lambda ev: ev.player.speed_y),
    "mapX": ("Compare the overlay player's x position.", lambda ev: ev.overlay.x),
    "mapY": ("Compare the overlay player's y position.", lambda ev: ev.overlay.y),
    "mapState": ("Compare the overlay player's state value.", lambda ev: ev.overlay.state),
}


def register_predicates(registry: BuiltinRegistry) -> None:
    """Register all built-in predicates with the registry."""

    for name, (description, read) in _FLAG_PREDICATES.items():
        registry.register(
            BuiltinSpec(name=name, description=description),
            _flag_handler(read),
        )

    for name, (description, read) in _COMPARISONS.items():
        registry.register(
            BuiltinSpec(
                name=name,
                description=description,
                parameters=[
                    BuiltinParameter(
                        name="comparator",
                        kind=ParamKind.COMPARATOR,
                        description="One of < <= == ~= >= >",
                    ),
                    BuiltinParameter(name="value", description="Value to compare against"),
                ],
            ),
            _comparison_handler(name, read),
        )


# ── Handler factories ────────────────────────────────────────────────────────


def _flag_handler(read: Callable[[Evaluator], bool]):
    def handler(ev: Evaluator, instr: Builtin) -> bool:
        return bool(read(ev))
    return handler


def _comparison_handler(name: str, read: Callable[[Evaluator], Any]):
    def handler(ev: Evaluator, instr: Builtin) -> bool:
        if len(instr.args) < 2:
            raise InvalidInstructionError(
                f"'{name}' needs a comparator and a value, got {instr.args!r}"
            )
        compare = validate_comparator(instr.args[0])
        return compare(read(ev), instr.args[1])
    return handler
