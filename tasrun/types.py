"""Core types shared across all tasrun subsystems."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, TypeAlias

from tasrun.exceptions import InvalidKeyCodeError

# ── ID Types ──────────────────────────────────────────────────────────────────

SectionId: TypeAlias = int


# ── Input Channels ────────────────────────────────────────────────────────────


class Key(str, Enum):
    RUN = "run"
    ALT_RUN = "altRun"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    JUMP = "jump"
    ALT_JUMP = "altJump"
    DROP_ITEM = "dropItem"
    PAUSE = "pause"


InputSet: TypeAlias = frozenset[Key]

NO_INPUT: InputSet = frozenset()

# Canonical channel order, used whenever an input set is written out
KEY_ORDER: tuple[Key, ...] = tuple(Key)

CHAR_TO_KEY: dict[str, Key] = {
    "j": Key.JUMP,
    "a": Key.ALT_JUMP,
    "i": Key.DROP_ITEM,
    "p": Key.PAUSE,
    "u": Key.UP,
    "d": Key.DOWN,
    "l": Key.LEFT,
    "r": Key.RIGHT,
    "n": Key.RUN,
    "t": Key.ALT_RUN,
}

KEY_TO_CHAR: dict[Key, str] = {k: c for c, k in CHAR_TO_KEY.items()}

DIRECTIONS: InputSet = frozenset({Key.UP, Key.DOWN, Key.LEFT, Key.RIGHT})


def parse_inputs(codes: str | Iterable[Key]) -> InputSet:
    """Turn a string of single-character codes ("rn") into an input set."""
    if not isinstance(codes, str):
        return frozenset(codes)
    keys = set()
    for c in codes:
        key = CHAR_TO_KEY.get(c)
        if key is None:
            raise InvalidKeyCodeError(f"Invalid key code: {c!r}")
        keys.add(key)
    return frozenset(keys)


def format_inputs(keys: Iterable[Key]) -> str:
    held = set(keys)
    return "".join(KEY_TO_CHAR[k] for k in KEY_ORDER if k in held)


# ── Evaluation ────────────────────────────────────────────────────────────────


class Verdict(str, Enum):
    SATISFIED = "satisfied"
    NOT_YET_SATISFIED = "not_yet_satisfied"
    EXPANDED = "expanded"


class OptimizationMode(str, Enum):
    LO = "LO"
    HI = "HI"

    @classmethod
    def parse(cls, value: object) -> OptimizationMode:
        # Numeric codes 0 and 1 are accepted for LO and HI
        if value in (0, "0"):
            return cls.LO
        if value in (1, "1"):
            return cls.HI
        return cls(str(value).upper())
