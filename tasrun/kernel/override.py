"""Input overrides — inputs that bypass the program for a few ticks.

InputOverride is a single last-writer-wins slot. ScriptedOverride is
the one background process allowed to drive that slot on its own
clock, feeding it one queued entry every `interval` ticks.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable

from tasrun.types import DIRECTIONS, InputSet, Key, NO_INPUT, format_inputs, parse_inputs

_logger = logging.getLogger(__name__)


class InputOverride:
    """Forces the tick's input while `remaining` is positive."""

    def __init__(self, current_inputs: Callable[[], InputSet] | None = None) -> None:
        self._current_inputs = current_inputs or (lambda: NO_INPUT)
        self.content: InputSet = NO_INPUT
        self.remaining = 0

    @property
    def active(self) -> bool:
        return self.remaining > 0

    def set(self, content: str | Iterable[Key], duration: int = 1) -> None:
        """Replace the program's input for `duration` ticks."""
        self.content = parse_inputs(content)
        self.remaining = duration

    def modify(
        self,
        add: str | Iterable[Key] = NO_INPUT,
        subtract: str | Iterable[Key] = NO_INPUT,
        duration: int = 1,
    ) -> None:
        """Take the active Step's input, drop `subtract`, then add `add`."""
        base = self._current_inputs()
        self.content = (base - parse_inputs(subtract)) | parse_inputs(add)
        self.remaining = duration

    def tick(self) -> InputSet:
        content = self.content
        self.remaining -= 1
        if self.remaining <= 0:
            self.clear()
        return content

    def clear(self) -> None:
        self.content = NO_INPUT
        self.remaining = 0


@dataclass
class ScriptEntry:
    inputs: InputSet
    repeat: int


class ScriptedOverride:
    def __init__(
        self,
        override: InputOverride,
        interval: int = 16,
        initial_delay: int = 14,
    ) -> None:
        self._override = override
        self.interval = interval
        self.initial_delay = initial_delay
        self._queue: deque[ScriptEntry] = deque()
        self._timer = 0

    @property
    def active(self) -> bool:
        return bool(self._queue)

    @property
    def pending(self) -> list[ScriptEntry]:
        return list(self._queue)

    def load(self, entries: Iterable[tuple[InputSet, int]]) -> None:
        """Replace the queue; the first entry fires after the initial delay."""
        self._queue = deque(
            ScriptEntry(parse_inputs(inputs), int(repeat))
            for inputs, repeat in entries
            if int(repeat) > 0
        )
        self._timer = self.initial_delay
        _logger.debug("Scripted override loaded with %d entries", len(self._queue))

    def tick(self, paused: bool = False) -> None:
        if paused or not self._queue:
            return
        if self._timer <= 0:
            self._timer = self.interval
            entry = self._queue[0]
            self._override.modify(add=entry.inputs, subtract=DIRECTIONS, duration=1)
            entry.repeat -= 1
            if entry.repeat <= 0:
                self._queue.popleft()
                _logger.debug(
                    "Scripted entry %r done, %d left",
                    format_inputs(entry.inputs), len(self._queue),
                )
        self._timer -= 1

    def clear(self) -> None:
        self._queue.clear()
        self._timer = 0
