"""Tests for the input override slot and the scripted override process."""

from tasrun.kernel.override import InputOverride, ScriptedOverride
from tasrun.types import Key, NO_INPUT

RUN_RIGHT = frozenset({Key.RIGHT, Key.RUN})


def test_set_lasts_duration():
    override = InputOverride()
    override.set("j", 2)
    assert override.active
    assert override.tick() == {Key.JUMP}
    assert override.tick() == {Key.JUMP}
    assert not override.active
    assert override.content == NO_INPUT


def test_last_writer_wins():
    override = InputOverride()
    override.set("j", 5)
    override.set("d", 1)
    assert override.tick() == {Key.DOWN}
    assert not override.active


def test_modify_starts_from_current_step():
    override = InputOverride(lambda: RUN_RIGHT)
    override.modify(add="j", subtract="r")
    assert override.tick() == {Key.RUN, Key.JUMP}


def test_modify_subtract_before_add():
    override = InputOverride(lambda: RUN_RIGHT)
    override.modify(add="r", subtract="r")
    assert override.tick() == RUN_RIGHT


def test_clear():
    override = InputOverride()
    override.set("j", 3)
    override.clear()
    assert not override.active


def _scripted(initial_delay=14, interval=16):
    override = InputOverride(lambda: RUN_RIGHT)
    return override, ScriptedOverride(override, interval=interval, initial_delay=initial_delay)


def test_scripted_first_entry_after_initial_delay():
    override, scripted = _scripted()
    scripted.load([("j", 1)])

    for _ in range(14):
        scripted.tick()
        assert not override.active
    scripted.tick()

    assert override.active
    # Directions are dropped, everything else on the Step is kept
    assert override.tick() == {Key.RUN, Key.JUMP}
    assert not scripted.active


def test_scripted_repeats_every_interval():
    override, scripted = _scripted()
    scripted.load([("u", 2), ("d", 1)])

    fired = []
    for tick in range(1, 60):
        scripted.tick()
        if override.active:
            fired.append((tick, override.tick()))

    assert fired == [
        (15, {Key.RUN, Key.UP}),
        (31, {Key.RUN, Key.UP}),
        (47, {Key.RUN, Key.DOWN}),
    ]
    assert not scripted.active


def test_scripted_paused_ticks_do_not_count():
    override, scripted = _scripted(initial_delay=2)
    scripted.load([("j", 1)])
    scripted.tick()
    scripted.tick(paused=True)
    scripted.tick(paused=True)
    scripted.tick()
    assert not override.active
    scripted.tick()
    assert override.active


def test_scripted_drops_non_positive_repeats():
    _, scripted = _scripted()
    scripted.load([("j", 0), ("u", -1), ("d", 2)])
    assert [e.inputs for e in scripted.pending] == [{Key.DOWN}]


def test_scripted_load_replaces_queue():
    _, scripted = _scripted()
    scripted.load([("j", 3)])
    scripted.load([("u", 1)])
    assert len(scripted.pending) == 1
    assert scripted.pending[0].inputs == {Key.UP}
