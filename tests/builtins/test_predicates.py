"""Tests for the built-in predicates."""

import pytest

from tasrun.exceptions import InvalidComparatorError, InvalidInstructionError
from tasrun.kernel.instructions import Builtin


def _check(evaluator, name, *args):
    evaluator.begin_tick()
    return evaluator.check(Builtin(name, list(args)))


def test_always_true(evaluator):
    assert _check(evaluator, "t")


@pytest.mark.parametrize(
    "name, field, value",
    [("x", "x", 512.0), ("y", "y", -64.0), ("sx", "speed_x", 6.0), ("sy", "speed_y", -3.5)],
)
def test_comparisons(evaluator, host, name, field, value):
    host.move(**{field: value})
    assert _check(evaluator, name, "==", value)
    assert _check(evaluator, name, ">=", value)
    assert not _check(evaluator, name, ">", value)
    assert _check(evaluator, name, "<", value + 1)
    assert _check(evaluator, name, "~=", value + 1)


def test_invalid_comparator(evaluator):
    with pytest.raises(InvalidComparatorError):
        _check(evaluator, "x", "=>", 3)


def test_comparison_needs_two_args(evaluator):
    with pytest.raises(InvalidInstructionError):
        _check(evaluator, "x", ">=")


def test_moving_up_and_down(evaluator, host):
    host.move(speed_y=-2.0, on_ground=False)
    assert _check(evaluator, "mu")
    assert not _check(evaluator, "md")

    host.move(speed_y=0.0)
    # Apex of a jump counts as moving down
    assert _check(evaluator, "md")

    host.move(on_ground=True)
    assert not _check(evaluator, "md")


def test_moving_left_and_right(evaluator, host):
    assert _check(evaluator, "ml") and _check(evaluator, "mr")
    host.move(speed_x=1.5)
    assert _check(evaluator, "mr")
    assert not _check(evaluator, "ml")


@pytest.mark.parametrize(
    "positive, negative, field",
    [
        ("tg", "ntg", "on_ground"),
        ("fs", "nfs", "forced_state"),
        ("iw", "niw", "in_water"),
        ("hnpc", "nhnpc", "holding_npc"),
    ],
)
def test_paired_flags(evaluator, host, positive, negative, field):
    host.move(**{field: True})
    assert _check(evaluator, positive)
    assert not _check(evaluator, negative)
    host.move(**{field: False})
    assert not _check(evaluator, positive)
    assert _check(evaluator, negative)


@pytest.mark.parametrize("name, field", [("cl", "climbing"), ("dead", "dead"), ("snpc", "standing_on_npc")])
def test_single_flags(evaluator, host, name, field):
    assert not _check(evaluator, name)
    host.move(**{field: True})
    assert _check(evaluator, name)


def test_message_box(evaluator):
    assert not _check(evaluator, "mb")
    evaluator.message_box = True
    assert _check(evaluator, "mb")
