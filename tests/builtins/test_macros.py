"""Tests for the built-in macros, driven through the sequencer."""

import random

import pytest

from tasrun.exceptions import InvalidInstructionError, UnknownBuiltinError
from tasrun.kernel.override import ScriptedOverride
from tasrun.kernel.program import parse_steps
from tasrun.kernel.sequencer import TickKind
from tasrun.types import Key, NO_INPUT, parse_inputs

R = frozenset({Key.RIGHT})
J = frozenset({Key.JUMP})
N = frozenset({Key.RUN})


def _run(sequencer, registry, host, cells, ticks):
    sequencer.load(parse_steps(cells, registry))
    for _ in range(ticks):
        sequencer.step()
    return host.written


def test_do_inserts_steps(sequencer, registry, host):
    written = _run(sequencer, registry, host, [["do", ["r", 2, "j", 1]], "n", 1], 5)
    assert written == [R, R, J, N, NO_INPUT]


def test_dotimes_matches_repeated_do(registry, host, evaluator, sequencer):
    body = ["r", 1, "j", 2]
    dotimes = _run(sequencer, registry, host, [["dotimes", 3, body], "n", 1], 12)

    host.written = []
    repeated = _run(sequencer, registry, host, [["do", body]] * 3 + ["n", 1], 12)

    assert dotimes == repeated
    assert dotimes[:9] == [R, J, J] * 3


def test_dotimes_zero_inserts_nothing(sequencer, registry, host):
    assert _run(sequencer, registry, host, [["dotimes", 0, ["r", 5]], "j", 1], 2) == [J, NO_INPUT]


def test_dotimes_copies_are_independent(sequencer, registry, host):
    written = _run(sequencer, registry, host, [["dotimes", 2, ["r", ["then", 1, "t"]]]], 4)
    assert written == [R, R, R, R]


@pytest.mark.parametrize("x, expected", [(20.0, R), (0.0, J)])
def test_if_selects_branch(sequencer, registry, host, x, expected):
    host.move(x=x)
    written = _run(sequencer, registry, host, [["if", ["x", ">", 10], ["r", 1], ["j", 1]]], 2)
    assert written == [expected, NO_INPUT]


def test_if_without_else(sequencer, registry, host):
    written = _run(sequencer, registry, host, [["if", ["x", ">", 10], ["r", 1]], "n", 1], 2)
    assert written == [N, NO_INPUT]


def test_when_and_unless(sequencer, registry, host):
    host.move(on_ground=True)
    cells = [["when", "tg", ["r", 1]], ["unless", "tg", ["j", 1]], "n", 1]
    assert _run(sequencer, registry, host, cells, 3) == [R, N, NO_INPUT]


def test_then_waits_for_each_condition_in_turn(sequencer, registry, host):
    sequencer.load(parse_steps(["r", ["then", ["x", ">=", 10], ["x", "<", 5]], "j", 1], registry))

    assert sequencer.step().keys == R
    host.move(x=12)
    assert sequencer.step().keys == R
    assert sequencer.step().keys == R
    host.move(x=3)
    assert sequencer.step().keys == J


def test_then_never_retests_passed_conditions(sequencer, registry, host):
    sequencer.load(parse_steps(["r", ["then", ["x", ">=", 10], "tg"], "j", 1], registry))

    host.move(x=12)
    sequencer.step()
    # The first condition no longer holds, but it was already passed
    host.move(x=0, on_ground=True)
    assert sequencer.step().keys == J


def test_then_tests_one_condition_per_tick(sequencer, registry, host):
    host.move(x=12, on_ground=True)
    sequencer.load(parse_steps(["r", ["then", ["x", ">=", 10], "tg"], "j", 1], registry))
    assert sequencer.step().keys == R
    assert sequencer.step().keys == J


def test_implicit_then_with_countdowns(sequencer, registry, host):
    written = _run(sequencer, registry, host, ["r", [[2], [1]], "j", 1], 5)
    assert written == [R, R, R, R, J]


def test_or_any_branch(sequencer, registry, host):
    sequencer.load(parse_steps(["r", ["or", ["x", ">=", 10], "tg"], "j", 1], registry))
    assert sequencer.step().keys == R
    host.move(on_ground=True)
    assert sequencer.step().keys == J


def test_or_keeps_nested_branch_state(sequencer, registry, host):
    sequencer.load(parse_steps(["r", ["or", ["then", "tg", "ntg"], ["x", ">", 100]], "j", 1], registry))
    host.move(on_ground=True)
    assert sequencer.step().keys == R
    assert sequencer.step().keys == R
    host.move(on_ground=False)
    assert sequencer.step().keys == J


def test_while_loops_until_condition_fails(sequencer, registry, host):
    sequencer.load(parse_steps([["while", ["x", "<", 3], ["r", 1]], "j", 1], registry))

    written = []
    for tick in range(5):
        written.append(sequencer.step().keys)
        host.move(x=host.player.x + 1)

    assert written == [R, R, R, J, NO_INPUT]


def test_while_false_inserts_nothing(sequencer, registry, host):
    host.move(x=50)
    written = _run(sequencer, registry, host, [["while", ["x", "<", 3], ["r", 1]], "j", 1], 1)
    assert written == [J]


def test_random_input_uses_engine_rng(sequencer, registry, host, evaluator):
    evaluator.rng = random.Random(1234)
    expected_rng = random.Random(1234)
    choice = expected_rng.choice([R, J])
    ticks = expected_rng.randint(2, 6)

    written = _run(sequencer, registry, host, [["randomInput", ["r", "j"], 2, 6]], ticks + 1)

    assert written == [choice] * ticks + [NO_INPUT]


def test_random_input_fixed_duration(sequencer, registry, host):
    written = _run(sequencer, registry, host, [["randomInput", ["rn"], 3]], 4)
    assert written == [parse_inputs("rn")] * 3 + [NO_INPUT]


def test_scripted_input_loads_queue(sequencer, registry, host, evaluator):
    scripted = ScriptedOverride(sequencer.override)
    evaluator.scripted = scripted
    _run(sequencer, registry, host, [["scriptedInput", ["j", 2, "u", 1]], "r", 100], 1)

    assert [(e.inputs, e.repeat) for e in scripted.pending] == [(J, 2), ({Key.UP}, 1)]
    assert host.written == [R]


def test_scripted_input_without_process(sequencer, registry):
    sequencer.load(parse_steps([["scriptedInput", ["j", 1]]], registry))
    with pytest.raises(InvalidInstructionError):
        sequencer.step()


def test_flag_inside_program(sequencer, registry, host, evaluator):
    _run(sequencer, registry, host, ["ignoreDeath", "r", 1], 1)
    assert evaluator.flags.ignore_death


def test_unknown_builtin_fails_when_reached(sequencer, registry, host):
    sequencer.load(parse_steps(["r", 1, "j", ["warp", 3]], registry))
    assert sequencer.step().kind == TickKind.COMMITTED
    with pytest.raises(UnknownBuiltinError):
        sequencer.step()
