"""Built-in macros — builtins that rewrite the program instead of waiting.

Expanding macros insert Steps right after the cursor and answer
EXPANDED; the sequencer then moves into the inserted Steps in the
same tick. `then` and `or` are the two exceptions: they keep the
macro calling convention but answer like predicates.
"""

from __future__ import annotations

from tasrun.builtins.registry import BuiltinRegistry
from tasrun.builtins.schema import BuiltinKind, BuiltinParameter, BuiltinSpec, ParamKind
from tasrun.exceptions import InvalidInstructionError
from tasrun.kernel.evaluator import Evaluator
from tasrun.kernel.instructions import Builtin, Countdown, Instruction
from tasrun.kernel.program import Step, parse_script
from tasrun.types import Verdict


def _cond(name: str, description: str = "", required: bool = True) -> BuiltinParameter:
    return BuiltinParameter(
        name=name, kind=ParamKind.CONDITION, description=description, required=required
    )


def _steps(name: str, description: str = "", required: bool = True) -> BuiltinParameter:
    return BuiltinParameter(
        name=name, kind=ParamKind.STEPS, description=description, required=required
    )


def register_macros(registry: BuiltinRegistry) -> None:
    """Register all built-in macros with the registry."""

    # ── do ────────────────────────────────────────────────────────────────
    registry.register(
        BuiltinSpec(
            name="do",
            kind=BuiltinKind.MACRO,
            description="Insert the given steps at the current position.",
            parameters=[_steps("steps", "Steps to insert")],
        ),
        _do,
    )

    # ── dotimes ───────────────────────────────────────────────────────────
    registry.register(
        BuiltinSpec(
            name="dotimes",
            kind=BuiltinKind.MACRO,
            description="Insert the given steps n times in a row.",
            parameters=[
                BuiltinParameter(name="n", description="Number of repetitions"),
                _steps("steps", "Steps to repeat"),
            ],
        ),
        _dotimes,
    )

    # ── if / when / unless ────────────────────────────────────────────────
    registry.register(
        BuiltinSpec(
            name="if",
            kind=BuiltinKind.MACRO,
            description="Check a condition once and insert the matching branch.",
            parameters=[
                _cond("condition"),
                _steps("then", "Steps if the condition holds", required=False),
                _steps("else", "Steps if it does not", required=False),
            ],
        ),
        _if,
    )
    registry.register(
        BuiltinSpec(
            name="when",
            kind=BuiltinKind.MACRO,
            description="Insert the steps only if the condition holds.",
            parameters=[_cond("condition"), _steps("steps")],
        ),
        _when,
    )
    registry.register(
        BuiltinSpec(
            name="unless",
            kind=BuiltinKind.MACRO,
            description="Insert the steps only if the condition does not hold.",
            parameters=[_cond("condition"), _steps("steps")],
        ),
        _unless,
    )

    # ── then / or ─────────────────────────────────────────────────────────
    registry.register(
        BuiltinSpec(
            name="then",
            kind=BuiltinKind.MACRO,
            description=(
                "Wait for each condition in turn. Passed conditions are "
                "dropped and never checked again."
            ),
            parameters=[_cond("condition")],
            variadic=True,
        ),
        _then,
    )
    registry.register(
        BuiltinSpec(
            name="or",
            kind=BuiltinKind.MACRO,
            description="True as soon as any condition holds; re-checks all of them every tick.",
            parameters=[_cond("condition")],
            variadic=True,
        ),
        _or,
    )

    # ── while ─────────────────────────────────────────────────────────────
    registry.register(
        BuiltinSpec(
            name="while",
            kind=BuiltinKind.MACRO,
            description="While the condition holds, run the steps and check again.",
            parameters=[_cond("condition"), _steps("steps")],
        ),
        _while,
    )

    # ── randomInput ───────────────────────────────────────────────────────
    registry.register(
        BuiltinSpec(
            name="randomInput",
            kind=BuiltinKind.MACRO,
            description="Hold a randomly chosen input for a random number of ticks.",
            parameters=[
                BuiltinParameter(
                    name="choices",
                    kind=ParamKind.INPUT_CHOICES,
                    description="Inputs to choose from",
                ),
                BuiltinParameter(name="min", description="Shortest duration in ticks"),
                BuiltinParameter(
                    name="max",
                    description="Longest duration in ticks (defaults to min)",
                    required=False,
                ),
            ],
        ),
        _random_input,
    )

    # ── scriptedInput ─────────────────────────────────────────────────────
    registry.register(
        BuiltinSpec(
            name="scriptedInput",
            kind=BuiltinKind.MACRO,
            description=(
                "Queue (inputs, repeat) entries for the background override "
                "process, which plays one entry every 16 ticks."
            ),
            parameters=[
                BuiltinParameter(
                    name="entries",
                    kind=ParamKind.SCRIPT,
                    description="Alternating inputs and repeat counts",
                ),
            ],
        ),
        _scripted_input,
    )

    # ── optimize / clearOptimizationData ──────────────────────────────────
    registry.register(
        BuiltinSpec(
            name="optimize",
            kind=BuiltinKind.MACRO,
            description="Probe one candidate duration for an input and tune it across runs.",
            parameters=[
                BuiltinParameter(name="input", kind=ParamKind.INPUTS, description="Input to time"),
                BuiltinParameter(name="mode", description="LO for the shortest, HI for the longest"),
                _cond("fail_low", "True when the duration was too short"),
                _cond("fail_high", "True when the duration was too long"),
                _cond("success", "True when the duration worked"),
                BuiltinParameter(name="lo", description="Lower bound in ticks", required=False),
                BuiltinParameter(name="hi", description="Upper bound in ticks", required=False),
            ],
        ),
        _optimize,
    )
    registry.register(
        BuiltinSpec(
            name="clearOptimizationData",
            kind=BuiltinKind.MACRO,
            description="Forget the persisted optimizer bounds and history.",
        ),
        _clear_optimization_data,
    )


# ── Argument helpers ─────────────────────────────────────────────────────────


def _condition_at(ev: Evaluator, instr: Builtin, index: int) -> Instruction:
    """Parse the condition argument in place so its state persists."""
    if index >= len(instr.args):
        raise InvalidInstructionError(f"'{instr.name}' is missing argument {index + 1}")
    cond = ev.parse_condition(instr.args[index])
    instr.args[index] = cond
    return cond


def _steps_at(ev: Evaluator, instr: Builtin, index: int, required: bool = True) -> list[Step] | None:
    if index >= len(instr.args) or instr.args[index] is None:
        if required:
            raise InvalidInstructionError(f"'{instr.name}' is missing argument {index + 1}")
        return None
    steps = ev.parse_steps(instr.args[index])
    instr.args[index] = steps
    return steps


# ── Macro Implementations ────────────────────────────────────────────────────


def _do(ev: Evaluator, instr: Builtin) -> Verdict:
    ev.splice(_steps_at(ev, instr, 0))
    return Verdict.EXPANDED


def _dotimes(ev: Evaluator, instr: Builtin) -> Verdict:
    if not instr.args:
        raise InvalidInstructionError("'dotimes' is missing argument 1")
    reps = int(instr.args[0])
    steps = _steps_at(ev, instr, 1)
    ev.splice([step for _ in range(reps) for step in steps])
    return Verdict.EXPANDED


def _branch(
    ev: Evaluator,
    condition: Instruction,
    when_true: list[Step] | None,
    when_false: list[Step] | None,
) -> Verdict:
    if ev.check(condition):
        if when_true:
            ev.splice(when_true)
    elif when_false:
        ev.splice(when_false)
    return Verdict.EXPANDED


def _if(ev: Evaluator, instr: Builtin) -> Verdict:
    condition = _condition_at(ev, instr, 0)
    return _branch(
        ev,
        condition,
        _steps_at(ev, instr, 1, required=False),
        _steps_at(ev, instr, 2, required=False),
    )


def _when(ev: Evaluator, instr: Builtin) -> Verdict:
    condition = _condition_at(ev, instr, 0)
    return _branch(ev, condition, _steps_at(ev, instr, 1), None)


def _unless(ev: Evaluator, instr: Builtin) -> Verdict:
    condition = _condition_at(ev, instr, 0)
    return _branch(ev, condition, None, _steps_at(ev, instr, 1))


def _then(ev: Evaluator, instr: Builtin) -> Verdict:
    if instr.args and ev.check(_condition_at(ev, instr, 0)):
        instr.args.pop(0)
    return Verdict.NOT_YET_SATISFIED if instr.args else Verdict.SATISFIED


def _or(ev: Evaluator, instr: Builtin) -> Verdict:
    for i in range(len(instr.args)):
        if ev.check(_condition_at(ev, instr, i)):
            return Verdict.SATISFIED
    return Verdict.NOT_YET_SATISFIED


def _while(ev: Evaluator, instr: Builtin) -> Verdict:
    condition = _condition_at(ev, instr, 0)
    body = _steps_at(ev, instr, 1)
    if ev.check(condition):
        # One unrolled iteration: the body, then this loop again
        ev.splice(body + [Step(ev.current_inputs(), instr)])
    return Verdict.EXPANDED


def _random_input(ev: Evaluator, instr: Builtin) -> Verdict:
    if len(instr.args) < 2 or not instr.args[0]:
        raise InvalidInstructionError("'randomInput' needs choices and a minimum duration")
    choices = instr.args[0]
    shortest = int(instr.args[1])
    longest = shortest
    if len(instr.args) > 2 and instr.args[2] is not None:
        longest = int(instr.args[2])
    inputs = ev.rng.choice(choices)
    ev.splice([Step(inputs, Countdown(ev.rng.randint(shortest, longest)))])
    return Verdict.EXPANDED


def _scripted_input(ev: Evaluator, instr: Builtin) -> Verdict:
    if ev.scripted is None:
        raise InvalidInstructionError("No scripted override process is attached")
    if not instr.args:
        raise InvalidInstructionError("'scriptedInput' is missing argument 1")
    ev.scripted.load(parse_script(instr.args[0]))
    return Verdict.EXPANDED


def _optimize(ev: Evaluator, instr: Builtin) -> Verdict:
    if ev.optimizer is None:
        raise InvalidInstructionError("No optimizer is attached")
    ev.optimizer.start(instr.args)
    return Verdict.EXPANDED


def _clear_optimization_data(ev: Evaluator, instr: Builtin) -> Verdict:
    if ev.optimizer is None:
        raise InvalidInstructionError("No optimizer is attached")
    ev.optimizer.clear_data()
    return Verdict.EXPANDED
