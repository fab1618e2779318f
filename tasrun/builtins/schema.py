"""Builtin schema — describes what a builtin is and what it accepts."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class BuiltinKind(str, Enum):
    PREDICATE = "predicate"
    MACRO = "macro"


class ParamKind(str, Enum):
    VALUE = "value"
    COMPARATOR = "comparator"
    CONDITION = "condition"
    STEPS = "steps"
    INPUTS = "inputs"
    INPUT_CHOICES = "input_choices"
    SCRIPT = "script"


class BuiltinParameter(BaseModel):
    name: str
    kind: ParamKind = ParamKind.VALUE
    description: str = ""
    required: bool = True


class BuiltinSpec(BaseModel):
    """Complete description of a builtin that programs can call."""

    name: str
    kind: BuiltinKind = BuiltinKind.PREDICATE
    description: str
    parameters: list[BuiltinParameter] = Field(default_factory=list)
    variadic: bool = False  # last parameter repeats

    def param_for(self, index: int) -> BuiltinParameter | None:
        """Parameter describing the argument at `index`, if any."""
        if index < len(self.parameters):
            return self.parameters[index]
        if self.variadic and self.parameters:
            return self.parameters[-1]
        return None

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.parameters if p.required)

    def usage(self) -> str:
        parts = [self.name]
        for p in self.parameters:
            parts.append(f"<{p.name}>" if p.required else f"[{p.name}]")
        if self.variadic:
            parts.append("...")
        return " ".join(parts)
