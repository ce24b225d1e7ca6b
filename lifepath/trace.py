"""
Explainability trace.

An append-only record of the rules and numeric inputs behind a computed value.
It travels with the value it annotates (score breakdowns, simulations).
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

TraceValue = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]


class TraceStep(BaseModel):
    """One derivation step: which rule fired, on which inputs, with what result."""

    model_config = ConfigDict(frozen=True)

    rule: str
    message: str
    inputs: Dict[str, TraceValue] = Field(default_factory=dict)
    result: Optional[TraceValue] = None

    def describe(self) -> str:
        return f"[{self.rule}] {self.message}"


class ExplainabilityTrace(BaseModel):
    """Ordered list of derivation steps. Steps can be appended, never removed."""

    steps: List[TraceStep] = Field(default_factory=list)

    def record(self, rule: str, message: str, result: Optional[TraceValue] = None, **inputs: TraceValue) -> TraceStep:
        step = TraceStep(rule=rule, message=message, inputs=inputs, result=result)
        self.steps.append(step)
        return step

    def extend(self, other: "ExplainabilityTrace") -> None:
        self.steps.extend(other.steps)

    def rules(self) -> List[str]:
        return [s.rule for s in self.steps]

    def find(self, rule: str) -> Optional[TraceStep]:
        """Return the first step recorded for a rule, if any."""
        for step in self.steps:
            if step.rule == rule:
                return step
        return None

    def describe(self) -> List[str]:
        return [s.describe() for s in self.steps]

    def __len__(self) -> int:
        return len(self.steps)
