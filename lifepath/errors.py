"""
Error taxonomy for LifePath.

Validation problems fail before any computation. Constraint violations are
either hard failures (dependency cycles) or warnings attached to a result
(budget overruns). Collaborator failures are recoverable at the coordinator.
"""

from typing import Any, List, Optional


class LifePathError(Exception):
    """Base error. Carries a context dict (path id, rule, task ids) for diagnosis."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in sorted(self.context.items()))
        return f"{self.message} ({details})"


class ValidationError(LifePathError):
    """Malformed profile, path, weights or task set."""

    def __init__(self, message: str, errors: Optional[List[str]] = None, **context: Any):
        super().__init__(message, **context)
        self.errors = list(errors or [])

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        return base + ": " + "; ".join(self.errors)


class InvalidWeightsError(ValidationError):
    """Scoring weights are negative or do not sum to 1.0."""
    pass


class ConstraintViolation(LifePathError):
    """A scheduling constraint could not be honoured."""
    pass


class CyclicDependencyError(ConstraintViolation):
    """The task dependency relation contains a cycle."""

    def __init__(self, message: str, cycle: Optional[List[str]] = None, **context: Any):
        super().__init__(message, **context)
        self.cycle = list(cycle or [])


class TaskExceedsBudgetWarning(ConstraintViolation, UserWarning):
    """A single task needs more hours than the weekly budget allows."""
    pass


class CollaboratorError(LifePathError):
    """An external collaborator (profile store, task generator) failed."""
    pass


class CollaboratorTimeout(CollaboratorError):
    pass


class CollaboratorUnavailable(CollaboratorError):
    pass


class ProfileNotFoundError(LifePathError):
    """The profile source has no profile with the requested id."""
    pass
