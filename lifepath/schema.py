"""
Validation of profiles, paths, weights and task sets.

Field-level checks (types, ranges) are done by the pydantic models. The checks
here cover cross-field invariants and return a list of messages; an empty list
means valid. The `ensure_*` helpers raise instead, and the `parse_*` helpers turn
raw JSON-like dicts into models, reporting pydantic errors the same way.
"""

from typing import Any, Dict, Iterable, List

from pydantic import ValidationError as PydanticValidationError

from .config import EngineConfig
from .errors import InvalidWeightsError, ValidationError
from .models import DecisionPath, Profile, RoadmapTask, ScoringWeights
from .normalize import skill_key

WEIGHT_SUM_TOLERANCE = 1e-6


def _duplicates(keys: Iterable[str]) -> List[str]:
    seen = set()
    dupes: List[str] = []
    for k in keys:
        if k in seen and k not in dupes:
            dupes.append(k)
        seen.add(k)
    return dupes


def validate_path(path: DecisionPath) -> List[str]:
    errors: List[str] = []
    for i, req in enumerate(path.required_skills):
        if not req.name.strip():
            errors.append(f"Path '{path.path_id}' skill requirement #{i + 1} has a blank name")
    names = [skill_key(r.name) for r in path.required_skills if r.name.strip()]
    for dupe in _duplicates(names):
        errors.append(f"Path '{path.path_id}' requires skill '{dupe}' more than once")
    for i, outcome in enumerate(path.expected_outcomes):
        if not isinstance(outcome, str):
            errors.append(f"Path '{path.path_id}' expected outcome #{i + 1} must be a string")
    return errors


def validate_profile(profile: Profile) -> List[str]:
    errors: List[str] = []
    for i, skill in enumerate(profile.skills):
        if not skill.name.strip():
            errors.append(f"Profile skill #{i + 1} has a blank name")
    for dupe in _duplicates(skill_key(s.name) for s in profile.skills if s.name.strip()):
        errors.append(f"Profile lists skill '{dupe}' more than once")
    for dupe in _duplicates(p.path_id for p in profile.paths):
        errors.append(f"Path id '{dupe}' is not unique")
    for path in profile.paths:
        errors.extend(validate_path(path))
    return errors


def validate_weights(weights: ScoringWeights) -> List[str]:
    errors: List[str] = []
    names = ("skillMatch", "resourceFit", "timelineFeasibility", "goalAlignment")
    for name, value in zip(names, weights.as_tuple()):
        if value < 0:
            errors.append(f"Weight '{name}' must be non-negative (got {value})")
    total = sum(weights.as_tuple())
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        errors.append(f"Weights must sum to 1.0 (got {total:.6f})")
    return errors


def validate_tasks(tasks: List[RoadmapTask]) -> List[str]:
    """Unique ids, no self references, and no references to unknown tasks."""
    errors: List[str] = []
    ids = [t.task_id for t in tasks]
    for dupe in _duplicates(ids):
        errors.append(f"Task id '{dupe}' is not unique")
    known = set(ids)
    for task in tasks:
        for dep in task.dependencies:
            if dep == task.task_id:
                errors.append(f"Task '{task.task_id}' depends on itself")
            elif dep not in known:
                errors.append(f"Task '{task.task_id}' depends on unknown task '{dep}'")
    return errors


def ensure_valid_profile(profile: Profile) -> None:
    errors = validate_profile(profile)
    if errors:
        raise ValidationError("Invalid profile", errors=errors, profile_id=profile.profile_id)


def ensure_valid_path(path: DecisionPath) -> None:
    errors = validate_path(path)
    if errors:
        raise ValidationError("Invalid path", errors=errors, path_id=path.path_id)


def ensure_valid_weights(weights: ScoringWeights) -> None:
    errors = validate_weights(weights)
    if errors:
        raise InvalidWeightsError("Invalid scoring weights", errors=errors)


def ensure_valid_tasks(tasks: List[RoadmapTask]) -> None:
    errors = validate_tasks(tasks)
    if errors:
        raise ValidationError("Invalid task set", errors=errors)


def _pydantic_messages(exc: PydanticValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"]) or "<root>"
        messages.append(f"{location}: {err['msg']}")
    return messages


def parse_profile(data: Dict[str, Any]) -> Profile:
    try:
        profile = Profile.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Malformed profile", errors=_pydantic_messages(e)) from e
    ensure_valid_profile(profile)
    return profile


def parse_weights(data: Dict[str, Any]) -> ScoringWeights:
    try:
        weights = ScoringWeights.model_validate(data)
    except PydanticValidationError as e:
        raise InvalidWeightsError("Malformed scoring weights", errors=_pydantic_messages(e)) from e
    ensure_valid_weights(weights)
    return weights


def parse_engine_config(data: Dict[str, Any]) -> EngineConfig:
    try:
        return EngineConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Malformed engine config", errors=_pydantic_messages(e)) from e


def parse_tasks(data: List[Dict[str, Any]]) -> List[RoadmapTask]:
    tasks: List[RoadmapTask] = []
    errors: List[str] = []
    for i, item in enumerate(data):
        try:
            tasks.append(RoadmapTask.model_validate(item))
        except PydanticValidationError as e:
            errors.extend(f"task #{i + 1} {m}" for m in _pydantic_messages(e))
    if errors:
        raise ValidationError("Malformed task list", errors=errors)
    return tasks
