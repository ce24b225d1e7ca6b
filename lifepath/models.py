"""
Data model for decision profiles, paths and the engines' outputs.

Every record is a pydantic model. Python attributes are snake_case; the wire
format (JSON) is camelCase, and both spellings are accepted on input.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .trace import ExplainabilityTrace


class PathType(str, Enum):
    CAREER = "career"
    STARTUP = "startup"
    EDUCATION = "education"


class RiskType(str, Enum):
    FINANCIAL = "financial"
    SKILL = "skill"
    MARKET = "market"
    TIME_CONFLICT = "time_conflict"


class RiskSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank: high first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class LifePathModel(BaseModel):
    """Base for all wire records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


# Profile ------------------------------------------------------------------

class Skill(LifePathModel):
    name: str = Field(..., min_length=1)
    level: int = Field(..., ge=1, le=10)
    years_experience: float = Field(0.0, ge=0)


class Constraints(LifePathModel):
    hours_per_week: float = Field(0.0, ge=0)
    financial_resources: float = Field(0.0, ge=0)
    geographic: List[str] = Field(default_factory=list)
    personal: List[str] = Field(default_factory=list)


class Goals(LifePathModel):
    short_term: List[str] = Field(default_factory=list)
    long_term: List[str] = Field(default_factory=list)
    priorities: List[str] = Field(default_factory=list)

    def all_text(self) -> List[str]:
        return [*self.short_term, *self.long_term, *self.priorities]


class SkillRequirement(LifePathModel):
    """A skill a path needs. `importance` weights impact-on-success; `complexity` scales learning time."""

    name: str
    level: int = Field(..., ge=1, le=10)
    importance: float = Field(1.0, gt=0)
    complexity: Optional[float] = Field(None, gt=0)


class RequiredResources(LifePathModel):
    financial_investment: float = Field(0.0, ge=0)
    time_commitment_hours_per_week: float = Field(0.0, ge=0)
    network_requirements: List[str] = Field(default_factory=list)


class DecisionPath(LifePathModel):
    """One candidate option being scored."""

    path_id: str = Field(..., min_length=1)
    path_type: PathType
    title: str = ""
    required_skills: List[SkillRequirement] = Field(default_factory=list)
    required_resources: RequiredResources = Field(default_factory=RequiredResources)
    expected_outcomes: List[str] = Field(default_factory=list)
    estimated_timeline_months: float = Field(..., gt=0)
    market_competitiveness: Optional[float] = Field(None, ge=0, le=1)


class Profile(LifePathModel):
    """Structured user context plus the candidate paths under consideration."""

    profile_id: Optional[str] = None
    owner_id: Optional[str] = None
    background: str = ""
    skills: List[Skill] = Field(default_factory=list)
    constraints: Constraints = Field(default_factory=Constraints)
    goals: Goals = Field(default_factory=Goals)
    paths: List[DecisionPath] = Field(default_factory=list)

    def get_path(self, path_id: str) -> Optional[DecisionPath]:
        for path in self.paths:
            if path.path_id == path_id:
                return path
        return None


class ScoringWeights(LifePathModel):
    """Criterion weights. Must sum to 1.0; checked by `schema.validate_weights`."""

    skill_match: float = 0.35
    resource_fit: float = 0.25
    timeline_feasibility: float = 0.2
    goal_alignment: float = 0.2

    def as_tuple(self):
        return (self.skill_match, self.resource_fit, self.timeline_feasibility, self.goal_alignment)


# Engine outputs -----------------------------------------------------------

class ScoreBreakdown(LifePathModel):
    path_id: str
    skill_match: float = Field(..., ge=0, le=100)
    resource_fit: float = Field(..., ge=0, le=100)
    timeline_feasibility: float = Field(..., ge=0, le=100)
    goal_alignment: float = Field(..., ge=0, le=100)
    total_score: float = Field(..., ge=0, le=100)
    trace: ExplainabilityTrace = Field(default_factory=ExplainabilityTrace)


class SkillGap(LifePathModel):
    skill_name: str
    current_level: int = Field(..., ge=0, le=10)
    required_level: int = Field(..., ge=1, le=10)
    severity: int = Field(..., ge=1, le=10)
    impact_on_success: float = Field(..., ge=0, le=1)
    learning_time_estimate_months: float = Field(..., ge=0)


class Milestone(LifePathModel):
    name: str
    month_offset: float = Field(..., gt=0)
    completion_probability: float = Field(..., ge=0, le=1)
    success_criteria: str = ""


class Timeline(LifePathModel):
    total_months: float = Field(..., ge=0)
    milestones: List[Milestone] = Field(default_factory=list)


class RiskIndicator(LifePathModel):
    risk_type: RiskType
    severity: RiskSeverity
    description: str
    mitigations: List[str] = Field(default_factory=list)


class SimulationResult(LifePathModel):
    path_id: str
    success_probability: float = Field(..., ge=0.10, le=0.90)
    timeline: Timeline
    risk_indicators: List[RiskIndicator] = Field(default_factory=list)
    skill_gaps: List[SkillGap] = Field(default_factory=list)
    trace: ExplainabilityTrace = Field(default_factory=ExplainabilityTrace)


class RoadmapTask(LifePathModel):
    task_id: str = Field(..., min_length=1)
    description: str = ""
    estimated_hours: float = Field(..., gt=0)
    priority: Priority = Priority.MEDIUM
    category: str = "general"
    dependencies: List[str] = Field(default_factory=list)
    skill_name: Optional[str] = None


class Week(LifePathModel):
    week_number: int = Field(..., ge=1)
    start_date: date
    tasks: List[RoadmapTask] = Field(default_factory=list)
    total_hours: float = 0.0
    milestone: Optional[Milestone] = None


class Roadmap(LifePathModel):
    path_id: str
    start_date: date
    weekly_budget_hours: float
    weeks: List[Week] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def week_of(self, task_id: str) -> Optional[int]:
        for week in self.weeks:
            for task in week.tasks:
                if task.task_id == task_id:
                    return week.week_number
        return None


class AnalysisResult(LifePathModel):
    profile_id: Optional[str] = None
    ranked_paths: List[ScoreBreakdown] = Field(default_factory=list)
    simulations: List[SimulationResult] = Field(default_factory=list)
    roadmap: Optional[Roadmap] = None
    degraded: bool = False
    degradation_reasons: List[str] = Field(default_factory=list)
