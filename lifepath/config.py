"""
Engine configuration tables.

Base success rates, adjustment sizes, risk thresholds and milestone templates
are plain data handed to the engines at construction time, so tests can swap
in fixtures. Every table keyed by PathType must cover all path types.
"""

import json
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import PathType

# Irreducible uncertainty bounds. Deliberately not part of EngineConfig.
PROBABILITY_FLOOR = 0.10
PROBABILITY_CEILING = 0.90

WEEKS_PER_MONTH = 4.33


class MilestoneTemplate(BaseModel):
    """A milestone placed at `fraction` of the path's stated timeline."""

    name: str
    fraction: float = Field(..., gt=0, le=1)
    success_criteria: str = ""


class ScoringConfig(BaseModel):
    financial_penalty_max: float = Field(60.0, ge=0, le=100)
    time_penalty_max: float = Field(40.0, ge=0, le=100)
    neutral_goal_alignment: float = Field(50.0, ge=0, le=100)


class SkillGapConfig(BaseModel):
    learning_months_per_severity: float = Field(0.5, gt=0)
    absent_skill_multiplier: float = Field(1.5, ge=1)
    default_complexity: float = Field(1.0, gt=0)


class SimulationConfig(BaseModel):
    base_success_rates: Dict[PathType, float] = Field(
        default_factory=lambda: {
            PathType.CAREER: 0.55,
            PathType.STARTUP: 0.30,
            PathType.EDUCATION: 0.65,
        }
    )
    skill_bonus_threshold: float = 50.0
    skill_bonus_step: float = Field(20.0, gt=0)
    skill_bonus_per_step: float = 0.10
    critical_resource_penalty: float = 0.15
    critical_financial_gap_ratio: float = 0.5
    aggressive_timeline_penalty: float = 0.10
    aggressive_timeline_ratio: float = Field(0.75, gt=0)
    min_time_stretch: float = Field(0.75, gt=0)
    max_time_stretch: float = Field(2.0, gt=0)
    high_severity_threshold: int = Field(7, ge=1, le=10)
    medium_severity_threshold: int = Field(4, ge=1, le=10)
    buffer_months_per_severe_gap: float = Field(1.0, ge=0)
    market_risk_threshold: float = Field(0.6, ge=0, le=1)
    market_risk_high_threshold: float = Field(0.8, ge=0, le=1)
    time_conflict_high_ratio: float = Field(1.5, ge=1)
    milestone_templates: Dict[PathType, List[MilestoneTemplate]] = Field(
        default_factory=lambda: dict(DEFAULT_MILESTONE_TEMPLATES)
    )

    @field_validator("base_success_rates")
    @classmethod
    def _rates_in_unit_interval(cls, v: Dict[PathType, float]) -> Dict[PathType, float]:
        for path_type, rate in v.items():
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"base success rate for {path_type.value} must be within [0, 1]")
        return v

    @field_validator("milestone_templates")
    @classmethod
    def _fractions_increasing(cls, v: Dict[PathType, List[MilestoneTemplate]]):
        for path_type, template in v.items():
            if not template:
                raise ValueError(f"milestone template for {path_type.value} is empty")
            fractions = [m.fraction for m in template]
            if any(b <= a for a, b in zip(fractions, fractions[1:])):
                raise ValueError(f"milestone fractions for {path_type.value} must be strictly increasing")
        return v

    @model_validator(mode="after")
    def _tables_cover_all_path_types(self):
        for table_name in ("base_success_rates", "milestone_templates"):
            missing = [p.value for p in PathType if p not in getattr(self, table_name)]
            if missing:
                raise ValueError(f"{table_name} missing path types: {', '.join(missing)}")
        if self.min_time_stretch > self.max_time_stretch:
            raise ValueError("min_time_stretch must not exceed max_time_stretch")
        return self


class SchedulerConfig(BaseModel):
    gap_task_severity_threshold: int = Field(7, ge=1, le=10)
    gap_hours_per_severity: float = Field(4.0, gt=0)
    weeks_per_month: float = Field(WEEKS_PER_MONTH, gt=0)


class EngineConfig(BaseModel):
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    skill_gap: SkillGapConfig = Field(default_factory=SkillGapConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)

    @classmethod
    def default(cls) -> "EngineConfig":
        return cls()

    @classmethod
    def from_file(cls, path: Path) -> "EngineConfig":
        with path.open("r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))


DEFAULT_MILESTONE_TEMPLATES: Dict[PathType, List[MilestoneTemplate]] = {
    PathType.CAREER: [
        MilestoneTemplate(name="Skill foundation", fraction=0.25,
                          success_criteria="Core required skills practised on a real project"),
        MilestoneTemplate(name="Portfolio ready", fraction=0.5,
                          success_criteria="Two portfolio pieces published and CV updated"),
        MilestoneTemplate(name="Active applications", fraction=0.75,
                          success_criteria="At least ten targeted applications and three interviews"),
        MilestoneTemplate(name="Role secured", fraction=1.0,
                          success_criteria="Offer accepted in the target role"),
    ],
    PathType.STARTUP: [
        MilestoneTemplate(name="Problem validated", fraction=0.2,
                          success_criteria="Twenty customer interviews confirm the problem"),
        MilestoneTemplate(name="MVP launched", fraction=0.45,
                          success_criteria="First version in the hands of pilot users"),
        MilestoneTemplate(name="First paying customers", fraction=0.7,
                          success_criteria="Recurring revenue from at least three customers"),
        MilestoneTemplate(name="Sustainable traction", fraction=1.0,
                          success_criteria="Month-over-month growth for one quarter"),
    ],
    PathType.EDUCATION: [
        MilestoneTemplate(name="Enrolled", fraction=0.1,
                          success_criteria="Admission confirmed and funding arranged"),
        MilestoneTemplate(name="Midpoint review", fraction=0.5,
                          success_criteria="Half of the coursework completed with passing grades"),
        MilestoneTemplate(name="Credential earned", fraction=1.0,
                          success_criteria="Final assessment passed and credential issued"),
    ],
}
