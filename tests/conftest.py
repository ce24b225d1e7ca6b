"""
Pytest configuration and shared fixtures.
"""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from lifepath.models import (
    Constraints,
    DecisionPath,
    Goals,
    PathType,
    Profile,
    RequiredResources,
    RoadmapTask,
    SimulationResult,
    Skill,
    SkillRequirement,
    Timeline,
)


@pytest.fixture
def cloud_path() -> DecisionPath:
    """Career path the engineer profile fully covers."""
    return DecisionPath(
        path_id="cloud-engineer",
        path_type=PathType.CAREER,
        title="Cloud engineer",
        required_skills=[
            SkillRequirement(name="Python", level=5),
            SkillRequirement(name="AWS", level=5),
        ],
        required_resources=RequiredResources(financial_investment=0, time_commitment_hours_per_week=10),
        expected_outcomes=["Cloud engineering role", "Lead platform migrations"],
        estimated_timeline_months=6,
    )


@pytest.fixture
def startup_path() -> DecisionPath:
    """Expensive, time-hungry startup path in a crowded market."""
    return DecisionPath(
        path_id="saas-startup",
        path_type=PathType.STARTUP,
        title="SaaS startup",
        required_skills=[
            SkillRequirement(name="Python", level=7),
            SkillRequirement(name="Sales", level=6),
            SkillRequirement(name="Fundraising", level=5, importance=2.0),
        ],
        required_resources=RequiredResources(financial_investment=20000, time_commitment_hours_per_week=40),
        expected_outcomes=["Launch a SaaS product", "Reach profitability"],
        estimated_timeline_months=18,
        market_competitiveness=0.85,
    )


@pytest.fixture
def masters_path() -> DecisionPath:
    return DecisionPath(
        path_id="ml-masters",
        path_type=PathType.EDUCATION,
        title="Machine learning master's",
        required_skills=[
            SkillRequirement(name="Python", level=6),
            SkillRequirement(name="Statistics", level=7),
            SkillRequirement(name="Machine Learning", level=6),
        ],
        required_resources=RequiredResources(financial_investment=15000, time_commitment_hours_per_week=25),
        expected_outcomes=["Master's degree in machine learning", "Research growth"],
        estimated_timeline_months=24,
    )


@pytest.fixture
def engineer_profile(cloud_path, startup_path, masters_path) -> Profile:
    """Backend engineer with Python 8 / AWS 6, 20h per week and modest savings."""
    return Profile(
        profile_id="p-1",
        owner_id="owner-1",
        background="Backend developer, five years of Python",
        skills=[
            Skill(name="Python", level=8, years_experience=5),
            Skill(name="AWS", level=6, years_experience=2),
        ],
        constraints=Constraints(hours_per_week=20, financial_resources=5000, geographic=["Lisbon"]),
        goals=Goals(
            short_term=["Move into cloud engineering"],
            long_term=["Lead a platform team"],
            priorities=["remote work", "growth"],
        ),
        paths=[startup_path, cloud_path, masters_path],
    )


@pytest.fixture
def bare_simulation() -> SimulationResult:
    """Simulation for the cloud path with no milestones or gaps, for scheduler tests."""
    return SimulationResult(
        path_id="cloud-engineer",
        success_probability=0.5,
        timeline=Timeline(total_months=0, milestones=[]),
    )


@pytest.fixture
def task_factory():
    def make(task_id: str, hours: float, deps=None, priority: str = "medium", **kwargs) -> RoadmapTask:
        return RoadmapTask(
            task_id=task_id,
            description=f"Task {task_id}",
            estimated_hours=hours,
            priority=priority,
            dependencies=list(deps or []),
            **kwargs,
        )
    return make


@pytest.fixture
def profile_json(engineer_profile) -> Dict[str, Any]:
    """Engineer profile as camelCase JSON data."""
    return engineer_profile.to_dict()


@pytest.fixture
def profile_file(tmp_path, profile_json) -> Path:
    path = tmp_path / "profile.json"
    path.write_text(json.dumps(profile_json, indent=2))
    return path
