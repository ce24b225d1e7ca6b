"""
Scoring engine.

Responsibilities:
- Compute four 0-100 sub-scores (skill match, resource fit, timeline
  feasibility, goal alignment) and a weighted total per path.
- Rank paths by total score, stable on ties.
- Record the raw quantities behind every sub-score in the trace.

Invariant:
Given identical inputs, this module always returns the same scores and trace.
"""

from typing import Dict, List, Optional

from .config import EngineConfig
from .errors import ValidationError
from .logger import get_logger
from .models import DecisionPath, Profile, ScoreBreakdown, ScoringWeights
from .normalize import keywords, skill_key
from .schema import ensure_valid_path, ensure_valid_profile, ensure_valid_weights
from .trace import ExplainabilityTrace

logger = get_logger()


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def profile_skill_levels(profile: Profile) -> Dict[str, int]:
    return {skill_key(s.name): s.level for s in profile.skills}


class ScoringEngine:
    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = (config or EngineConfig.default()).scoring

    def skill_match(self, profile: Profile, path: DecisionPath, trace: Optional[ExplainabilityTrace] = None) -> float:
        """Share of required skill weight (weighted by required level) the profile meets."""
        trace = trace if trace is not None else ExplainabilityTrace()
        if not path.required_skills:
            trace.record("skill_match", "Path requires no skills; full match", result=100.0, required_skills=0)
            return 100.0

        levels = profile_skill_levels(profile)
        required_weight = 0
        matched_weight = 0
        matched = 0
        for req in path.required_skills:
            required_weight += req.level
            if levels.get(skill_key(req.name), 0) >= req.level:
                matched_weight += req.level
                matched += 1

        score = clamp(matched_weight / required_weight * 100.0, 0.0, 100.0)
        trace.record(
            "skill_match",
            f"{matched}/{len(path.required_skills)} required skills met; "
            f"matched weight {matched_weight} of {required_weight}",
            result=round(score, 2),
            matched_skills=matched,
            required_skills=len(path.required_skills),
            matched_weight=matched_weight,
            required_weight=required_weight,
        )
        return score

    def resource_fit(self, profile: Profile, path: DecisionPath, trace: Optional[ExplainabilityTrace] = None) -> float:
        trace = trace if trace is not None else ExplainabilityTrace()
        investment = path.required_resources.financial_investment
        funds = profile.constraints.financial_resources
        required_hours = path.required_resources.time_commitment_hours_per_week
        available_hours = profile.constraints.hours_per_week

        financial_penalty = 0.0
        if investment > funds:
            shortfall_fraction = (investment - funds) / investment
            financial_penalty = self.config.financial_penalty_max * shortfall_fraction

        time_penalty = 0.0
        if required_hours > available_hours:
            overrun_fraction = (required_hours - available_hours) / required_hours
            time_penalty = self.config.time_penalty_max * overrun_fraction

        score = clamp(100.0 - financial_penalty - time_penalty, 0.0, 100.0)
        trace.record(
            "resource_fit",
            f"100 - financial penalty {financial_penalty:.2f} - time penalty {time_penalty:.2f}",
            result=round(score, 2),
            financial_investment=investment,
            financial_resources=funds,
            required_hours_per_week=required_hours,
            available_hours_per_week=available_hours,
        )
        return score

    def timeline_feasibility(self, profile: Profile, path: DecisionPath, trace: Optional[ExplainabilityTrace] = None) -> float:
        trace = trace if trace is not None else ExplainabilityTrace()
        required_hours = path.required_resources.time_commitment_hours_per_week
        available_hours = profile.constraints.hours_per_week
        if required_hours == 0:
            score = 100.0
        else:
            score = clamp(available_hours / required_hours * 100.0, 0.0, 100.0)
        trace.record(
            "timeline_feasibility",
            f"min(100, {available_hours:g}h available / {required_hours:g}h required * 100)",
            result=round(score, 2),
            required_hours_per_week=required_hours,
            available_hours_per_week=available_hours,
        )
        return score

    def goal_alignment(self, profile: Profile, path: DecisionPath, trace: Optional[ExplainabilityTrace] = None) -> float:
        """Keyword overlap coefficient between expected outcomes and all goal text."""
        trace = trace if trace is not None else ExplainabilityTrace()
        goal_words = keywords(profile.goals.all_text())
        outcome_words = keywords(path.expected_outcomes)
        if not goal_words or not outcome_words:
            score = self.config.neutral_goal_alignment
            trace.record(
                "goal_alignment",
                "No goal or outcome text to compare; neutral score",
                result=score,
                goal_keywords=len(goal_words),
                outcome_keywords=len(outcome_words),
            )
            return score

        shared = sorted(goal_words & outcome_words)
        score = clamp(len(shared) / min(len(goal_words), len(outcome_words)) * 100.0, 0.0, 100.0)
        trace.record(
            "goal_alignment",
            f"{len(shared)} shared keywords over min({len(goal_words)}, {len(outcome_words)})",
            result=round(score, 2),
            shared_keywords=shared,
            goal_keywords=len(goal_words),
            outcome_keywords=len(outcome_words),
        )
        return score

    def _score(self, profile: Profile, path: DecisionPath, weights: ScoringWeights) -> ScoreBreakdown:
        trace = ExplainabilityTrace()
        skill = self.skill_match(profile, path, trace)
        resource = self.resource_fit(profile, path, trace)
        timeline = self.timeline_feasibility(profile, path, trace)
        goal = self.goal_alignment(profile, path, trace)

        total = (
            skill * weights.skill_match
            + resource * weights.resource_fit
            + timeline * weights.timeline_feasibility
            + goal * weights.goal_alignment
        )
        total = clamp(total, 0.0, 100.0)
        trace.record(
            "total_score",
            "Weighted sum of sub-scores",
            result=round(total, 2),
            weights=list(weights.as_tuple()),
            sub_scores=[round(skill, 2), round(resource, 2), round(timeline, 2), round(goal, 2)],
        )
        return ScoreBreakdown(
            path_id=path.path_id,
            skill_match=round(skill, 2),
            resource_fit=round(resource, 2),
            timeline_feasibility=round(timeline, 2),
            goal_alignment=round(goal, 2),
            total_score=round(total, 2),
            trace=trace,
        )

    def score_path(self, profile: Profile, path: DecisionPath, weights: ScoringWeights) -> ScoreBreakdown:
        ensure_valid_weights(weights)
        ensure_valid_profile(profile)
        ensure_valid_path(path)
        breakdown = self._score(profile, path, weights)
        logger.record_paths_scored()
        logger.debug("Scored path", path_id=path.path_id, total_score=breakdown.total_score)
        return breakdown

    def score_all_paths(
        self, profile: Profile, paths: List[DecisionPath], weights: ScoringWeights
    ) -> List[ScoreBreakdown]:
        """Score every path and sort descending by total; ties keep input order."""
        ensure_valid_weights(weights)
        ensure_valid_profile(profile)
        ids = [p.path_id for p in paths]
        if len(set(ids)) != len(ids):
            raise ValidationError("Path ids must be unique", errors=[f"Duplicate path ids in {ids}"])
        for path in paths:
            ensure_valid_path(path)
        breakdowns = [self._score(profile, path, weights) for path in paths]
        logger.record_paths_scored(len(breakdowns))
        return sorted(breakdowns, key=lambda b: -b.total_score)
