"""
Outcome simulation.

Responsibilities:
- Estimate a success probability from a per-path-type base rate plus additive
  adjustments, hard-clamped to [PROBABILITY_FLOOR, PROBABILITY_CEILING].
- Lay out a milestone timeline from the path type's template.
- Emit one risk indicator per risk predicate that fires.

Invariant:
No clock, no randomness. Identical inputs give identical results.
"""

import math
from typing import List, Optional

from .config import PROBABILITY_CEILING, PROBABILITY_FLOOR, EngineConfig
from .logger import get_logger
from .models import (
    DecisionPath,
    Milestone,
    Profile,
    RiskIndicator,
    RiskSeverity,
    RiskType,
    SimulationResult,
    SkillGap,
    Timeline,
)
from .schema import ensure_valid_path, ensure_valid_profile
from .scoring import ScoringEngine, clamp
from .skill_gap import SkillGapAnalyzer
from .trace import ExplainabilityTrace

logger = get_logger()

FINANCIAL_MITIGATIONS = [
    "Reduce the up-front investment or phase spending over milestones",
    "Secure savings, a grant, a scholarship or part-time income before starting",
    "Look for employer sponsorship or co-funding",
]
SKILL_MITIGATIONS = [
    "Schedule focused learning blocks for the highest-impact gaps first",
    "Find a mentor or structured course for skills that are entirely missing",
    "Build a small project that exercises each missing skill",
]
MARKET_MITIGATIONS = [
    "Differentiate with a niche specialisation or a portfolio of concrete results",
    "Grow the professional network in the target field before applying or launching",
    "Keep a fallback option that reuses the same skills",
]
TIME_MITIGATIONS = [
    "Free up weekly hours by renegotiating existing commitments",
    "Extend the timeline to match the hours actually available",
    "Drop low-priority tasks from the weekly plan",
]


class SimulationEngine:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        scoring_engine: Optional[ScoringEngine] = None,
        gap_analyzer: Optional[SkillGapAnalyzer] = None,
    ):
        config = config or EngineConfig.default()
        self.config = config.simulation
        self.scoring = scoring_engine or ScoringEngine(config)
        self.gaps = gap_analyzer or SkillGapAnalyzer(config)

    def time_stretch(self, profile: Profile, path: DecisionPath) -> float:
        """Ratio of required to available weekly hours, clamped to the configured range."""
        required = path.required_resources.time_commitment_hours_per_week
        available = profile.constraints.hours_per_week
        if required == 0:
            return 1.0
        if available == 0:
            return self.config.max_time_stretch
        return clamp(required / available, self.config.min_time_stretch, self.config.max_time_stretch)

    def critical_resource_gaps(self, profile: Profile, path: DecisionPath) -> List[str]:
        reasons = []
        investment = path.required_resources.financial_investment
        funds = profile.constraints.financial_resources
        if investment > funds:
            shortfall = investment - funds
            if funds == 0 or shortfall / funds > self.config.critical_financial_gap_ratio:
                reasons.append("financial")
        if path.required_resources.time_commitment_hours_per_week > profile.constraints.hours_per_week:
            reasons.append("time")
        return reasons

    def success_probability(
        self,
        profile: Profile,
        path: DecisionPath,
        gaps: List[SkillGap],
        skill_match: float,
        trace: ExplainabilityTrace,
    ) -> float:
        cfg = self.config
        base = cfg.base_success_rates[path.path_type]
        trace.record("base_rate", f"Base rate for {path.path_type.value} paths", result=base,
                     path_type=path.path_type.value)

        adjustment = 0.0
        if skill_match > cfg.skill_bonus_threshold:
            steps = math.floor((skill_match - cfg.skill_bonus_threshold) / cfg.skill_bonus_step)
            if steps > 0:
                bonus = steps * cfg.skill_bonus_per_step
                adjustment += bonus
                trace.record("skill_match_bonus", f"{steps} full step(s) of skill match above "
                             f"{cfg.skill_bonus_threshold:g}", result=bonus, skill_match=round(skill_match, 2))

        critical = self.critical_resource_gaps(profile, path)
        if critical:
            adjustment -= cfg.critical_resource_penalty
            trace.record("critical_resource_penalty", "Required resources critically unmet",
                         result=-cfg.critical_resource_penalty, unmet=critical)

        stretch = self.time_stretch(profile, path)
        learning_months = sum(g.learning_time_estimate_months for g in gaps)
        realistic_months = learning_months + path.estimated_timeline_months * stretch
        if path.estimated_timeline_months < cfg.aggressive_timeline_ratio * realistic_months:
            adjustment -= cfg.aggressive_timeline_penalty
            trace.record(
                "aggressive_timeline_penalty",
                f"Stated {path.estimated_timeline_months:g} months is short of "
                f"{cfg.aggressive_timeline_ratio:g} x {realistic_months:.2f} realistic months",
                result=-cfg.aggressive_timeline_penalty,
                stated_months=path.estimated_timeline_months,
                learning_months=round(learning_months, 2),
                time_stretch=round(stretch, 4),
            )

        raw = base + adjustment
        probability = round(clamp(raw, PROBABILITY_FLOOR, PROBABILITY_CEILING), 4)
        trace.record("success_probability", f"Clamp {raw:.4f} to [{PROBABILITY_FLOOR}, {PROBABILITY_CEILING}]",
                     result=probability, base=base, adjustment=round(adjustment, 4))
        return probability

    def timeline(
        self,
        profile: Profile,
        path: DecisionPath,
        gaps: List[SkillGap],
        probability: float,
        trace: ExplainabilityTrace,
    ) -> Timeline:
        template = self.config.milestone_templates[path.path_type]
        stretch = self.time_stretch(profile, path)
        severe = sum(1 for g in gaps if g.severity >= self.config.high_severity_threshold)
        buffer = severe * self.config.buffer_months_per_severe_gap

        milestones: List[Milestone] = []
        previous = 0.0
        n = len(template)
        for i, step in enumerate(template, start=1):
            offset = round(step.fraction * path.estimated_timeline_months * stretch + buffer, 2)
            # Rounding can collapse neighbours; keep offsets strictly increasing.
            if offset <= previous:
                offset = round(previous + 0.01, 2)
            milestones.append(Milestone(
                name=step.name,
                month_offset=offset,
                completion_probability=round(probability ** (i / n), 4),
                success_criteria=step.success_criteria,
            ))
            previous = offset

        trace.record(
            "timeline",
            f"{n} milestones over {previous:g} months",
            result=previous,
            stated_months=path.estimated_timeline_months,
            time_stretch=round(stretch, 4),
            buffer_months=buffer,
            severe_gaps=severe,
        )
        return Timeline(total_months=previous, milestones=milestones)

    def risk_indicators(self, profile: Profile, path: DecisionPath, gaps: List[SkillGap]) -> List[RiskIndicator]:
        cfg = self.config
        risks: List[RiskIndicator] = []

        investment = path.required_resources.financial_investment
        funds = profile.constraints.financial_resources
        if investment > funds:
            severity = RiskSeverity.HIGH if "financial" in self.critical_resource_gaps(profile, path) else RiskSeverity.MEDIUM
            risks.append(RiskIndicator(
                risk_type=RiskType.FINANCIAL,
                severity=severity,
                description=f"Requires {investment:g} but only {funds:g} is available",
                mitigations=list(FINANCIAL_MITIGATIONS),
            ))

        if gaps:
            worst = max(g.severity for g in gaps)
            if worst >= cfg.high_severity_threshold:
                severity = RiskSeverity.HIGH
            elif worst >= cfg.medium_severity_threshold:
                severity = RiskSeverity.MEDIUM
            else:
                severity = RiskSeverity.LOW
            names = ", ".join(g.skill_name for g in gaps)
            risks.append(RiskIndicator(
                risk_type=RiskType.SKILL,
                severity=severity,
                description=f"{len(gaps)} skill gap(s): {names}",
                mitigations=list(SKILL_MITIGATIONS),
            ))

        competitiveness = path.market_competitiveness
        if competitiveness is not None and competitiveness >= cfg.market_risk_threshold:
            severity = RiskSeverity.HIGH if competitiveness >= cfg.market_risk_high_threshold else RiskSeverity.MEDIUM
            risks.append(RiskIndicator(
                risk_type=RiskType.MARKET,
                severity=severity,
                description=f"Highly competitive field (competitiveness {competitiveness:.2f})",
                mitigations=list(MARKET_MITIGATIONS),
            ))

        required = path.required_resources.time_commitment_hours_per_week
        available = profile.constraints.hours_per_week
        if required > available:
            ratio = required / available if available > 0 else math.inf
            severity = RiskSeverity.HIGH if ratio > cfg.time_conflict_high_ratio else RiskSeverity.MEDIUM
            risks.append(RiskIndicator(
                risk_type=RiskType.TIME_CONFLICT,
                severity=severity,
                description=f"Needs {required:g}h per week but {available:g}h are available",
                mitigations=list(TIME_MITIGATIONS),
            ))

        return risks

    def simulate(self, profile: Profile, path: DecisionPath, skill_match: Optional[float] = None) -> SimulationResult:
        ensure_valid_profile(profile)
        ensure_valid_path(path)

        trace = ExplainabilityTrace()
        gaps, gap_trace = self.gaps.analyze_with_trace(profile, path)
        trace.extend(gap_trace)
        if skill_match is None:
            skill_match = self.scoring.skill_match(profile, path, trace)

        probability = self.success_probability(profile, path, gaps, skill_match, trace)
        timeline = self.timeline(profile, path, gaps, probability, trace)
        risks = self.risk_indicators(profile, path, gaps)

        logger.record_simulation()
        logger.debug("Simulated path", path_id=path.path_id, success_probability=probability,
                     risks=[r.risk_type.value for r in risks])
        return SimulationResult(
            path_id=path.path_id,
            success_probability=probability,
            timeline=timeline,
            risk_indicators=risks,
            skill_gaps=gaps,
            trace=trace,
        )
