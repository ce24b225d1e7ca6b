"""
Skill gap analysis.

Compares a path's required skills with the profile's current skills and
quantifies each shortfall: severity, learning time and impact on success.
"""

from typing import List, Optional, Tuple

from .config import EngineConfig
from .models import DecisionPath, Profile, SkillGap
from .normalize import skill_key
from .schema import ensure_valid_path, ensure_valid_profile
from .scoring import clamp, profile_skill_levels
from .trace import ExplainabilityTrace


class SkillGapAnalyzer:
    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = (config or EngineConfig.default()).skill_gap

    def analyze(self, profile: Profile, path: DecisionPath) -> List[SkillGap]:
        """Gaps ordered by impact on success, then severity (both descending)."""
        gaps, _ = self.analyze_with_trace(profile, path)
        return gaps

    def analyze_with_trace(self, profile: Profile, path: DecisionPath) -> Tuple[List[SkillGap], ExplainabilityTrace]:
        ensure_valid_profile(profile)
        ensure_valid_path(path)
        trace = ExplainabilityTrace()
        levels = profile_skill_levels(profile)
        max_importance = max((r.importance for r in path.required_skills), default=1.0)

        gaps: List[SkillGap] = []
        for req in path.required_skills:
            current = levels.get(skill_key(req.name), 0)
            if current >= req.level:
                continue

            # Levels are integers, so ceil(shortfall / 10 * 10) is the shortfall itself.
            severity = int(clamp(req.level - current, 1, 10))
            complexity = req.complexity if req.complexity is not None else self.config.default_complexity
            multiplier = self.config.absent_skill_multiplier if current == 0 else 1.0
            months = round(severity * self.config.learning_months_per_severity * complexity * multiplier, 2)
            impact = round(clamp(severity / 10 * (req.importance / max_importance), 0.0, 1.0), 4)

            gaps.append(SkillGap(
                skill_name=req.name,
                current_level=current,
                required_level=req.level,
                severity=severity,
                impact_on_success=impact,
                learning_time_estimate_months=months,
            ))
            trace.record(
                "skill_gap",
                f"{req.name}: level {current} of {req.level} required",
                result=impact,
                severity=severity,
                importance=req.importance,
                max_importance=max_importance,
                complexity=complexity,
                absent=current == 0,
                learning_months=months,
            )

        gaps.sort(key=lambda g: (-g.impact_on_success, -g.severity))
        return gaps, trace
