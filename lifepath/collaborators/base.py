"""Collaborator contracts consumed by the coordinator."""

from typing import List, Protocol, runtime_checkable

from ..models import DecisionPath, Milestone, Profile, RoadmapTask, SkillGap


@runtime_checkable
class ProfileSource(Protocol):
    def load_profile(self, profile_id: str) -> Profile:
        """Return the stored profile; raise ProfileNotFoundError if there is none."""
        ...

    def save_profile(self, profile: Profile) -> str:
        ...

    def list_profiles(self, owner_id: str) -> List[Profile]:
        ...


@runtime_checkable
class TaskBreakdownGenerator(Protocol):
    def generate_candidate_tasks(
        self,
        profile: Profile,
        path: DecisionPath,
        skill_gaps: List[SkillGap],
        milestones: List[Milestone],
    ) -> List[RoadmapTask]:
        ...
