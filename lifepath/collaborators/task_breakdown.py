"""Task-breakdown generators: an HTTP client and a fixed-list stand-in."""

from typing import List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from ..logger import get_logger
from ..models import DecisionPath, Milestone, Profile, RoadmapTask, SkillGap
from .common import post_json_with_error_handling

logger = get_logger()

COLLABORATOR = "task_breakdown"


class HttpTaskBreakdownGenerator:
    """Requests candidate tasks from a remote task-breakdown service.

    The service receives `{profile, path, skillGaps, milestones}` at
    `<base_url>/tasks/breakdown` and answers `{"tasks": [...]}`. Malformed
    entries are skipped so that a partial answer still yields a plan.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/tasks/breakdown"

    def generate_candidate_tasks(
        self,
        profile: Profile,
        path: DecisionPath,
        skill_gaps: List[SkillGap],
        milestones: List[Milestone],
    ) -> List[RoadmapTask]:
        payload = {
            "profile": profile.to_dict(),
            "path": path.to_dict(),
            "skillGaps": [g.to_dict() for g in skill_gaps],
            "milestones": [m.to_dict() for m in milestones],
        }
        body = post_json_with_error_handling(self.session, self.endpoint, payload, COLLABORATOR, self.timeout)

        tasks: List[RoadmapTask] = []
        for i, item in enumerate(body.get("tasks") or []):
            try:
                tasks.append(RoadmapTask.model_validate(item))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed candidate task", index=i, path_id=path.path_id,
                               errors=e.error_count())
        logger.debug("Received candidate tasks", path_id=path.path_id, count=len(tasks))
        return tasks


class StaticTaskBreakdownGenerator:
    """Serves a fixed task list, e.g. one read from a JSON file."""

    def __init__(self, tasks: List[RoadmapTask]):
        self.tasks = list(tasks)

    def generate_candidate_tasks(
        self,
        profile: Profile,
        path: DecisionPath,
        skill_gaps: List[SkillGap],
        milestones: List[Milestone],
    ) -> List[RoadmapTask]:
        return list(self.tasks)
