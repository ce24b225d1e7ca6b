"""
Analysis coordinator.

Runs the full workflow (score every path, simulate the top N, build a roadmap
for the best one) and is the only component that talks to collaborators.
Collaborator calls are bounded by a timeout and retried with exponential
backoff; when they still fail the result is returned in degraded form.
Engine errors are never retried.
"""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import date
from typing import Any, Callable, List, Optional, Tuple

from .collaborators.base import ProfileSource, TaskBreakdownGenerator
from .config import EngineConfig
from .errors import CollaboratorError, CollaboratorTimeout, CollaboratorUnavailable, LifePathError
from .logger import StructuredLogger, get_logger
from .models import AnalysisResult, Profile, Roadmap, RoadmapTask, ScoringWeights, SimulationResult
from .retry import RetryError, exponential_backoff
from .roadmap import RoadmapScheduler
from .schema import validate_tasks
from .scoring import ScoringEngine
from .simulation import SimulationEngine
from .skill_gap import SkillGapAnalyzer


def drop_orphaned_tasks(tasks: List[RoadmapTask]) -> Tuple[List[RoadmapTask], List[str]]:
    """Remove tasks that depend on ids not in the list, cascading to their dependents.

    Returns the kept tasks in input order and the dropped ids.
    """
    kept = list(tasks)
    dropped: List[str] = []
    while True:
        known = {t.task_id for t in kept}
        orphans = [t for t in kept if any(d not in known for d in t.dependencies)]
        if not orphans:
            return kept, dropped
        dropped.extend(t.task_id for t in orphans)
        orphan_ids = {id(t) for t in orphans}
        kept = [t for t in kept if id(t) not in orphan_ids]


class AnalysisCoordinator:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        task_generator: Optional[TaskBreakdownGenerator] = None,
        profile_source: Optional[ProfileSource] = None,
        top_n: int = 3,
        collaborator_timeout: float = 10.0,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_workers: int = 4,
        logger: Optional[StructuredLogger] = None,
    ):
        if top_n < 1:
            raise ValueError("top_n must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        config = config or EngineConfig.default()
        self.scoring = ScoringEngine(config)
        self.simulation = SimulationEngine(config, self.scoring, SkillGapAnalyzer(config))
        self.scheduler = RoadmapScheduler(config)
        self.task_generator = task_generator
        self.profile_source = profile_source
        self.top_n = top_n
        self.collaborator_timeout = collaborator_timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_workers = max_workers
        self.logger = logger or get_logger()

    # Collaborator calls

    def _invoke_once(self, collaborator: str, func: Callable, *args) -> Any:
        """One bounded attempt. Timeouts and unexpected failures become CollaboratorErrors."""
        self.logger.record_collaborator_attempt(collaborator)
        # No context manager: a hung call must not block the caller past the timeout.
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            future = pool.submit(func, *args)
            try:
                result = future.result(timeout=self.collaborator_timeout)
            except FutureTimeout as e:
                raise CollaboratorTimeout(
                    f"{collaborator} did not answer within {self.collaborator_timeout:g}s",
                    collaborator=collaborator,
                ) from e
            except CollaboratorError:
                raise
            except LifePathError:
                # Domain answers such as ProfileNotFoundError are not transient.
                raise
            except Exception as e:
                raise CollaboratorUnavailable(f"{collaborator} failed: {e}", collaborator=collaborator) from e
        except CollaboratorError as e:
            self.logger.record_collaborator_failure(collaborator, type(e).__name__)
            raise
        finally:
            pool.shutdown(wait=False)
        self.logger.record_collaborator_success(collaborator)
        return result

    def _call_collaborator(self, collaborator: str, func: Callable, *args) -> Any:
        def on_retry(attempt: int, exc: Exception, delay: float) -> None:
            self.logger.warning(f"Retrying {collaborator}", attempt=attempt, delay=delay, error=str(exc))

        retrying = exponential_backoff(
            max_retries=self.max_attempts - 1,
            base_delay=self.base_delay,
            exceptions=(CollaboratorError,),
            on_retry=on_retry,
        )(self._invoke_once)
        return retrying(collaborator, func, *args)

    # Workflow

    def _simulate_top(self, profile: Profile, path_ids: List[str]) -> List[SimulationResult]:
        paths = [profile.get_path(pid) for pid in path_ids]
        if not paths:
            return []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(paths))) as pool:
            futures = [pool.submit(self.simulation.simulate, profile, path) for path in paths]
            # Collect in ranking order; completion order does not matter.
            return [f.result() for f in futures]

    def _build_roadmap(
        self,
        profile: Profile,
        simulation: SimulationResult,
        start_date: date,
        reasons: List[str],
    ) -> Optional[Roadmap]:
        path = profile.get_path(simulation.path_id)
        if self.task_generator is None:
            reasons.append("No task-breakdown generator configured; roadmap omitted")
            return None

        try:
            tasks: List[RoadmapTask] = self._call_collaborator(
                "task_breakdown",
                self.task_generator.generate_candidate_tasks,
                profile,
                path,
                simulation.skill_gaps,
                simulation.timeline.milestones,
            )
        except RetryError as e:
            cause = e.__cause__ or e
            self.logger.error("Task-breakdown generator failed", path_id=path.path_id, error=str(cause))
            reasons.append(f"Task-breakdown generator failed: {cause}")
            return None

        tasks, dropped = drop_orphaned_tasks(tasks)
        if dropped:
            self.logger.warning("Dropped tasks with unknown dependencies", path_id=path.path_id, task_ids=dropped)
            reasons.append(f"Dropped tasks whose dependencies were not received: {', '.join(dropped)}")
        if not tasks:
            reasons.append("Task-breakdown generator returned no tasks; roadmap omitted")
            return None

        errors = validate_tasks(tasks)
        if errors:
            self.logger.error("Task-breakdown generator returned an invalid task set", path_id=path.path_id,
                              errors=errors)
            reasons.append("Task-breakdown generator returned an invalid task set: " + "; ".join(errors))
            return None
        return self.scheduler.schedule(profile, path, simulation, tasks, start_date)

    def run_full_analysis(
        self,
        profile: Profile,
        weights: Optional[ScoringWeights] = None,
        start_date: Optional[date] = None,
    ) -> AnalysisResult:
        """Score all paths, simulate the top N and plan the best one."""
        weights = weights or ScoringWeights()
        ranked = self.scoring.score_all_paths(profile, profile.paths, weights)
        self.logger.info("Scored paths", profile_id=profile.profile_id, count=len(ranked))

        top_ids = [b.path_id for b in ranked[: self.top_n]]
        simulations = self._simulate_top(profile, top_ids)

        reasons: List[str] = []
        roadmap = None
        if simulations:
            roadmap = self._build_roadmap(profile, simulations[0], start_date or date.today(), reasons)

        degraded = bool(reasons)
        if degraded:
            self.logger.record_degraded_result()
            self.logger.warning("Returning degraded analysis", profile_id=profile.profile_id, reasons=reasons)

        return AnalysisResult(
            profile_id=profile.profile_id,
            ranked_paths=ranked,
            simulations=simulations,
            roadmap=roadmap,
            degraded=degraded,
            degradation_reasons=reasons,
        )

    def analyze_stored_profile(
        self,
        profile_id: str,
        weights: Optional[ScoringWeights] = None,
        start_date: Optional[date] = None,
    ) -> AnalysisResult:
        """Load a profile from the profile source, then run the full analysis.

        Raises ProfileNotFoundError when the source has no such profile. An
        unreachable source gives a degraded, empty result.
        """
        if self.profile_source is None:
            raise ValueError("No profile source configured")
        try:
            profile = self._call_collaborator("profile_source", self.profile_source.load_profile, profile_id)
        except RetryError as e:
            cause = e.__cause__ or e
            self.logger.error("Profile source failed", profile_id=profile_id, error=str(cause))
            self.logger.record_degraded_result()
            return AnalysisResult(
                profile_id=profile_id,
                degraded=True,
                degradation_reasons=[f"Profile source failed: {cause}"],
            )

        result = self.run_full_analysis(profile, weights, start_date)
        result.profile_id = profile_id
        return result
