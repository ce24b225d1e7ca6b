"""
Roadmap scheduling.

Turns candidate tasks (plus injected "close this gap" tasks) into a weekly
plan. Dependencies always land in strictly earlier weeks and a week's hours
never exceed the budget, except for a single task that is larger than the
budget on its own; that task gets a week to itself and a warning.
"""

import heapq
import math
import warnings
from datetime import date, timedelta
from typing import Dict, List, Optional, Set

from .config import EngineConfig
from .errors import CyclicDependencyError, TaskExceedsBudgetWarning, ValidationError
from .logger import get_logger
from .models import (
    DecisionPath,
    Milestone,
    Priority,
    Profile,
    Roadmap,
    RoadmapTask,
    SimulationResult,
    SkillGap,
    Week,
)
from .normalize import skill_key, slugify
from .schema import ensure_valid_tasks

logger = get_logger()

# Float tolerance for "fits in the week" comparisons.
EPSILON = 1e-9


def topological_order(tasks: List[RoadmapTask]) -> List[RoadmapTask]:
    """
    Kahn's algorithm. Among ready tasks, high priority goes first, then fewer
    hours, then input order. Raises CyclicDependencyError if any task is left.
    """
    by_id = {t.task_id: t for t in tasks}
    index = {t.task_id: i for i, t in enumerate(tasks)}
    pending = {t.task_id: len(set(t.dependencies)) for t in tasks}
    dependents: Dict[str, List[str]] = {t.task_id: [] for t in tasks}
    for t in tasks:
        for dep in set(t.dependencies):
            dependents[dep].append(t.task_id)

    def key(task_id: str):
        t = by_id[task_id]
        return (t.priority.rank, t.estimated_hours, index[task_id])

    ready = [key(tid) + (tid,) for tid, count in pending.items() if count == 0]
    heapq.heapify(ready)
    ordered: List[RoadmapTask] = []
    while ready:
        task_id = heapq.heappop(ready)[-1]
        ordered.append(by_id[task_id])
        for child in dependents[task_id]:
            pending[child] -= 1
            if pending[child] == 0:
                heapq.heappush(ready, key(child) + (child,))

    if len(ordered) < len(tasks):
        remaining = [t.task_id for t in tasks if pending[t.task_id] > 0]
        cycle = _find_cycle(remaining, by_id)
        raise CyclicDependencyError(
            "Task dependencies contain a cycle: " + " -> ".join(cycle),
            cycle=cycle,
        )
    return ordered


def _find_cycle(remaining: List[str], by_id: Dict[str, RoadmapTask]) -> List[str]:
    # Every leftover task still waits on another leftover task, so walking
    # dependencies from any of them must revisit a node.
    left = set(remaining)
    path: List[str] = []
    seen: Dict[str, int] = {}
    current = remaining[0]
    while current not in seen:
        seen[current] = len(path)
        path.append(current)
        current = sorted(d for d in by_id[current].dependencies if d in left)[0]
    return path[seen[current]:] + [current]


def _unique_prefix(base: str, sessions: int, taken: Set[str]) -> str:
    # "C", "C++" and "C#" share a slug; later ones get "-2", "-3", ...
    prefix = base
    suffix = 1
    while any(f"{prefix}-{n}" in taken for n in range(1, sessions + 1)):
        suffix += 1
        prefix = f"{base}-{suffix}"
    return prefix


class RoadmapScheduler:
    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = (config or EngineConfig.default()).scheduler

    def gap_tasks(self, gaps: List[SkillGap], candidates: List[RoadmapTask], budget: float) -> List[RoadmapTask]:
        """Study tasks for severe gaps no candidate already covers, split into sessions that fit a week."""
        covered = {skill_key(t.skill_name) for t in candidates if t.skill_name}
        taken = {t.task_id for t in candidates}
        tasks: List[RoadmapTask] = []
        for gap in gaps:
            if gap.severity < self.config.gap_task_severity_threshold or skill_key(gap.skill_name) in covered:
                continue
            total = gap.severity * self.config.gap_hours_per_severity
            sessions = math.ceil(total / budget) if budget > 0 else 1
            prefix = _unique_prefix(f"gap-{slugify(gap.skill_name) or 'skill'}", sessions, taken)
            previous: Optional[str] = None
            for n in range(1, sessions + 1):
                task_id = f"{prefix}-{n}"
                taken.add(task_id)
                tasks.append(RoadmapTask(
                    task_id=task_id,
                    description=(
                        f"Close skill gap: {gap.skill_name} (level {gap.current_level} -> "
                        f"{gap.required_level}), session {n} of {sessions}"
                    ),
                    estimated_hours=total / sessions,
                    priority=Priority.HIGH,
                    category="skill_gap",
                    dependencies=[previous] if previous else [],
                    skill_name=gap.skill_name,
                ))
                previous = task_id
        return tasks

    def schedule(
        self,
        profile: Profile,
        path: DecisionPath,
        simulation: SimulationResult,
        task_candidates: List[RoadmapTask],
        start_date: date,
        weekly_hours: Optional[float] = None,
    ) -> Roadmap:
        if simulation.path_id != path.path_id:
            raise ValidationError(
                "Simulation does not belong to this path",
                path_id=path.path_id,
                simulation_path_id=simulation.path_id,
            )
        budget = profile.constraints.hours_per_week if weekly_hours is None else weekly_hours
        if budget < 0:
            raise ValidationError("Weekly hour budget must be non-negative", path_id=path.path_id, budget=budget)

        tasks = list(task_candidates) + self.gap_tasks(simulation.skill_gaps, task_candidates, budget)
        ensure_valid_tasks(tasks)
        ordered = topological_order(tasks)

        week_hours: List[float] = []
        week_tasks: List[List[RoadmapTask]] = []
        placed: Dict[str, int] = {}
        budget_warnings: List[str] = []

        def open_week() -> None:
            week_hours.append(0.0)
            week_tasks.append([])

        for task in ordered:
            earliest = max((placed[d] for d in task.dependencies), default=0) + 1
            oversized = task.estimated_hours > budget + EPSILON
            week = earliest
            while True:
                while len(week_hours) < week:
                    open_week()
                if oversized:
                    if not week_tasks[week - 1]:
                        break
                elif week_hours[week - 1] + task.estimated_hours <= budget + EPSILON:
                    break
                week += 1

            week_hours[week - 1] += task.estimated_hours
            week_tasks[week - 1].append(task)
            placed[task.task_id] = week

            if oversized:
                message = (
                    f"Task '{task.task_id}' needs {task.estimated_hours:g}h, over the weekly budget "
                    f"of {budget:g}h; scheduled alone in week {week}"
                )
                budget_warnings.append(message)
                logger.warning("Task exceeds weekly budget", task_id=task.task_id, week=week,
                               estimated_hours=task.estimated_hours, budget=budget)
                warnings.warn(
                    TaskExceedsBudgetWarning(message, task_id=task.task_id, path_id=path.path_id),
                    stacklevel=2,
                )

        milestone_weeks = self._milestone_weeks(simulation.timeline.milestones)
        while len(week_hours) < max(milestone_weeks, default=0):
            open_week()

        weeks = [
            Week(
                week_number=n,
                start_date=start_date + timedelta(days=7 * (n - 1)),
                tasks=week_tasks[n - 1],
                total_hours=round(week_hours[n - 1], 2),
                milestone=milestone_weeks.get(n),
            )
            for n in range(1, len(week_hours) + 1)
        ]
        logger.record_roadmap()
        logger.debug("Built roadmap", path_id=path.path_id, weeks=len(weeks), tasks=len(tasks),
                     budget_warnings=len(budget_warnings))
        return Roadmap(
            path_id=path.path_id,
            start_date=start_date,
            weekly_budget_hours=budget,
            weeks=weeks,
            warnings=budget_warnings,
        )

    def _milestone_weeks(self, milestones: List[Milestone]) -> Dict[int, Milestone]:
        """Week for each milestone: ceil(months * weeks_per_month), one milestone per week."""
        by_week: Dict[int, Milestone] = {}
        last = 0
        for milestone in sorted(milestones, key=lambda m: m.month_offset):
            week = max(1, math.ceil(milestone.month_offset * self.config.weeks_per_month - EPSILON))
            week = max(week, last + 1)
            by_week[week] = milestone
            last = week
        return by_week
