"""
Tests for the roadmap scheduler.
"""

import random
import warnings
from datetime import date, timedelta

import pytest

from lifepath.errors import CyclicDependencyError, TaskExceedsBudgetWarning, ValidationError
from lifepath.models import DecisionPath, Milestone, PathType, SkillRequirement, Timeline
from lifepath.roadmap import RoadmapScheduler, topological_order
from lifepath.simulation import SimulationEngine

START = date(2026, 1, 5)


@pytest.fixture
def scheduler() -> RoadmapScheduler:
    return RoadmapScheduler()


def assert_dependencies_earlier(roadmap):
    for week in roadmap.weeks:
        for task in week.tasks:
            for dep in task.dependencies:
                assert roadmap.week_of(dep) < week.week_number


class TestPacking:
    """Dependency order and weekly capacity."""

    def test_dependency_and_budget_scenario(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        """A (6h) -> B (6h) with a 10h budget lands in weeks 1 and 2."""
        tasks = [task_factory("B", 6, deps=["A"]), task_factory("A", 6)]
        roadmap = scheduler.schedule(engineer_profile, cloud_path, bare_simulation, tasks, START, weekly_hours=10)
        assert roadmap.week_of("A") == 1
        assert roadmap.week_of("B") == 2
        assert roadmap.warnings == []

    def test_profile_hours_are_default_budget(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        tasks = [task_factory("A", 12), task_factory("B", 12)]
        roadmap = scheduler.schedule(engineer_profile, cloud_path, bare_simulation, tasks, START)
        assert roadmap.weekly_budget_hours == 20
        assert [w.total_hours for w in roadmap.weeks] == [12, 12]

    def test_priority_then_hours_tie_break(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        tasks = [
            task_factory("low", 2, priority="low"),
            task_factory("high", 8, priority="high"),
            task_factory("medium", 3, priority="medium"),
        ]
        assert [t.task_id for t in topological_order(tasks)] == ["high", "medium", "low"]
        roadmap = scheduler.schedule(engineer_profile, cloud_path, bare_simulation, tasks, START, weekly_hours=10)
        assert roadmap.week_of("high") == 1
        assert roadmap.week_of("medium") == 2
        assert roadmap.week_of("low") == 1

    def test_shorter_task_first_within_priority(self, task_factory):
        tasks = [task_factory("long", 5), task_factory("short", 1)]
        assert [t.task_id for t in topological_order(tasks)] == ["short", "long"]

    def test_random_task_sets_respect_constraints(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        rng = random.Random(7)
        for _ in range(20):
            tasks = []
            for i in range(15):
                earlier = [t.task_id for t in tasks]
                deps = rng.sample(earlier, k=min(len(earlier), rng.randint(0, 2)))
                tasks.append(task_factory(f"t{i}", rng.choice([1, 2, 3, 5, 8]), deps=deps,
                                          priority=rng.choice(["high", "medium", "low"])))
            rng.shuffle(tasks)
            roadmap = scheduler.schedule(engineer_profile, cloud_path, bare_simulation, tasks, START, weekly_hours=10)
            assert_dependencies_earlier(roadmap)
            assert all(w.total_hours <= 10 for w in roadmap.weeks)
            assert sorted(t.task_id for w in roadmap.weeks for t in w.tasks) == sorted(t.task_id for t in tasks)

    def test_empty_candidates(self, scheduler, engineer_profile, cloud_path, bare_simulation):
        roadmap = scheduler.schedule(engineer_profile, cloud_path, bare_simulation, [], START)
        assert roadmap.weeks == []

    def test_idempotent(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        tasks = [task_factory("A", 4), task_factory("B", 7, deps=["A"]), task_factory("C", 9, priority="high")]
        first = scheduler.schedule(engineer_profile, cloud_path, bare_simulation, tasks, START, weekly_hours=10)
        second = scheduler.schedule(engineer_profile, cloud_path, bare_simulation, tasks, START, weekly_hours=10)
        assert first.to_dict() == second.to_dict()


class TestBudgetOverrun:
    def test_oversized_task_gets_own_week_and_warning(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        tasks = [task_factory("small", 3), task_factory("huge", 15, priority="high")]
        with pytest.warns(TaskExceedsBudgetWarning):
            roadmap = scheduler.schedule(engineer_profile, cloud_path, bare_simulation, tasks, START, weekly_hours=10)
        huge_week = roadmap.weeks[roadmap.week_of("huge") - 1]
        assert [t.task_id for t in huge_week.tasks] == ["huge"]
        assert roadmap.week_of("small") != roadmap.week_of("huge")
        assert len(roadmap.warnings) == 1
        assert "huge" in roadmap.warnings[0]

    def test_within_budget_emits_no_warning(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        with warnings.catch_warnings():
            warnings.simplefilter("error", TaskExceedsBudgetWarning)
            scheduler.schedule(engineer_profile, cloud_path, bare_simulation, [task_factory("A", 10)], START, weekly_hours=10)


class TestValidation:
    def test_cycle_rejected(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        tasks = [task_factory("A", 1, deps=["C"]), task_factory("B", 1, deps=["A"]), task_factory("C", 1, deps=["B"]),
                 task_factory("D", 1)]
        with pytest.raises(CyclicDependencyError) as exc:
            scheduler.schedule(engineer_profile, cloud_path, bare_simulation, tasks, START)
        assert set(exc.value.cycle) == {"A", "B", "C"}
        assert exc.value.cycle[0] == exc.value.cycle[-1]

    def test_self_dependency_rejected(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        with pytest.raises(ValidationError):
            scheduler.schedule(engineer_profile, cloud_path, bare_simulation, [task_factory("A", 1, deps=["A"])], START)

    def test_unknown_dependency_rejected(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        with pytest.raises(ValidationError):
            scheduler.schedule(engineer_profile, cloud_path, bare_simulation, [task_factory("A", 1, deps=["Z"])], START)

    def test_duplicate_ids_rejected(self, scheduler, engineer_profile, cloud_path, bare_simulation, task_factory):
        with pytest.raises(ValidationError):
            scheduler.schedule(engineer_profile, cloud_path, bare_simulation,
                               [task_factory("A", 1), task_factory("A", 2)], START)

    def test_simulation_for_other_path_rejected(self, scheduler, engineer_profile, masters_path, bare_simulation):
        with pytest.raises(ValidationError):
            scheduler.schedule(engineer_profile, masters_path, bare_simulation, [], START)


class TestGapTasksAndMilestones:
    @pytest.fixture
    def masters_simulation(self, engineer_profile, masters_path):
        return SimulationEngine().simulate(engineer_profile, masters_path)

    def test_severe_gap_injects_chained_sessions(self, scheduler, engineer_profile, masters_path, masters_simulation):
        # Statistics: severity 7 * 4h = 28h, split into two 14h sessions for a 20h week
        roadmap = scheduler.schedule(engineer_profile, masters_path, masters_simulation, [], START)
        assert roadmap.week_of("gap-statistics-1") == 1
        assert roadmap.week_of("gap-statistics-2") == 2
        session = roadmap.weeks[1].tasks[0]
        assert session.dependencies == ["gap-statistics-1"]
        assert session.estimated_hours == pytest.approx(14.0)
        assert session.category == "skill_gap"
        # Machine Learning is severity 6: below the injection threshold
        assert roadmap.week_of("gap-machine-learning-1") is None

    @pytest.fixture
    def c_family_path(self):
        return DecisionPath(
            path_id="systems-dev",
            path_type=PathType.CAREER,
            title="Systems developer",
            required_skills=[SkillRequirement(name="C", level=8), SkillRequirement(name="C++", level=8)],
            estimated_timeline_months=12,
        )

    def test_skills_sharing_a_slug_get_distinct_ids(self, scheduler, engineer_profile, c_family_path):
        simulation = SimulationEngine().simulate(engineer_profile, c_family_path)
        roadmap = scheduler.schedule(engineer_profile, c_family_path, simulation, [], START)

        ids = [t.task_id for w in roadmap.weeks for t in w.tasks]
        assert sorted(ids) == ["gap-c-1", "gap-c-2", "gap-c-2-1", "gap-c-2-2"]
        by_id = {t.task_id: t for w in roadmap.weeks for t in w.tasks}
        assert by_id["gap-c-2-2"].dependencies == ["gap-c-2-1"]
        assert {by_id["gap-c-1"].skill_name, by_id["gap-c-2-1"].skill_name} == {"C", "C++"}

    def test_gap_ids_avoid_candidate_ids(self, scheduler, engineer_profile, c_family_path, task_factory):
        simulation = SimulationEngine().simulate(engineer_profile, c_family_path)
        candidates = [task_factory("gap-c-1", 2)]
        roadmap = scheduler.schedule(engineer_profile, c_family_path, simulation, candidates, START)

        ids = [t.task_id for w in roadmap.weeks for t in w.tasks]
        assert len(ids) == len(set(ids)) == 5
        assert ids.count("gap-c-1") == 1
        assert roadmap.week_of("gap-c-1") is not None

    def test_candidate_covering_gap_prevents_injection(self, scheduler, engineer_profile, masters_path,
                                                       masters_simulation, task_factory):
        tasks = [task_factory("stats-course", 10, skill_name="statistics")]
        roadmap = scheduler.schedule(engineer_profile, masters_path, masters_simulation, tasks, START)
        assert roadmap.week_of("gap-statistics-1") is None
        assert roadmap.week_of("stats-course") == 1

    def test_milestones_placed_by_month_offset(self, scheduler, engineer_profile, masters_path, masters_simulation):
        # Offsets 4, 16 and 31 months at 4.33 weeks per month
        roadmap = scheduler.schedule(engineer_profile, masters_path, masters_simulation, [], START)
        placed = {w.week_number: w.milestone.name for w in roadmap.weeks if w.milestone}
        assert placed == {18: "Enrolled", 70: "Midpoint review", 135: "Credential earned"}
        assert len(roadmap.weeks) == 135
        assert roadmap.weeks[17].milestone.success_criteria

    def test_weeks_contiguous_and_dated(self, scheduler, engineer_profile, masters_path, masters_simulation):
        roadmap = scheduler.schedule(engineer_profile, masters_path, masters_simulation, [], START)
        assert [w.week_number for w in roadmap.weeks] == list(range(1, len(roadmap.weeks) + 1))
        for week in roadmap.weeks:
            assert week.start_date == START + timedelta(days=7 * (week.week_number - 1))

    def test_colliding_milestones_move_to_next_week(self, scheduler, engineer_profile, cloud_path, bare_simulation):
        simulation = bare_simulation.model_copy(update={"timeline": Timeline(total_months=0.2, milestones=[
            Milestone(name="first", month_offset=0.1, completion_probability=0.9),
            Milestone(name="second", month_offset=0.2, completion_probability=0.8),
        ])})
        roadmap = scheduler.schedule(engineer_profile, cloud_path, simulation, [], START)
        assert [w.milestone.name for w in roadmap.weeks] == ["first", "second"]
