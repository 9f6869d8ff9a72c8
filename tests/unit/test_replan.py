"""Tests for replanning."""

from datetime import timedelta

import pytest

from studycap.allocator import PlanAllocator
from studycap.errors import EmptyPlanError
from studycap.replan import ReplanEngine, replan
from studycap.schemas import PlanTask, StudyPlan, TaskStatus


def make_plan(now, **age):
    return StudyPlan(id=1, goal="Biology", duration_days=7, created_at=now - timedelta(**age))


def make_tasks(plan_id=1):
    return [
        PlanTask(id=1, plan_id=plan_id, title="Done", day_number=1, time_estimate_minutes=30,
                 status=TaskStatus.COMPLETED),
        PlanTask(id=2, plan_id=plan_id, title="Missed", day_number=2, time_estimate_minutes=30),
        PlanTask(id=3, plan_id=plan_id, title="Upcoming", day_number=5, time_estimate_minutes=30),
    ]


class TestReplanWindow:
    def test_new_tasks_cover_remaining_days(self, now, template_allocator):
        result = ReplanEngine(template_allocator).replan(
            make_plan(now, days=2, hours=3), make_tasks(), ["Mitosis"], now)
        assert result.window_start == 3
        assert result.remaining_days == 5
        assert result.catch_up is False
        assert {d.day_number for d in result.drafts} <= set(range(3, 8))
        assert min(d.day_number for d in result.drafts) == 3

    def test_weak_topic_is_prioritised(self, now, template_allocator):
        drafts = replan(make_plan(now, days=2, hours=3), make_tasks(), ["Mitosis"], now, template_allocator)
        assert drafts[0].topic == "Mitosis"
        mitosis = sum(1 for d in drafts if d.topic == "Mitosis")
        cells = sum(1 for d in drafts if d.topic == "Cells")
        assert mitosis > cells

    def test_sessions_are_short(self, now, template_allocator):
        drafts = replan(make_plan(now, days=1), make_tasks(), [], now, template_allocator)
        assert all(d.time_estimate_minutes <= 30 for d in drafts)

    def test_exhausted_plan_becomes_catch_up_day(self, now, template_allocator):
        result = ReplanEngine(template_allocator).replan(make_plan(now, days=10), make_tasks(), [], now)
        assert result.catch_up is True
        assert result.window_start == 7
        assert result.drafts
        assert all(d.day_number == 7 for d in result.drafts)


class TestTaskHistory:
    def test_completed_tasks_are_kept(self, now, template_allocator):
        result = ReplanEngine(template_allocator).replan(make_plan(now, days=2), make_tasks(), [], now)
        assert [t.id for t in result.kept] == [1]
        assert result.kept[0].status == TaskStatus.COMPLETED

    def test_pending_tasks_are_discarded_including_missed_ones(self, now, template_allocator):
        result = ReplanEngine(template_allocator).replan(make_plan(now, days=2), make_tasks(), [], now)
        assert [t.id for t in result.discarded] == [2, 3]

    def test_tasks_of_other_plans_are_ignored(self, now, template_allocator):
        tasks = make_tasks() + make_tasks(plan_id=2)
        result = ReplanEngine(template_allocator).replan(make_plan(now, days=2), tasks, [], now)
        assert len(result.kept) + len(result.discarded) == 3

    def test_empty_content_propagates(self, now):
        engine = ReplanEngine(PlanAllocator(lambda goal, days, weak, focused: []))
        with pytest.raises(EmptyPlanError):
            engine.replan(make_plan(now, days=2), make_tasks(), [], now)
