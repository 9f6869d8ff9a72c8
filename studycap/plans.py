from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from studycap.clock import utcnow
from studycap.errors import DegenerateReplanWindow, InvalidDayNumber
from studycap.schemas import ItemId, PlanTask, StudyPlan, TaskStatus

SECONDS_PER_DAY = 24 * 60 * 60


def days_elapsed(plan: StudyPlan, now: Optional[datetime] = None) -> int:
    """Whole days since the plan was created (never negative)"""
    now = now or utcnow()
    seconds = (now - plan.created_at).total_seconds()
    return max(0, int(seconds // SECONDS_PER_DAY))


def current_day(plan: StudyPlan, now: Optional[datetime] = None) -> int:
    """1-based day index of the plan, clamped to its horizon"""
    return min(days_elapsed(plan, now) + 1, plan.duration_days)


def replan_window(plan: StudyPlan, now: Optional[datetime] = None) -> Tuple[int, int]:
    """
    First day and number of days a replan may fill.

    Raises:
        DegenerateReplanWindow: when the plan horizon is already used up
    """
    elapsed = days_elapsed(plan, now)
    remaining = plan.duration_days - elapsed
    if remaining < 1:
        raise DegenerateReplanWindow(plan.duration_days, elapsed)
    return elapsed + 1, remaining


def validate_day_number(day_number: int, duration_days: int) -> int:
    """Fail loudly when a day falls outside [1, duration_days]"""
    if isinstance(day_number, bool) or not isinstance(day_number, int):
        raise InvalidDayNumber(day_number, duration_days)
    if day_number < 1 or day_number > duration_days:
        raise InvalidDayNumber(day_number, duration_days)
    return day_number


def tasks_for_day(tasks: Iterable[PlanTask], plan_id: ItemId, day_number: int) -> List[PlanTask]:
    return [t for t in tasks if t.plan_id == plan_id and t.day_number == day_number]


def todays_tasks(plan: StudyPlan, tasks: Iterable[PlanTask], now: Optional[datetime] = None) -> List[PlanTask]:
    return tasks_for_day(tasks, plan.id, current_day(plan, now))


def complete_task(task: PlanTask, now: Optional[datetime] = None, mastery_verified: bool = False) -> PlanTask:
    """Mark a task completed; completing an already completed task is a no-op"""
    if task.status == TaskStatus.COMPLETED:
        return task
    return task.model_copy(update={
        "status": TaskStatus.COMPLETED,
        "completed_at": now or utcnow(),
        "mastery_verified": mastery_verified,
    })


def plan_progress(tasks: Iterable[PlanTask]) -> Tuple[int, int, float]:
    """(completed, total, percent complete)"""
    tasks = list(tasks)
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    total = len(tasks)
    percent = (completed / total) * 100 if total > 0 else 0.0
    return completed, total, percent
