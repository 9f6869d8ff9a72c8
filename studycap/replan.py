"""
Replanning a study plan after the learner struggles.

Completed tasks are history and are never touched. Every pending task is
discarded and replaced by a freshly allocated set that covers only the days
that are left, with current weak topics pushed to the front. When the plan's
horizon is already used up, the new tasks all land on the plan's last day as a
one-day catch-up.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from loguru import logger

from studycap.allocator import PlanAllocator
from studycap.clock import utcnow
from studycap.errors import DegenerateReplanWindow
from studycap.plans import replan_window, validate_day_number
from studycap.schemas import PlanTask, PlanTaskDraft, ReplanResult, StudyPlan, TaskStatus


class ReplanEngine:
    """Regenerates the unfinished portion of a plan"""

    def __init__(self, allocator: PlanAllocator):
        self.allocator = allocator

    def replan(
        self,
        plan: StudyPlan,
        tasks: Iterable[PlanTask],
        weak_topics: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None
    ) -> ReplanResult:
        """
        Split the plan's tasks into kept history and discarded work, and
        allocate replacements for the remaining days.

        Args:
            plan: The plan being adjusted
            tasks: All tasks currently stored for the plan
            weak_topics: Topics the learner is currently failing
            now: Reference time (defaults to current UTC time)

        Returns:
            ReplanResult with drafts numbered on the plan's own day scale

        Raises:
            EmptyPlanError: the content source produced nothing; the caller
                must keep the existing tasks in that case
        """
        now = now or utcnow()
        tasks = [t for t in tasks if t.plan_id == plan.id]
        kept = [t for t in tasks if t.status == TaskStatus.COMPLETED]
        discarded = [t for t in tasks if t.status != TaskStatus.COMPLETED]

        catch_up = False
        try:
            window_start, remaining = replan_window(plan, now)
        except DegenerateReplanWindow as e:
            logger.warning("{}; replanning as a 1-day catch-up", e)
            window_start, remaining = plan.duration_days, 1
            catch_up = True

        fresh = self.allocator.allocate(plan.goal, remaining, weak_topics, focused=True)
        offset = window_start - 1
        drafts: List[PlanTaskDraft] = [
            draft.model_copy(update={
                "day_number": validate_day_number(draft.day_number + offset, plan.duration_days),
            })
            for draft in fresh
        ]

        logger.info(
            "Replanned plan {}: kept {} completed, discarded {} pending, {} new tasks on days {}-{}",
            plan.id, len(kept), len(discarded), len(drafts), window_start, plan.duration_days,
        )
        return ReplanResult(
            kept=kept,
            discarded=discarded,
            drafts=drafts,
            window_start=window_start,
            remaining_days=remaining,
            catch_up=catch_up,
        )


def replan(
    plan: StudyPlan,
    tasks: Iterable[PlanTask],
    weak_topics: Optional[Iterable[str]],
    now: Optional[datetime],
    allocator: PlanAllocator
) -> List[PlanTaskDraft]:
    """New drafts for the remaining days of plan"""
    return ReplanEngine(allocator).replan(plan, tasks, weak_topics, now).drafts
