"""
Day-bucket allocation for study plans.

A content source (LLM or template) supplies task titles and descriptions; the
allocator decides which day each task lands on, what cognitive type it has and
how long it should take:

- weak-topic content is placed first, so it lands on the earliest days
- content is spread round-robin across the horizon, at most 5 tasks per day
- every weak-topic task gets a spaced review a couple of days later; on
  short horizons it goes on the latest later day with room, or the same day
- days short of 3 tasks are topped up with reviews of earlier material
- a day is never left with a single task type when it holds 2+ tasks
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from loguru import logger

from studycap.config import settings
from studycap.errors import EmptyPlanError
from studycap.plans import validate_day_number
from studycap.schemas import PlanTaskDraft, TaskContent, TaskType
from studycap.weak_points import normalize_topic

MIN_TASKS_PER_DAY = 3
MAX_TASKS_PER_DAY = 5
REINFORCE_GAP_DAYS = 2
FOCUSED_SESSION_MINUTES = 30

DEFAULT_MINUTES = {
    TaskType.DEEP_STUDY: 45,
    TaskType.PRACTICE: 30,
    TaskType.ACTIVE_RECALL: 20,
    TaskType.REVIEW: 15,
    TaskType.SPACED_REVIEW: 15,
}

# Types handed out to content that arrives without one, by round-robin pass
FIRST_PASS_ROTATION = [TaskType.DEEP_STUDY, TaskType.ACTIVE_RECALL, TaskType.PRACTICE]

# (goal, duration_days, weak_topics, focused) -> task suggestions
ContentSource = Callable[[str, int, List[str], bool], Sequence[Union[TaskContent, dict]]]


@dataclass
class _Slot:
    content: TaskContent
    task_type: TaskType
    minutes: int
    weak: bool
    order: int
    origin_day: int
    title: str


def default_minutes(task_type: TaskType) -> int:
    return DEFAULT_MINUTES.get(task_type, settings.default_task_minutes)


def _dedupe_topics(topics: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for topic in topics:
        key = normalize_topic(topic)
        if key and key not in seen:
            seen.add(key)
            result.append(key)
    return result


def _weak_rank(content: TaskContent, weak_keys: List[str]) -> Optional[int]:
    """Index of the first weak topic this content covers, or None"""
    topic_key = normalize_topic(content.topic) if content.topic else ""
    title_key = normalize_topic(content.title)
    for rank, key in enumerate(weak_keys):
        if topic_key == key or re.search(rf"\b{re.escape(key)}\b", title_key):
            return rank
    return None


class PlanAllocator:
    """Distributes content-source suggestions over a multi-day horizon"""

    def __init__(self, content_source: ContentSource):
        self.content_source = content_source

    def allocate(
        self,
        goal: str,
        duration_days: int,
        weak_topics: Optional[Iterable[str]] = None,
        focused: bool = False
    ) -> List[PlanTaskDraft]:
        """
        Build day-bucketed task drafts for a plan.

        Args:
            goal: Free-text study goal
            duration_days: Number of days in the horizon (>= 1)
            weak_topics: Topics the learner is struggling with, most important first
            focused: Cap every task at a short focused session (used by replanning)

        Returns:
            Drafts sorted by day, each with day_number in [1, duration_days]

        Raises:
            EmptyPlanError: the content source produced no tasks
        """
        if duration_days < 1:
            raise ValueError(f"duration_days must be at least 1, got {duration_days}")

        weak_list = [t for t in (weak_topics or []) if t and t.strip()]
        weak_keys = _dedupe_topics(weak_list)

        raw = self.content_source(goal, duration_days, weak_list, focused) or []
        contents = [c if isinstance(c, TaskContent) else TaskContent.model_validate(c) for c in raw]
        contents = [c for c in contents if c.title and c.title.strip()]
        if not contents:
            raise EmptyPlanError(goal)

        days = self._place_primary(contents, weak_keys, duration_days)
        self._reinforce_weak(days, duration_days)
        self._fill_short_days(days, duration_days)
        self._mix_types(days)

        drafts = []
        for day in range(1, duration_days + 1):
            for slot in days[day]:
                minutes = slot.minutes
                if focused:
                    minutes = min(minutes, FOCUSED_SESSION_MINUTES)
                drafts.append(PlanTaskDraft(
                    title=slot.title,
                    description=slot.content.description or "",
                    task_type=slot.task_type,
                    day_number=validate_day_number(day, duration_days),
                    time_estimate_minutes=minutes,
                    topic=slot.content.topic,
                ))

        logger.debug(
            "Allocated {} tasks from {} suggestions over {} days (weak topics: {})",
            len(drafts), len(contents), duration_days, len(weak_keys),
        )
        return drafts

    def _place_primary(
        self,
        contents: List[TaskContent],
        weak_keys: List[str],
        duration_days: int
    ) -> Dict[int, List[_Slot]]:
        """Weak content first, then source order, dealt round-robin across days"""
        ranked = []
        for index, content in enumerate(contents):
            rank = _weak_rank(content, weak_keys)
            ranked.append((rank if rank is not None else len(weak_keys), index, rank is not None, content))
        ranked.sort(key=lambda r: (r[0], r[1]))

        capacity = MAX_TASKS_PER_DAY * duration_days
        if len(ranked) > capacity:
            logger.warning(
                "Dropping {} of {} suggested tasks: {} days hold at most {}",
                len(ranked) - capacity, len(ranked), duration_days, capacity,
            )
            ranked = ranked[:capacity]

        days: Dict[int, List[_Slot]] = {day: [] for day in range(1, duration_days + 1)}
        for position, (_, index, weak, content) in enumerate(ranked):
            day = position % duration_days + 1
            if content.task_type:
                task_type = TaskType.parse(content.task_type)
            else:
                task_type = FIRST_PASS_ROTATION[(position // duration_days) % len(FIRST_PASS_ROTATION)]
            minutes = content.time_minutes if content.time_minutes and content.time_minutes > 0 else default_minutes(task_type)
            days[day].append(_Slot(
                content=content,
                task_type=task_type,
                minutes=minutes,
                weak=weak,
                order=index,
                origin_day=day,
                title=content.title.strip(),
            ))
        return days

    def _reinforce_weak(self, days: Dict[int, List[_Slot]], duration_days: int) -> None:
        """Schedule a spaced review of each weak-topic task a few days after it"""
        primaries = [slot for day in sorted(days) for slot in days[day] if slot.weak]
        for slot in primaries:
            day = self._reinforce_day(days, slot.origin_day, duration_days)
            if day is None:
                logger.debug("No room to reinforce '{}'", slot.title)
                continue
            days[day].append(_Slot(
                content=slot.content,
                task_type=TaskType.SPACED_REVIEW,
                minutes=default_minutes(TaskType.SPACED_REVIEW),
                weak=True,
                order=slot.order,
                origin_day=slot.origin_day,
                title=f"Spaced review: {slot.title}",
            ))

    @staticmethod
    def _reinforce_day(days: Dict[int, List[_Slot]], origin_day: int, duration_days: int) -> Optional[int]:
        """
        Day for a reinforcement of content introduced on origin_day.

        Prefers the first day at least REINFORCE_GAP_DAYS later; when the
        horizon ends sooner, the latest later day with room; failing that,
        the origin day itself.
        """
        for day in range(origin_day + REINFORCE_GAP_DAYS, duration_days + 1):
            if len(days[day]) < MAX_TASKS_PER_DAY:
                return day
        for day in range(min(duration_days, origin_day + REINFORCE_GAP_DAYS - 1), origin_day, -1):
            if len(days[day]) < MAX_TASKS_PER_DAY:
                return day
        if len(days[origin_day]) < MAX_TASKS_PER_DAY:
            return origin_day
        return None

    def _fill_short_days(self, days: Dict[int, List[_Slot]], duration_days: int) -> None:
        """Top up light days with reviews of material introduced on earlier days"""
        for day in range(2, duration_days + 1):
            if len(days[day]) >= MIN_TASKS_PER_DAY:
                continue
            on_day = {id(slot.content) for slot in days[day]}
            candidates = [
                slot for earlier in range(1, day) for slot in days[earlier]
                if slot.origin_day == earlier and id(slot.content) not in on_day
            ]
            # Weak material first, then the most recently introduced
            candidates.sort(key=lambda s: (not s.weak, -s.origin_day, s.order))
            for slot in candidates:
                if len(days[day]) >= MIN_TASKS_PER_DAY:
                    break
                days[day].append(_Slot(
                    content=slot.content,
                    task_type=TaskType.REVIEW,
                    minutes=default_minutes(TaskType.REVIEW),
                    weak=slot.weak,
                    order=slot.order,
                    origin_day=slot.origin_day,
                    title=f"Review: {slot.title}",
                ))
                on_day.add(id(slot.content))

    def _mix_types(self, days: Dict[int, List[_Slot]]) -> None:
        for slots in days.values():
            if len(slots) < 2:
                continue
            if len({slot.task_type for slot in slots}) == 1:
                current = slots[-1].task_type
                slots[-1].task_type = TaskType.PRACTICE if current == TaskType.ACTIVE_RECALL else TaskType.ACTIVE_RECALL


def allocate(
    goal: str,
    duration_days: int,
    weak_topics: Optional[Iterable[str]],
    content_source: ContentSource,
    focused: bool = False
) -> List[PlanTaskDraft]:
    """Functional wrapper around PlanAllocator.allocate"""
    return PlanAllocator(content_source).allocate(goal, duration_days, weak_topics, focused)
