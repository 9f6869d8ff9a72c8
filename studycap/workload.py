"""
Study-load aggregation over calendar blocks.

Overlapping blocks are summed as-is: the numbers report scheduled time, so a
double-booked afternoon pushes the day towards "high".
"""

from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from studycap.schemas import DayLoad, StudyBlock, SubjectLoad, WorkloadBand

HIGH_LOAD_HOURS = 6.0
MEDIUM_LOAD_HOURS = 3.0
GENERAL_SUBJECT = "General"


def classify_workload(total_hours: float) -> WorkloadBand:
    """Map a day's scheduled hours onto a workload band"""
    if total_hours >= HIGH_LOAD_HOURS:
        return WorkloadBand.HIGH
    if total_hours >= MEDIUM_LOAD_HOURS:
        return WorkloadBand.MEDIUM
    if total_hours > 0:
        return WorkloadBand.LOW
    return WorkloadBand.NONE


def block_hours(block: StudyBlock) -> float:
    # Whole minutes, like the calendar view
    minutes = int((block.end_time - block.start_time).total_seconds() // 60)
    return minutes / 60


def total_hours(blocks: Iterable[StudyBlock]) -> float:
    return sum(block_hours(b) for b in blocks)


def blocks_for_date(blocks: Iterable[StudyBlock], day: date) -> List[StudyBlock]:
    """Blocks starting on the given calendar day"""
    return [b for b in blocks if b.start_time.date() == day]


def blocks_for_week(blocks: Iterable[StudyBlock], week_start: date) -> List[StudyBlock]:
    start = datetime.combine(week_start, datetime.min.time())
    end = start + timedelta(days=7)
    return [b for b in blocks if start <= b.start_time < end]


def day_load(blocks: Iterable[StudyBlock], day: date) -> DayLoad:
    day_blocks = blocks_for_date(blocks, day)
    hours = total_hours(day_blocks)
    return DayLoad(day=day, hours=hours, band=classify_workload(hours), block_count=len(day_blocks))


def weekly_load(blocks: Iterable[StudyBlock], week_start: date, days: int = 7) -> List[DayLoad]:
    """One DayLoad per day starting at week_start, empty days included"""
    blocks = list(blocks)
    return [day_load(blocks, week_start + timedelta(days=i)) for i in range(days)]


def subject_load(blocks: Iterable[StudyBlock], day: Optional[date] = None) -> List[SubjectLoad]:
    """
    Hours per subject, heaviest first.

    scheduled_hours counts every block; completed_hours only counts blocks
    marked completed. Blocks without a subject are grouped under "General".

    Args:
        blocks: Study blocks to aggregate
        day: Restrict to blocks starting on this day
    """
    if day is not None:
        blocks = blocks_for_date(blocks, day)

    stats: Dict[str, SubjectLoad] = OrderedDict()
    for block in blocks:
        subject = block.subject or GENERAL_SUBJECT
        if subject not in stats:
            stats[subject] = SubjectLoad(subject=subject)
        hours = block_hours(block)
        stats[subject].scheduled_hours += hours
        stats[subject].block_count += 1
        if block.completed:
            stats[subject].completed_hours += hours

    return sorted(stats.values(), key=lambda s: s.scheduled_hours, reverse=True)
