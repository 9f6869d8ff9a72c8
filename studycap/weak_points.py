"""
Weak-point tracking.

A per-learner collection of topics the learner keeps failing. Failures bump a
topic's counter, mastery signals decrement it, and a topic whose counter hits
zero is dropped. Topic keys are matched case-insensitively; the spelling seen
first is kept for display.

The tracker is an explicit object owned by the caller's session. Persisting it
is left to a storage collaborator via to_list() / from_list().
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from loguru import logger

from studycap.clock import utcnow
from studycap.schemas import WeakPoint
from studycap.sm2 import SM2Algorithm

FAILURE_MAX_QUALITY = 2
MASTERY_MIN_QUALITY = 4


def normalize_topic(topic: str) -> str:
    """Canonical key for a topic: trimmed and Unicode case-folded"""
    return " ".join(topic.split()).casefold()


class WeakPointTracker:
    """Case-insensitive, topic-keyed failure counter"""

    def __init__(self, points: Optional[Iterable[WeakPoint]] = None):
        self._points: Dict[str, WeakPoint] = {}
        for point in points or []:
            if point.count > 0:
                self._points[normalize_topic(point.topic)] = point.model_copy()

    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, topic: str) -> bool:
        return self.is_weak(topic)

    def record_failure(self, topic: str, now: Optional[datetime] = None) -> WeakPoint:
        """Increment the topic's counter, creating it on first failure"""
        now = now or utcnow()
        key = normalize_topic(topic)
        existing = self._points.get(key)
        if existing:
            existing.count += 1
            existing.last_failed_at = now
        else:
            existing = WeakPoint(topic=topic.strip(), count=1, last_failed_at=now)
            self._points[key] = existing
        logger.debug("weak point '{}' -> {}", existing.topic, existing.count)
        return existing

    def record_mastery(self, topic: str) -> Optional[WeakPoint]:
        """Decrement the topic's counter; the entry is pruned once it reaches zero"""
        key = normalize_topic(topic)
        existing = self._points.get(key)
        if not existing:
            return None
        existing.count -= 1
        if existing.count <= 0:
            del self._points[key]
            logger.debug("weak point '{}' cleared", existing.topic)
            return None
        return existing

    def record_review(self, topic: str, quality: int, now: Optional[datetime] = None) -> None:
        """Feed a flashcard review result: 0-2 is a failure, 4-5 is mastery, 3 is neutral"""
        SM2Algorithm.validate_quality(quality)
        if quality <= FAILURE_MAX_QUALITY:
            self.record_failure(topic, now)
        elif quality >= MASTERY_MIN_QUALITY:
            self.record_mastery(topic)

    def record_verification(
        self,
        topic: str,
        correct: bool,
        mastery_level: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> None:
        """Feed a tutor answer check: wrong answers fail, 'mastered' answers count as mastery"""
        if not correct:
            self.record_failure(topic, now)
        elif mastery_level == "mastered":
            self.record_mastery(topic)

    def remove(self, topic: str) -> bool:
        """Drop a topic regardless of its count"""
        return self._points.pop(normalize_topic(topic), None) is not None

    def clear(self) -> None:
        self._points.clear()

    def is_weak(self, topic: str) -> bool:
        return normalize_topic(topic) in self._points

    def get(self, topic: str) -> Optional[WeakPoint]:
        return self._points.get(normalize_topic(topic))

    def top_weak(self, n: int = 5) -> List[WeakPoint]:
        """Highest counts first; ties keep insertion order"""
        if n <= 0:
            return []
        ranked = sorted(self._points.values(), key=lambda wp: wp.count, reverse=True)
        return [wp.model_copy() for wp in ranked[:n]]

    def weak_topics(self, n: int = 5) -> List[str]:
        return [wp.topic for wp in self.top_weak(n)]

    def entries(self) -> List[WeakPoint]:
        """Copies of every entry in insertion order"""
        return [wp.model_copy() for wp in self._points.values()]

    def to_list(self) -> List[dict]:
        """Snapshot for a storage collaborator"""
        return [wp.model_dump(mode="json") for wp in self._points.values()]

    @classmethod
    def from_list(cls, data: Iterable[dict]) -> "WeakPointTracker":
        # Zero-count entries are absent from a tracker
        return cls(WeakPoint.model_validate(item) for item in data if item.get("count", 1) > 0)
