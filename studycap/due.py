"""Selecting which review items to present now."""

import random
from datetime import datetime
from typing import List, Optional, Sequence, TypeVar

from loguru import logger

from studycap.clock import utcnow

T = TypeVar("T")


def due_items(items: Sequence[T], now: Optional[datetime] = None) -> List[T]:
    """Items whose next review time has passed, in input order"""
    now = now or utcnow()
    return [item for item in items if item.next_review_at <= now]


def shuffle_items(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Uniform random permutation (Fisher-Yates) of a copy of items"""
    shuffled = list(items)
    (rng or random.Random()).shuffle(shuffled)
    return shuffled


def study_set(
    items: Sequence[T],
    now: Optional[datetime] = None,
    shuffle: bool = False,
    rng: Optional[random.Random] = None
) -> List[T]:
    """
    Items to study now.

    Falls back to the whole collection when nothing is due, so a learner with
    cards never hits an empty session.

    Args:
        items: All review items of the learner (or deck)
        now: Reference time (defaults to current UTC time)
        shuffle: Present the selection in random order
        rng: Optional random source, for reproducible shuffles

    Returns:
        Due items, or every item when none are due
    """
    selected = due_items(items, now)
    if not selected:
        if items:
            logger.debug("No items due, falling back to all {} items", len(items))
        selected = list(items)
    if shuffle:
        selected = shuffle_items(selected, rng)
    return selected


def days_overdue(item, now: Optional[datetime] = None) -> int:
    """Whole days since the item became due (0 if not yet due)"""
    now = now or utcnow()
    if now < item.next_review_at:
        return 0
    return (now - item.next_review_at).days
