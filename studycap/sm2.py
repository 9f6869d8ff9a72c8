import math
from datetime import datetime, timedelta
from typing import Optional

from loguru import logger

from studycap.clock import utcnow
from studycap.errors import InvalidQualityInput
from studycap.schemas import ItemId, ReviewState

MIN_EASE_FACTOR = 1.3
INITIAL_EASE_FACTOR = 2.5
PASSING_QUALITY = 3


def round_half_up(value: float) -> int:
    """Round half away from zero (Python's round() is banker's rounding)"""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


class SM2Algorithm:
    """
    SM-2 spaced repetition algorithm for calculating review intervals.
    Based on SuperMemo 2 algorithm by Piotr Wozniak.
    """

    @staticmethod
    def validate_quality(quality: int) -> int:
        """Reject anything that is not an integer on the 0-5 scale"""
        if isinstance(quality, bool) or not isinstance(quality, int):
            raise InvalidQualityInput(quality)
        if quality < 0 or quality > 5:
            raise InvalidQualityInput(quality)
        return quality

    @staticmethod
    def schedule(
        state: ReviewState,
        quality: int,
        now: Optional[datetime] = None  # Optional: use custom time instead of now
    ) -> ReviewState:
        """
        Calculate the next review and return the updated item state.

        Args:
            state: Current SM-2 state of the item
            quality: Response quality (0-5). 0-2=fail, 3=hard, 4=good, 5=easy
            now: Optional reference time (defaults to current UTC time)

        Returns:
            New ReviewState; the input is left untouched
        """
        SM2Algorithm.validate_quality(quality)
        now = now or utcnow()

        # If quality < 3, reset repetitions (failed recall)
        if quality < PASSING_QUALITY:
            new_repetitions = 0
            new_interval = 1
        else:
            # Interval is based on the prior repetition count and ease factor
            if state.repetitions == 0:
                new_interval = 1
            elif state.repetitions == 1:
                new_interval = 6
            else:
                new_interval = round_half_up(state.interval_days * state.ease_factor)
            new_repetitions = state.repetitions + 1

        # Update easiness factor based on quality (pass or fail)
        new_ef = state.ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))

        # Ensure EF stays within bounds
        if new_ef < MIN_EASE_FACTOR:
            new_ef = MIN_EASE_FACTOR

        logger.debug(
            "sm2 item={} q={} ef {:.2f}->{:.2f} interval {}->{} reps {}->{}",
            state.id, quality, state.ease_factor, new_ef,
            state.interval_days, new_interval, state.repetitions, new_repetitions,
        )

        return state.model_copy(update={
            "ease_factor": new_ef,
            "interval_days": new_interval,
            "repetitions": new_repetitions,
            "last_reviewed_at": now,
            "next_review_at": now + timedelta(days=new_interval),
        })

    @staticmethod
    def initialize_item(item_id: ItemId, now: Optional[datetime] = None) -> ReviewState:
        """
        Initialize SM-2 parameters for a newly authored item.

        The item is due immediately.
        """
        now = now or utcnow()
        return ReviewState(
            id=item_id,
            ease_factor=INITIAL_EASE_FACTOR,
            interval_days=0,
            repetitions=0,
            last_reviewed_at=None,
            next_review_at=now,
        )

    @staticmethod
    def is_due_for_review(state: ReviewState, now: Optional[datetime] = None) -> bool:
        """Check if an item is due for review"""
        return (now or utcnow()) >= state.next_review_at

    @staticmethod
    def get_days_overdue(state: ReviewState, now: Optional[datetime] = None) -> int:
        """Calculate how many whole days overdue a review is"""
        now = now or utcnow()
        if now < state.next_review_at:
            return 0
        return (now - state.next_review_at).days


schedule = SM2Algorithm.schedule
