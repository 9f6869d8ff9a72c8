"""Errors raised by the scheduling engine."""


class StudyEngineError(Exception):
    """Base class for every engine error"""


class InvalidQualityInput(StudyEngineError, ValueError):
    """Review quality outside the 0-5 scale"""

    def __init__(self, quality):
        self.quality = quality
        super().__init__(f"Review quality must be an integer between 0 and 5, got {quality!r}")


class InvalidDayNumber(StudyEngineError, ValueError):
    """A task's day falls outside its plan horizon"""

    def __init__(self, day_number, duration_days: int):
        self.day_number = day_number
        self.duration_days = duration_days
        super().__init__(f"Day {day_number!r} is outside the plan horizon 1..{duration_days}")


class EmptyPlanError(StudyEngineError):
    """The content source produced no tasks for a plan"""

    def __init__(self, goal: str):
        self.goal = goal
        super().__init__(f"No study tasks could be generated for goal {goal!r}. Please try again.")


class DegenerateReplanWindow(StudyEngineError):
    """The plan horizon is exhausted; replanning falls back to a catch-up day"""

    def __init__(self, duration_days: int, days_elapsed: int):
        self.duration_days = duration_days
        self.days_elapsed = days_elapsed
        super().__init__(
            f"{days_elapsed} days elapsed on a {duration_days}-day plan, no days remain"
        )
