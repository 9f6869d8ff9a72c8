from studycap.models.flashcard import Flashcard
from studycap.models.weak_point import WeakPointRecord
from studycap.models.study_plan import StudyPlanRecord
from studycap.models.plan_task import PlanTaskRecord
from studycap.models.study_block import StudyBlockRecord

__all__ = [
    "Flashcard",
    "WeakPointRecord",
    "StudyPlanRecord",
    "PlanTaskRecord",
    "StudyBlockRecord"
]
