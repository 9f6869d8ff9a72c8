from studycap.crud.flashcard import (
    create_flashcard,
    get_flashcard,
    get_flashcards,
    get_due_flashcards,
    get_study_cards,
    review_flashcard,
    delete_flashcard,
    import_flashcards
)
from studycap.crud.weak_point import load_tracker, save_tracker
from studycap.crud.study_plan import (
    create_study_plan,
    get_study_plan,
    get_study_plans,
    get_plan_tasks,
    complete_plan_task,
    replan_study_plan,
    delete_study_plan
)
from studycap.crud.study_block import (
    create_study_block,
    get_study_blocks,
    get_blocks_for_week,
    delete_study_block
)

__all__ = [
    "create_flashcard",
    "get_flashcard",
    "get_flashcards",
    "get_due_flashcards",
    "get_study_cards",
    "review_flashcard",
    "delete_flashcard",
    "import_flashcards",
    "load_tracker",
    "save_tracker",
    "create_study_plan",
    "get_study_plan",
    "get_study_plans",
    "get_plan_tasks",
    "complete_plan_task",
    "replan_study_plan",
    "delete_study_plan",
    "create_study_block",
    "get_study_blocks",
    "get_blocks_for_week",
    "delete_study_block",
]
