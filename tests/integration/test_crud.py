"""Persistence tests against an in-memory SQLite database."""

from datetime import date, datetime, timedelta

import pytest

from studycap.allocator import PlanAllocator
from studycap.crud import (
    complete_plan_task,
    create_flashcard,
    create_study_block,
    create_study_plan,
    delete_flashcard,
    delete_study_plan,
    get_blocks_for_week,
    get_due_flashcards,
    get_flashcard,
    get_plan_tasks,
    get_study_cards,
    get_study_plan,
    get_study_plans,
    import_flashcards,
    load_tracker,
    replan_study_plan,
    review_flashcard,
    save_tracker,
)
from studycap.errors import EmptyPlanError, InvalidQualityInput
from studycap.models import PlanTaskRecord, StudyPlanRecord, WeakPointRecord
from studycap.replan import ReplanEngine
from studycap.schemas import StudyBlock, TaskStatus
from studycap.weak_points import WeakPointTracker


class TestFlashcards:
    def test_new_card_is_due_immediately(self, db, now):
        card = create_flashcard(db, "What is ATP?", "Energy currency", "Metabolism", now=now)
        assert card.ease_factor == 2.5
        assert card.repetitions == 0
        assert [c.id for c in get_due_flashcards(db, now)] == [card.id]

    def test_review_updates_schedule(self, db, now):
        card = create_flashcard(db, "Q", "A", now=now)
        card = review_flashcard(db, card.id, 5, now)
        assert card.interval_days == 1
        assert card.repetitions == 1
        assert card.ease_factor == pytest.approx(2.6)
        assert card.next_review_at == now + timedelta(days=1)
        assert get_due_flashcards(db, now) == []

    def test_nothing_due_falls_back_to_all_cards(self, db, now):
        card = create_flashcard(db, "Q", "A", now=now)
        review_flashcard(db, card.id, 5, now)
        assert [c.id for c in get_study_cards(db, now)] == [card.id]

    def test_failed_review_marks_topic_weak(self, db, now):
        card = create_flashcard(db, "Q", "A", "Mitosis", now=now)
        review_flashcard(db, card.id, 1, now)
        tracker = load_tracker(db)
        assert tracker.get("mitosis").count == 1

    def test_topicless_card_uses_front_as_topic(self, db, now):
        card = create_flashcard(db, "Krebs cycle steps", "A", now=now)
        review_flashcard(db, card.id, 0, now)
        assert load_tracker(db).is_weak("Krebs cycle steps")

    def test_mastery_prunes_weak_point_row(self, db, now):
        card = create_flashcard(db, "Q", "A", "Mitosis", now=now)
        review_flashcard(db, card.id, 2, now)
        review_flashcard(db, card.id, 5, now)
        assert db.query(WeakPointRecord).count() == 0

    def test_invalid_quality_writes_nothing(self, db, now):
        card = create_flashcard(db, "Q", "A", "Mitosis", now=now)
        with pytest.raises(InvalidQualityInput):
            review_flashcard(db, card.id, 6, now)
        db.expire_all()
        card = get_flashcard(db, card.id)
        assert card.repetitions == 0
        assert card.last_reviewed_at is None
        assert db.query(WeakPointRecord).count() == 0

    def test_missing_card(self, db, now):
        assert review_flashcard(db, 999, 4, now) is None
        assert delete_flashcard(db, 999) is False

    def test_import(self, db, now):
        records = import_flashcards(db, [
            {"front": "H2O", "back": "Water", "topic": None},
            {"front": "NaCl", "back": "Salt", "topic": "Chemistry"},
        ], now=now)
        assert [r.front for r in records] == ["H2O", "NaCl"]
        assert len(get_due_flashcards(db, now)) == 2


class TestWeakPointPersistence:
    def test_save_and_load(self, db, now):
        tracker = WeakPointTracker()
        tracker.record_failure("Mitosis", now)
        tracker.record_failure("mitosis", now)
        tracker.record_failure("Osmosis", now)
        save_tracker(db, tracker)

        loaded = load_tracker(db)
        assert [(wp.topic, wp.count) for wp in loaded.top_weak(5)] == [("Mitosis", 2), ("Osmosis", 1)]

    def test_save_mirrors_removals(self, db, now):
        tracker = WeakPointTracker()
        tracker.record_failure("Mitosis", now)
        tracker.record_failure("Osmosis", now)
        save_tracker(db, tracker)

        tracker.record_mastery("Osmosis")
        save_tracker(db, tracker)
        assert [row.topic for row in db.query(WeakPointRecord).all()] == ["Mitosis"]

    def test_tie_order_survives_save_and_load(self, db, now):
        tracker = WeakPointTracker()
        tracker.record_failure("Mitosis", now)
        tracker.record_failure("Osmosis", now)
        tracker.record_failure("Osmosis", now)
        save_tracker(db, tracker)

        loaded = load_tracker(db)
        loaded.record_mastery("Osmosis")
        tracker.record_mastery("Osmosis")
        assert loaded.weak_topics(2) == tracker.weak_topics(2) == ["Mitosis", "Osmosis"]


class TestStudyPlans:
    def test_create_plan(self, db, now, template_allocator):
        plan = create_study_plan(db, "Biology", 5, template_allocator, ["Mitosis"], now=now)
        tasks = get_plan_tasks(db, plan.id)
        assert tasks
        assert all(1 <= t.day_number <= 5 for t in tasks)
        assert all(t.status == TaskStatus.PENDING.value for t in tasks)
        assert tasks[0].topic == "Mitosis"
        assert len(get_plan_tasks(db, plan.id, day_number=1)) >= 1

    def test_empty_allocation_writes_nothing(self, db, now):
        allocator = PlanAllocator(lambda goal, days, weak, focused: [])
        with pytest.raises(EmptyPlanError):
            create_study_plan(db, "Biology", 5, allocator, now=now)
        assert db.query(StudyPlanRecord).count() == 0
        assert db.query(PlanTaskRecord).count() == 0

    def test_plans_newest_first(self, db, now, template_allocator):
        older = create_study_plan(db, "Old", 2, template_allocator, now=now - timedelta(days=3))
        newer = create_study_plan(db, "New", 2, template_allocator, now=now)
        assert [p.id for p in get_study_plans(db)] == [newer.id, older.id]

    def test_complete_task_is_idempotent(self, db, now, template_allocator):
        plan = create_study_plan(db, "Biology", 3, template_allocator, now=now)
        task_id = get_plan_tasks(db, plan.id)[0].id
        task = complete_plan_task(db, task_id, mastery_verified=True, now=now)
        assert task.status == TaskStatus.COMPLETED.value
        assert task.mastery_verified is True

        again = complete_plan_task(db, task_id, now=now + timedelta(hours=2))
        assert again.completed_at == now
        assert complete_plan_task(db, 999) is None

    def test_replan_keeps_completed_tasks(self, db, now, template_allocator):
        plan = create_study_plan(db, "Biology", 7, template_allocator, now=now - timedelta(days=2, hours=3))
        tasks = get_plan_tasks(db, plan.id)
        done = complete_plan_task(db, tasks[0].id, now=now - timedelta(days=2))

        result = replan_study_plan(db, plan.id, ReplanEngine(template_allocator), ["Mitosis"], now)
        assert [t.id for t in result.kept] == [done.id]

        after = get_plan_tasks(db, plan.id)
        completed = [t for t in after if t.status == TaskStatus.COMPLETED.value]
        pending = [t for t in after if t.status == TaskStatus.PENDING.value]
        assert [t.id for t in completed] == [done.id]
        assert completed[0].completed_at == now - timedelta(days=2)
        assert len(pending) == len(result.drafts)
        assert len(result.discarded) == len(tasks) - 1
        assert all(3 <= t.day_number <= 7 for t in pending)

    def test_completed_history_survives_repeated_replans(self, db, now, template_allocator):
        created = now - timedelta(days=2, hours=3)
        plan = create_study_plan(db, "Biology", 7, template_allocator, ["Mitosis"], now=created)
        for day, done_at in [(1, created + timedelta(hours=1)), (2, created + timedelta(days=1, hours=2))]:
            complete_plan_task(db, get_plan_tasks(db, plan.id, day_number=day)[0].id, now=done_at)

        def history():
            return {
                t.id: (t.status, t.day_number, t.completed_at)
                for t in get_plan_tasks(db, plan.id)
                if t.status == TaskStatus.COMPLETED.value
            }

        engine = ReplanEngine(template_allocator)
        completed = history()
        assert sorted(day for _, day, _ in completed.values()) == [1, 2]

        # day 3, day 4, then a catch-up long after the horizon
        for offset in [0, 1, 10]:
            replanned_at = now + timedelta(days=offset)
            result = replan_study_plan(db, plan.id, engine, ["Mitosis"], replanned_at)
            assert {t.id for t in result.kept} == set(completed)

            after = history()
            assert len(after) >= len(completed)
            assert {task_id: after.get(task_id) for task_id in completed} == completed

            pending = [t for t in get_plan_tasks(db, plan.id) if t.status == TaskStatus.PENDING.value]
            earliest = min(pending, key=lambda t: t.day_number)
            complete_plan_task(db, earliest.id, now=replanned_at + timedelta(hours=1))
            completed = history()

        assert len(completed) == 5

    def test_replan_failure_keeps_existing_tasks(self, db, now, template_allocator):
        plan = create_study_plan(db, "Biology", 7, template_allocator, now=now)
        before = {t.id for t in get_plan_tasks(db, plan.id)}
        engine = ReplanEngine(PlanAllocator(lambda goal, days, weak, focused: []))
        with pytest.raises(EmptyPlanError):
            replan_study_plan(db, plan.id, engine, now=now)
        db.rollback()
        assert {t.id for t in get_plan_tasks(db, plan.id)} == before

    def test_replan_missing_plan(self, db, now, template_allocator):
        assert replan_study_plan(db, 999, ReplanEngine(template_allocator), now=now) is None

    def test_delete_plan_removes_tasks(self, db, now, template_allocator):
        plan = create_study_plan(db, "Biology", 3, template_allocator, now=now)
        assert delete_study_plan(db, plan.id) is True
        assert get_study_plan(db, plan.id) is None
        assert db.query(PlanTaskRecord).count() == 0


class TestStudyBlocks:
    def test_blocks_for_week(self, db):
        for start in [datetime(2026, 3, 2, 9), datetime(2026, 3, 8, 20), datetime(2026, 3, 9, 9)]:
            create_study_block(db, StudyBlock(title="Study", subject="Math",
                                              start_time=start, end_time=start + timedelta(hours=1)))
        blocks = get_blocks_for_week(db, date(2026, 3, 2))
        assert [b.start_time.day for b in blocks] == [2, 8]
        assert isinstance(blocks[0], StudyBlock)
