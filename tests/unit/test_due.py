"""Tests for due-set selection."""

import random
from collections import Counter
from datetime import timedelta

from studycap.due import days_overdue, due_items, shuffle_items, study_set
from studycap.schemas import ReviewState


def item(item_id, next_review_at):
    return ReviewState(id=item_id, next_review_at=next_review_at)


class TestDueItems:
    def test_includes_past_and_exactly_now(self, now):
        items = [
            item("past", now - timedelta(days=2)),
            item("now", now),
            item("future", now + timedelta(minutes=1)),
        ]
        assert [i.id for i in due_items(items, now)] == ["past", "now"]

    def test_nothing_due(self, now):
        items = [item("a", now + timedelta(days=1))]
        assert due_items(items, now) == []


class TestStudySet:
    def test_returns_due_items_when_any(self, now):
        items = [item("a", now - timedelta(days=1)), item("b", now + timedelta(days=3))]
        assert [i.id for i in study_set(items, now)] == ["a"]

    def test_falls_back_to_everything_when_nothing_due(self, now):
        items = [item("a", now + timedelta(days=1)), item("b", now + timedelta(days=3))]
        assert [i.id for i in study_set(items, now)] == ["a", "b"]

    def test_empty_collection_stays_empty(self, now):
        assert study_set([], now) == []

    def test_shuffle_is_a_permutation(self, now):
        items = [item(str(n), now) for n in range(10)]
        shuffled = study_set(items, now, shuffle=True, rng=random.Random(7))
        assert sorted(i.id for i in shuffled) == sorted(i.id for i in items)
        assert [i.id for i in items] == [str(n) for n in range(10)]


class TestShuffle:
    def test_does_not_mutate_input(self):
        items = [1, 2, 3, 4]
        shuffle_items(items, random.Random(1))
        assert items == [1, 2, 3, 4]

    def test_permutations_are_uniform(self):
        rng = random.Random(1234)
        counts = Counter(tuple(shuffle_items(["a", "b", "c"], rng)) for _ in range(6000))
        assert len(counts) == 6
        for count in counts.values():
            assert 850 < count < 1150


def test_days_overdue(now):
    assert days_overdue(item("a", now - timedelta(days=4, hours=1)), now) == 4
    assert days_overdue(item("b", now + timedelta(days=1)), now) == 0
