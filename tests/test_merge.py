"""Tests for the detection merge session."""

import pytest

from souschef.merge import MergeSession, name_key, rank
from souschef.models import Ingredient
from souschef.vision import Detection


def d(name, confidence, quantity="Unknown"):
    return Detection(name=name, quantity=quantity, confidence=confidence)


@pytest.fixture
def session():
    return MergeSession(cap=50, min_confidence=0.5)


class TestNameKey:
    def test_case_and_whitespace_collapse(self):
        assert name_key("Tomato") == name_key(" tomato ") == name_key("TOMATO")

    def test_inner_whitespace_collapses(self):
        assert name_key("Green   Pepper") == name_key("green pepper")

    def test_distinct_names_differ(self):
        assert name_key("Egg") != name_key("Eggs")


class TestFeed:
    def test_higher_confidence_replaces(self, session):
        session.feed([d("Tomato", 0.6, "2")])
        session.feed([d("Tomato", 0.9, "3")])

        result = session.snapshot()
        assert len(result) == 1
        assert result[0].name == "Tomato"
        assert result[0].estimated_quantity == "3"
        assert result[0].confidence == 0.9

    def test_lower_confidence_does_not_replace(self, session):
        session.feed([d("Milk", 0.9, "1L")])
        session.feed([d("Milk", 0.7, "half")])

        result = session.snapshot()
        assert result[0].estimated_quantity == "1L"
        assert result[0].confidence == 0.9

    def test_equal_confidence_keeps_first(self, session):
        session.feed([d("Egg", 0.8, "6")])
        session.feed([d("Egg", 0.8, "12")])

        assert session.snapshot()[0].estimated_quantity == "6"

    def test_duplicates_within_one_batch(self, session):
        session.feed([d("Egg", 0.6), d("egg", 0.9), d("EGG", 0.7)])

        result = session.snapshot()
        assert len(result) == 1
        assert result[0].confidence == 0.9
        assert result[0].name == "egg"

    def test_emitted_name_is_winning_spelling(self, session):
        session.feed([d("tomato", 0.6)])
        session.feed([d("  Tomato ", 0.9)])

        assert session.snapshot()[0].name == "Tomato"

    def test_id_stable_across_replacement(self, session):
        session.feed([d("Tomato", 0.6)])
        first_id = session.accumulated["tomato"].id
        session.feed([d("Tomato", 0.95)])

        assert session.accumulated["tomato"].id == first_id
        assert session.snapshot()[0].id == first_id

    def test_new_items_get_distinct_ids(self, session):
        session.feed([d("Tomato", 0.9), d("Milk", 0.9)])
        ids = {i.id for i in session.snapshot()}
        assert len(ids) == 2

    def test_empty_batch_is_noop(self, session):
        session.feed([d("Tomato", 0.9)])
        before = session.snapshot()
        session.feed([])

        assert session.snapshot() == before
        assert len(session) == 1

    def test_confidence_never_decreases(self, session):
        seen = []
        for c in [0.4, 0.9, 0.2, 0.6, 0.95, 0.1]:
            session.feed([d("Carrot", c)])
            seen.append(session.accumulated["carrot"].confidence)
        assert seen == sorted(seen)

    def test_accumulated_is_a_copy(self, session):
        session.feed([d("Tomato", 0.9)])
        session.accumulated.clear()
        assert len(session) == 1


class TestSnapshot:
    def test_floor_filters_low_confidence(self, session):
        session.feed([d("Apple", 0.4), d("Butter", 0.5), d("Cheese", 0.8)])

        names = [i.name for i in session.snapshot()]
        assert names == ["Cheese", "Butter"]

    def test_low_item_can_rise_above_floor(self, session):
        session.feed([d("Apple", 0.3)])
        assert session.snapshot() == []
        assert len(session) == 1

        session.feed([d("Apple", 0.7)])
        assert [i.name for i in session.snapshot()] == ["Apple"]

    def test_sorted_by_confidence_descending(self, session):
        session.feed([d("A", 0.6), d("B", 0.9), d("C", 0.75)])

        confidences = [i.confidence for i in session.snapshot()]
        assert confidences == [0.9, 0.75, 0.6]

    def test_ties_keep_first_seen_order(self, session):
        session.feed([d("Zucchini", 0.8), d("Apple", 0.8)])
        session.feed([d("Mango", 0.8)])

        names = [i.name for i in session.snapshot()]
        assert names == ["Zucchini", "Apple", "Mango"]

    def test_snapshot_is_idempotent(self, session):
        session.feed([d("A", 0.6), d("B", 0.9)])
        assert session.snapshot() == session.snapshot()

    def test_snapshot_of_empty_session(self, session):
        assert session.snapshot() == []

    def test_snapshot_returns_ingredients(self, session):
        session.feed([d("Tomato", 0.9, "3")])
        item = session.snapshot()[0]
        assert isinstance(item, Ingredient)
        assert item.needs_verification is False


class TestSaturation:
    def test_not_saturated_below_cap(self):
        session = MergeSession(cap=3)
        session.feed([d("A", 0.9), d("B", 0.9)])
        assert session.is_saturated() is False

    def test_saturated_at_cap(self):
        session = MergeSession(cap=3)
        session.feed([d("A", 0.9), d("B", 0.9), d("C", 0.9)])
        assert session.is_saturated() is True

    def test_counts_items_below_floor(self):
        session = MergeSession(cap=2, min_confidence=0.5)
        session.feed([d("A", 0.1), d("B", 0.2)])
        assert session.snapshot() == []
        assert session.is_saturated() is True

    def test_repeated_names_do_not_count_twice(self):
        session = MergeSession(cap=2)
        session.feed([d("A", 0.5), d("a", 0.9), d("A ", 0.7)])
        assert len(session) == 1
        assert session.is_saturated() is False

    def test_one_batch_may_overshoot_cap(self):
        session = MergeSession(cap=2)
        session.feed([d("A", 0.9), d("B", 0.9), d("C", 0.9)])
        assert len(session) == 3
        assert session.is_saturated() is True

    def test_reset_clears_state(self):
        session = MergeSession(cap=1)
        session.feed([d("A", 0.9)])
        session.reset()
        assert len(session) == 0
        assert session.is_saturated() is False


class TestRank:
    def test_rank_filters_and_sorts(self):
        items = [
            Ingredient(name="a", confidence=0.55),
            Ingredient(name="b", confidence=0.2),
            Ingredient(name="c", confidence=0.99),
        ]
        assert [i.name for i in rank(items, 0.5)] == ["c", "a"]

    def test_rank_zero_floor_keeps_everything(self):
        items = [Ingredient(name="a", confidence=0.0)]
        assert len(rank(items, 0.0)) == 1
