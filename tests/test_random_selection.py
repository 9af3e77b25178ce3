import pytest

from hourei_engine.core.law_explorer.models import WeightedItem
from hourei_engine.core.law_explorer.random_selection import (
    MAJOR_SIX_LAWS,
    default_key,
    pick_unique_random,
    pick_weighted_random,
    shuffle,
)


def sequence_random(values):
    """Random source replaying values, then 0."""
    queue = list(values)
    return lambda: queue.pop(0) if queue else 0.0


class TestPickUniqueRandom:
    """Tests for draws without repetition."""

    def test_unique_values_and_reset_when_exhausted(self):
        history = set()
        random = sequence_random([0, 0, 0, 0.8])

        first = pick_unique_random(["A", "B", "C"], history=history, random=random)
        assert first.value == "A"
        assert "A" in history

        second = pick_unique_random(["A", "B", "C"], history=history, random=random)
        assert second.value == "B"
        assert len(history) == 2

        third = pick_unique_random(["A", "B", "C"], history=history, random=random)
        assert third.value == "C"
        assert len(history) == 3

        fourth = pick_unique_random(["A", "B", "C"], history=history, random=random)
        assert fourth.value == "C"
        assert history == {"C"}

    def test_new_cycle_starts_from_the_full_pool(self):
        history = set()
        values = [pick_unique_random(["A", "B", "C"], history=history, random=lambda: 0).value for _ in range(4)]
        assert values == ["A", "B", "C", "A"]
        assert history == {"A"}

    def test_exhausted_pool_without_reset_raises(self):
        history = set()
        pick_unique_random([1, 2], history=history, random=lambda: 0)
        pick_unique_random([1, 2], history=history, random=lambda: 0)

        with pytest.raises(ValueError, match="Unique random pool exhausted"):
            pick_unique_random([1, 2], history=history, allow_reset=False, random=lambda: 0)

    def test_empty_items_raise(self):
        with pytest.raises(ValueError, match="Cannot pick from an empty array"):
            pick_unique_random([])

    def test_history_is_created_when_missing(self):
        result = pick_unique_random([{"id": 1}], random=lambda: 0)
        assert result.history == {default_key({"id": 1})}

    def test_structurally_equal_values_share_a_key(self):
        assert default_key({"b": 2, "a": 1}) == default_key({"a": 1, "b": 2})
        assert default_key(3) == "3"


class TestPickWeightedRandom:
    """Tests for weighted picks."""

    def test_major_six_multiplier(self):
        items = [WeightedItem(value={"law_name": "民法"}), WeightedItem(value={"law_name": "道路交通法"})]
        law = pick_weighted_random(items, major_six_multiplier=5, random=lambda: 0.2)
        assert law["law_name"] in MAJOR_SIX_LAWS

    def test_plain_values_and_custom_law_name(self):
        items = [{"lawName": "民法"}, {"lawName": "道路交通法"}]
        picked = pick_weighted_random(
            items,
            major_six_multiplier=5,
            get_law_name=lambda item: item["lawName"],
            random=lambda: 0.9,
        )
        assert picked == {"lawName": "道路交通法"}

    def test_explicit_law_name_on_item(self):
        items = [WeightedItem(value="a", law_name="道路交通法"), WeightedItem(value="b", law_name="刑法")]
        assert pick_weighted_random(items, major_six_multiplier=9, random=lambda: 0.15) == "b"

    def test_zero_total_weight_raises(self):
        with pytest.raises(ValueError, match="Total weight must be greater than zero"):
            pick_weighted_random([WeightedItem(value="X", weight=0)])

    def test_non_positive_weights_are_ignored(self):
        items = [WeightedItem(value="skip", weight=-1), WeightedItem(value="keep", weight=2)]
        assert pick_weighted_random(items, random=lambda: 0) == "keep"

    def test_empty_items_raise(self):
        with pytest.raises(ValueError, match="Cannot pick from an empty set"):
            pick_weighted_random([])


def test_shuffle_is_driven_by_the_random_source():
    items = [1, 2, 3]
    assert shuffle(items, random=lambda: 0) == [2, 3, 1]
    assert items == [1, 2, 3]


def test_shuffle_keeps_every_item():
    assert sorted(shuffle(list(range(10)), random=lambda: 0.5)) == list(range(10))
