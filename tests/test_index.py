"""Tests for the property index builder."""

import pytest

from scout.errors import NotLoadedError
from scout.index import PropertyIndex, build_property_index
from scout.types import Item


class TestBuildPropertyIndex:
    def test_collects_distinct_names(self, sample_items):
        index = build_property_index(sample_items)
        assert set(index) == {"Color", "Capacity GB", "ColorScheme", "Price", "Weight"}

    def test_null_values_are_excluded(self, sample_items):
        index = build_property_index(sample_items)
        assert "Notes" not in index

    def test_case_insensitive_uniqueness_keeps_first_spelling(self):
        items = [
            Item(name="a", properties={"Weight": "1"}),
            Item(name="b", properties={"weight": "2", "WEIGHT2": "3"}),
        ]
        index = build_property_index(items)
        assert len(index) == 2
        assert "weight" in index
        assert "WEIGHT" in index
        assert list(index) == ["Weight", "WEIGHT2"]

    def test_absent_collection_raises(self):
        with pytest.raises(NotLoadedError):
            build_property_index(None)

    def test_empty_collection_gives_empty_index(self):
        assert len(build_property_index([])) == 0

    def test_idempotent(self, sample_items):
        assert build_property_index(sample_items) == build_property_index(sample_items)

    def test_order_does_not_matter(self, sample_items):
        forward = build_property_index(sample_items)
        backward = build_property_index(list(reversed(sample_items)))
        assert forward == backward


class TestPropertyIndex:
    def test_names_sorted_case_insensitively(self):
        index = PropertyIndex(["beta", "Alpha", "gamma"])
        assert index.names() == ["Alpha", "beta", "gamma"]

    def test_equality_ignores_case(self):
        assert PropertyIndex(["Color"]) == PropertyIndex(["color"])
        assert PropertyIndex(["Color"]) != PropertyIndex(["Colour"])

    def test_contains_rejects_non_strings(self):
        assert 5 not in PropertyIndex(["5"])
