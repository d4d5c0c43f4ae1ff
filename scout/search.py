"""
Read-only queries over the item store.

All comparisons are case-insensitive. An empty list is the only
"no matches" signal. Results follow store order, then each item's
property order.
"""

from .errors import NotLoadedError
from .store import ItemStore
from .types import Item, PropertyMatch, PropertyValue, name_contains, text_equals


class SearchEngine:
    """Queries by property name fragment or exact property value."""

    def __init__(self, store: ItemStore):
        self._store = store

    def _items(self) -> list[Item]:
        items = self._store.get_all()
        if items is None:
            raise NotLoadedError("No valid items to search.")
        return items

    def find_values_by_property_name_fragment(self, fragment: str) -> list[PropertyValue]:
        """
        Values of every property whose name contains fragment.

        Null-valued matching properties contribute None so callers can
        see that the property exists without a value.
        """
        values: list[PropertyValue] = []
        for item in self._items():
            for name, value in item.properties.items():
                if name_contains(name, fragment):
                    values.append(value)
        return values

    def find_items_by_property_value(self, target: str) -> list[PropertyMatch]:
        """Properties whose text equals target exactly (not a substring)."""
        matches: list[PropertyMatch] = []
        for item in self._items():
            for name, value in item.non_null_properties():
                if text_equals(value, target):
                    matches.append(PropertyMatch(item, name, value))
        return matches

    def find_items_by_property_name(self, fragment: str) -> list[PropertyMatch]:
        """Non-null properties whose name contains fragment."""
        matches: list[PropertyMatch] = []
        for item in self._items():
            for name, value in item.non_null_properties():
                if name_contains(name, fragment):
                    matches.append(PropertyMatch(item, name, value))
        return matches
