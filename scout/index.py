"""
Property index: the distinct property names across a collection.

Derived data, never authoritative. Rebuilt after every full reload.
"""

from typing import Iterable, Iterator, Optional

from .errors import NotLoadedError
from .types import Item


class PropertyIndex:
    """
    Case-insensitive set of property names.

    Keeps the first spelling seen for each name so "Weight" is displayed
    as "Weight" even if a later item spells it "weight".
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: dict[str, str] = {}
        for name in names:
            self.add(name)

    def add(self, name: str) -> None:
        self._names.setdefault(name.casefold(), name)

    def names(self) -> list[str]:
        """Display names, sorted case-insensitively."""
        return sorted(self._names.values(), key=str.casefold)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PropertyIndex):
            return self._names.keys() == other._names.keys()
        return NotImplemented

    def __repr__(self) -> str:
        return f"PropertyIndex({self.names()!r})"


def build_property_index(items: Optional[Iterable[Item]]) -> PropertyIndex:
    """
    Collect the names of all non-null properties across items.

    Raises:
        NotLoadedError: If items is None (no collection loaded yet)
    """
    if items is None:
        raise NotLoadedError("No items loaded; cannot build property index.")

    index = PropertyIndex()
    for item in items:
        for name, _value in item.non_null_properties():
            index.add(name)
    return index
