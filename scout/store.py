"""
In-memory item store.

Single owner of the authoritative item sequence. The collection is
absent (None) until the first successful load, which callers must
handle as a normal branch.
"""

import logging
import threading
from typing import Iterable, Optional

from .types import Item

logger = logging.getLogger(__name__)


class ItemStore:
    """
    Holds the current item collection.

    Swaps are atomic: a reader gets either the old list or the new one,
    never a mix. Readers receive copies of the sequence, so a later swap
    cannot change what they already hold.
    """

    def __init__(self, items: Optional[Iterable[Item]] = None):
        self._lock = threading.Lock()
        self._items: Optional[list[Item]] = list(items) if items is not None else None

    @property
    def loaded(self) -> bool:
        return self._items is not None

    def get_all(self) -> Optional[list[Item]]:
        """Current snapshot, or None if nothing has been loaded."""
        with self._lock:
            if self._items is None:
                return None
            return list(self._items)

    def replace(self, items: Iterable[Item]) -> None:
        """Swap in a new collection."""
        new_items = list(items)
        with self._lock:
            self._items = new_items
        logger.debug("Store replaced: %d items", len(new_items))

    def add(self, item: Item) -> None:
        """Append an item. Does not persist or sync."""
        with self._lock:
            if self._items is None:
                self._items = [item]
            else:
                self._items = [*self._items, item]

    def remove_by_id(self, id: str) -> bool:
        """
        Remove the first item whose id matches, ignoring case.

        Returns:
            True if an item was removed, False if none matched or
            nothing is loaded.
        """
        folded = id.casefold()
        with self._lock:
            if not self._items:
                return False
            for i, item in enumerate(self._items):
                if item.id is not None and item.id.casefold() == folded:
                    self._items = self._items[:i] + self._items[i + 1:]
                    return True
        return False

    def get_by_id(self, id: str) -> Optional[Item]:
        """Case-insensitive lookup by id."""
        folded = id.casefold()
        for item in self.get_all() or []:
            if item.id is not None and item.id.casefold() == folded:
                return item
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items) if self._items is not None else 0
