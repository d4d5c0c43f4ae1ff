"""
Protocol definitions for the collaborators of the sync coordinator.

- RemoteSourceProtocol: where authoritative items come from
  (RemoteItemSource over HTTP, or a test double)
- PersistenceProtocol: the local cache (LocalItemCache on SQLite)
"""

from typing import Iterable, Optional, Protocol, runtime_checkable

from .types import Item


@runtime_checkable
class RemoteSourceProtocol(Protocol):
    """
    Remote item source.

    fetch_all() raises on network failure or malformed payload.
    """

    def fetch_all(self) -> list[Item]: ...

    def fetch_by_id(self, id: str) -> Optional[Item]: ...

    def create(self, item: Item) -> Item: ...

    def delete(self, id: str) -> bool: ...

    def close(self) -> None: ...


@runtime_checkable
class PersistenceProtocol(Protocol):
    """
    Local item persistence.

    load_all() returns an empty list on first run and raises on a
    corrupt store.
    """

    def load_all(self) -> list[Item]: ...

    def save_snapshot(self, items: Iterable[Item]) -> None: ...

    def add_pending(self, item: Item) -> None: ...

    def remove_by_id(self, id: str) -> bool: ...

    def close(self) -> None: ...
