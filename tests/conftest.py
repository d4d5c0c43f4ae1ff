"""
Shared pytest fixtures for scout tests.

Provides in-memory collaborators so tests need no network or files.
"""

import threading
from typing import Iterable, Optional

import pytest

from scout.config import ScoutConfig
from scout.types import Item


class FakeRemoteSource:
    """
    In-memory remote source.

    Set `gate` to a threading.Event to hold fetch_all() until the test
    releases it; `fetch_started` is set when a fetch begins.
    """

    def __init__(self, items: Optional[Iterable[Item]] = None):
        self.items: list[Item] = list(items or [])
        self.fetch_calls = 0
        self.error: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self.fetch_started = threading.Event()
        self.created: list[Item] = []
        self.deleted: list[str] = []
        self.closed = False
        self._next_id = 1000

    def fetch_all(self) -> list[Item]:
        self.fetch_calls += 1
        self.fetch_started.set()
        if self.gate is not None:
            self.gate.wait(timeout=10)
        if self.error is not None:
            raise self.error
        return [_copy(i) for i in self.items]

    def fetch_by_id(self, id: str) -> Optional[Item]:
        for item in self.items:
            if item.id is not None and item.id.casefold() == id.casefold():
                return _copy(item)
        return None

    def create(self, item: Item) -> Item:
        self._next_id += 1
        stored = Item(name=item.name, id=str(self._next_id), properties=dict(item.properties))
        self.items.append(stored)
        self.created.append(stored)
        return _copy(stored)

    def delete(self, id: str) -> bool:
        self.deleted.append(id)
        before = len(self.items)
        self.items = [i for i in self.items if (i.id or "").casefold() != id.casefold()]
        return len(self.items) < before

    def close(self) -> None:
        self.closed = True


class FakePersistence:
    """In-memory stand-in for LocalItemCache."""

    def __init__(self, items: Optional[Iterable[Item]] = None):
        self.snapshot: list[Item] = []
        self.pending: list[Item] = list(items or [])
        self.error: Optional[Exception] = None
        self.load_calls = 0
        self.closed = False

    def load_all(self) -> list[Item]:
        self.load_calls += 1
        if self.error is not None:
            raise self.error
        return [_copy(i) for i in self.snapshot] + [_copy(i) for i in self.pending]

    def save_snapshot(self, items: Iterable[Item]) -> None:
        self.snapshot = [_copy(i) for i in items]

    def add_pending(self, item: Item) -> None:
        self.pending.append(_copy(item))

    def remove_by_id(self, id: str) -> bool:
        folded = id.casefold()
        before = len(self.snapshot) + len(self.pending)
        self.snapshot = [i for i in self.snapshot if (i.id or "").casefold() != folded]
        self.pending = [i for i in self.pending if (i.id or "").casefold() != folded]
        return len(self.snapshot) + len(self.pending) < before

    def close(self) -> None:
        self.closed = True


def _copy(item: Item) -> Item:
    return Item(name=item.name, id=item.id, properties=dict(item.properties), pending=item.pending)


def make_items(count: int, start: int = 1) -> list[Item]:
    """Items with ids start..start+count-1 and a Color property."""
    return [
        Item(name=f"Item {n}", id=str(n), properties={"Color": f"color{n}"})
        for n in range(start, start + count)
    ]


@pytest.fixture
def sample_items() -> list[Item]:
    """A small mixed collection."""
    return [
        Item(name="Apple iPhone 12", id="1", properties={"Color": "Red", "Capacity GB": 128}),
        Item(name="Google Pixel", id="2", properties={"ColorScheme": "Dark", "Price": 499.99}),
        Item(name="Widget", id="3", properties={"Weight": "10", "Notes": None}),
        Item(name="Bare", id="4"),
    ]


@pytest.fixture
def fake_remote(sample_items) -> FakeRemoteSource:
    return FakeRemoteSource(sample_items)


@pytest.fixture
def fake_persistence() -> FakePersistence:
    return FakePersistence()


@pytest.fixture
def scout_config(tmp_path) -> ScoutConfig:
    return ScoutConfig(path=tmp_path)


@pytest.fixture
def scouter(scout_config, fake_remote, fake_persistence):
    """A Scouter over fake collaborators, not yet refreshed."""
    from scout.api import Scouter

    sc = Scouter(
        config=scout_config,
        persistence=fake_persistence,
        remote=fake_remote,
        ops_log=False,
    )
    yield sc
    sc.close()
