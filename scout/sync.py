"""
Background refresh of the item collection.

One refresh cycle:
  1. load the local cache
  2. fetch the remote collection
  3. merge: remote items, then pending local items the remote lacks
  4. write the remote collection back to the cache
  5. swap the merged collection into the store and rebuild the index

A cycle that fails in steps 1-4 changes nothing in memory. At most one
cycle is in flight; the foreground waits for it with join() before it
touches the store.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .errors import SyncError
from .index import PropertyIndex, build_property_index
from .protocol import PersistenceProtocol, RemoteSourceProtocol
from .store import ItemStore
from .types import Item, RefreshResult

logger = logging.getLogger(__name__)


def merge_items(remote: list[Item], persisted: list[Item]) -> tuple[list[Item], int]:
    """
    Remote items followed by pending persisted items not present remotely.

    Returns:
        (merged items, number of pending items carried over)
    """
    remote_ids = {item.id.casefold() for item in remote if item.id is not None}
    carried = [
        item for item in persisted
        if item.pending and (item.id is None or item.id.casefold() not in remote_ids)
    ]
    return [*remote, *carried], len(carried)


class SyncCoordinator:
    """
    Owns the single in-flight refresh handle and the published index.

    Only this class writes the property index. Store membership is
    written here (replace) and by the create/delete flows, which run
    only after join().
    """

    def __init__(
        self,
        store: ItemStore,
        persistence: PersistenceProtocol,
        remote: Optional[RemoteSourceProtocol] = None,
    ):
        """
        Args:
            store: The item store to populate
            persistence: Local cache, read at the start of each cycle
            remote: Remote source; None runs offline from the cache alone
        """
        self._store = store
        self._persistence = persistence
        self._remote = remote
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scout-refresh")
        self._handle_lock = threading.Lock()
        self._handle: Optional[Future] = None
        self._property_index: Optional[PropertyIndex] = None
        self._last_result: Optional[RefreshResult] = None

    @property
    def property_index(self) -> Optional[PropertyIndex]:
        """Index published by the last successful cycle, or None."""
        return self._property_index

    @property
    def last_result(self) -> Optional[RefreshResult]:
        return self._last_result

    @property
    def pending(self) -> bool:
        """True while a refresh has been started and not yet joined."""
        with self._handle_lock:
            return self._handle is not None

    def start(self) -> Future:
        """
        Start a refresh in the background.

        If one is already outstanding, its handle is returned instead of
        starting another.
        """
        with self._handle_lock:
            if self._handle is None:
                self._handle = self._executor.submit(self._run_cycle)
            return self._handle

    def join(self) -> Optional[RefreshResult]:
        """
        Wait for the outstanding refresh.

        Returns:
            The cycle's result, or None if nothing was in flight

        Raises:
            SyncError: If the cycle failed. Store and index are unchanged.
        """
        with self._handle_lock:
            handle = self._handle
        if handle is None:
            return None
        try:
            return handle.result()
        finally:
            with self._handle_lock:
                if self._handle is handle:
                    self._handle = None

    def refresh(self) -> RefreshResult:
        """Run a cycle and wait for it."""
        self.start()
        return self.join()

    def _run_cycle(self) -> RefreshResult:
        started = time.monotonic()
        try:
            persisted = self._persistence.load_all()
            if self._remote is None:
                merged, pending_count = persisted, sum(1 for i in persisted if i.pending)
                remote_count = len(persisted) - pending_count
            else:
                remote_items = self._remote.fetch_all()
                merged, pending_count = merge_items(remote_items, persisted)
                remote_count = len(remote_items)
                self._persistence.save_snapshot(remote_items)
        except Exception as e:
            logger.warning("Refresh failed: %s", e)
            raise SyncError(f"Refresh failed: {e}") from e

        self._store.replace(merged)
        self._property_index = build_property_index(merged)

        result = RefreshResult(
            remote_count=remote_count,
            pending_count=pending_count,
            property_count=len(self._property_index),
            elapsed=time.monotonic() - started,
        )
        self._last_result = result
        logger.info(
            "Refreshed %d items (%d pending) with %d properties in %.2fs",
            result.total, result.pending_count, result.property_count, result.elapsed,
        )
        return result

    def close(self) -> None:
        """Wait for any running cycle and stop the worker."""
        self._executor.shutdown(wait=True)
