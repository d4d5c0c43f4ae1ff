"""
Core API for the item collection.

Scouter wires the item store, search engine and sync coordinator to
their collaborators and implements the user-level flows:
- start()/join(): background refresh and its join point
- create_item()/delete_item(): mutate, then refresh and wait
- values_for_property()/find_by_value(): case-insensitive search

Every public operation joins the outstanding refresh first, so it never
sees a half-finished reload.
"""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from .config import ScoutConfig, get_config_dir, load_or_create_config
from .index import PropertyIndex
from .protocol import PersistenceProtocol, RemoteSourceProtocol
from .search import SearchEngine
from .store import ItemStore
from .sync import SyncCoordinator
from .types import Item, PropertyMatch, PropertyValue, RefreshResult, new_local_id

logger = logging.getLogger(__name__)


class Scouter:
    """
    Item collection with background refresh and property search.

    Example:
        sc = Scouter()
        sc.start()
        sc.join()
        matches = sc.find_by_value("red")
    """

    def __init__(
        self,
        config_dir: Optional[str | Path] = None,
        *,
        config: Optional[ScoutConfig] = None,
        persistence: Optional[PersistenceProtocol] = None,
        remote: Optional[RemoteSourceProtocol] = None,
        ops_log: bool = True,
    ) -> None:
        """
        Args:
            config_dir: Directory holding scout.toml and the cache.
                Uses the default config dir if not specified.
            config: Pre-loaded ScoutConfig (skips filesystem discovery).
            persistence: Injected local cache (skips backend creation).
            remote: Injected remote source; only used together with an
                injected persistence. None there means offline.
            ops_log: Attach the rotating operations log.
        """
        if config is not None:
            self._config = config
        else:
            path = Path(config_dir).resolve() if config_dir is not None else get_config_dir()
            self._config = load_or_create_config(path)

        if persistence is not None:
            self._persistence = persistence
            self._remote = remote
        else:
            from .backend import create_sources
            bundle = create_sources(self._config)
            self._persistence = bundle.persistence
            self._remote = bundle.remote

        self._ops_log_handler = None
        if ops_log:
            from .logging_config import configure_ops_log
            self._ops_log_handler = configure_ops_log(self._config.path)

        self._store = ItemStore()
        self._search = SearchEngine(self._store)
        self._coordinator = SyncCoordinator(self._store, self._persistence, self._remote)

    @property
    def config(self) -> ScoutConfig:
        return self._config

    @property
    def offline(self) -> bool:
        return self._remote is None

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start a background refresh (no-op if one is already running)."""
        self._coordinator.start()

    def join(self) -> Optional[RefreshResult]:
        """
        Wait for the outstanding refresh.

        Raises:
            SyncError: If it failed; the previous collection is kept
        """
        return self._coordinator.join()

    def refresh(self) -> RefreshResult:
        """Refresh now and wait for it."""
        self._coordinator.join()
        return self._coordinator.refresh()

    @property
    def refresh_pending(self) -> bool:
        return self._coordinator.pending

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def items(self) -> Optional[list[Item]]:
        """Current items, or None if nothing has loaded yet."""
        self.join()
        return self._store.get_all()

    def property_names(self) -> Optional[PropertyIndex]:
        """Published property index, or None if nothing has loaded yet."""
        self.join()
        return self._coordinator.property_index

    def get(self, id: str) -> Optional[Item]:
        """Look up an item in the loaded collection."""
        self.join()
        return self._store.get_by_id(id)

    def show(self, id: str) -> Optional[Item]:
        """
        Fetch a single item from the remote source by id.

        Offline, the loaded collection is consulted instead.
        """
        self.join()
        if self._remote is None:
            return self._store.get_by_id(id)
        return self._remote.fetch_by_id(id)

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def values_for_property(self, fragment: str) -> list[PropertyValue]:
        """Values of properties whose name contains fragment."""
        self.join()
        return self._search.find_values_by_property_name_fragment(fragment)

    def find_by_value(self, value: str) -> list[PropertyMatch]:
        """Properties whose value equals value, ignoring case."""
        self.join()
        return self._search.find_items_by_property_value(value)

    def find_by_property_name(self, fragment: str) -> list[PropertyMatch]:
        """Properties whose name contains fragment, ignoring case."""
        self.join()
        return self._search.find_items_by_property_name(fragment)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def create_item(self, name: str, properties: Optional[Mapping[str, Any]] = None) -> Item:
        """
        Create an item, then refresh and wait.

        With write-through the item is sent to the remote source and the
        stored copy (with its new id) is returned. Otherwise it is kept as
        a pending item in the local cache under a "local-" id, which
        delete_item() accepts like any other.

        Raises:
            RemoteSourceError: If write-through creation was rejected
            SyncError: If the follow-up refresh failed
        """
        self.join()
        item = Item(name=name, properties=dict(properties or {}))

        if self._config.remote.write_through and self._remote is not None:
            item = self._remote.create(item)
        else:
            item.id = new_local_id()
            item.pending = True
            self._persistence.add_pending(item)
        self._store.add(item)
        logger.info("Created item %r (id=%s)", item.name, item.id)

        self._coordinator.refresh()
        return item

    def delete_item(self, id: str) -> bool:
        """
        Delete an item by id, then refresh and wait.

        With write-through the remote deletion runs first; if it is
        rejected the collection and cache are left untouched. Pending
        items are never sent to the remote source.

        Returns:
            False if no item in the current collection has that id
            (no refresh is started in that case).

        Raises:
            RemoteSourceError: If write-through deletion was rejected
            SyncError: If the follow-up refresh failed
        """
        self.join()
        item = self._store.get_by_id(id)
        if item is None:
            return False

        if (self._config.remote.write_through and self._remote is not None
                and not item.pending):
            if not self._remote.delete(item.id):
                logger.warning("Remote source has no item %s; removing locally", item.id)

        self._store.remove_by_id(id)
        self._persistence.remove_by_id(id)
        logger.info("Deleted item %s", id)

        self._coordinator.refresh()
        return True

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Stop the refresh worker and release collaborators."""
        self._coordinator.close()
        if self._remote is not None:
            self._remote.close()
        self._persistence.close()
        from .logging_config import remove_ops_log
        remove_ops_log(self._ops_log_handler)
        self._ops_log_handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
