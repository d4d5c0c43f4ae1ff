"""
Collaborator factory.

Creates the remote source and local cache from configuration. The
default ``backend = "http"`` uses RemoteItemSource + LocalItemCache.
Other sources register via the ``scout.sources`` entry point group.

External packages provide a factory function::

    def create_sources(config: ScoutConfig) -> SourceBundle:
        ...

and register it in their pyproject.toml::

    [project.entry-points."scout.sources"]
    my-source = "my_package.sources:create_sources"
"""

from typing import NamedTuple, Optional

from .config import ScoutConfig
from .protocol import PersistenceProtocol, RemoteSourceProtocol


class SourceBundle(NamedTuple):
    """Collaborators returned by the factory."""
    remote: Optional[RemoteSourceProtocol]  # None when offline
    persistence: PersistenceProtocol


def create_sources(config: ScoutConfig) -> SourceBundle:
    """
    Create collaborators from configuration.

    For ``backend = "http"`` (default), creates an httpx RemoteItemSource
    (skipped when offline) and a SQLite LocalItemCache.

    For other values, loads the factory via the ``scout.sources`` entry
    point group.
    """
    if config.backend == "http":
        return _create_http_sources(config)
    return _load_backend(config.backend, config)


def _create_http_sources(config: ScoutConfig) -> SourceBundle:
    """Create the default collaborators."""
    from .persistence import LocalItemCache
    from .remote import RemoteItemSource

    persistence = LocalItemCache(config.cache_path)
    remote = None
    if not config.offline:
        remote = RemoteItemSource(
            config.remote.api_url,
            resource=config.remote.resource,
            api_key=config.remote.api_key,
            timeout=config.remote.timeout,
            fetch_delay=config.remote.fetch_delay,
        )
    return SourceBundle(remote=remote, persistence=persistence)


def _load_backend(name: str, config: ScoutConfig) -> SourceBundle:
    """Load a source factory by entry point name."""
    from importlib.metadata import entry_points

    eps = entry_points(group="scout.sources")
    for ep in eps:
        if ep.name == name:
            factory = ep.load()
            return factory(config)

    available = [ep.name for ep in eps]
    if available:
        raise ValueError(
            f"Unknown backend: {name!r}. Available: {available}"
        )
    raise ValueError(
        f"Unknown backend: {name!r}. No sources registered."
    )
