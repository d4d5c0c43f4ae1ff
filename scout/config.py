"""
Configuration management for scout.

The configuration is stored as a TOML file in the config directory.
It names the remote source and the local cache file.
"""

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import tomli_w


CONFIG_FILENAME = "scout.toml"
CONFIG_VERSION = 1

DEFAULT_API_URL = "https://api.restful-api.dev"
DEFAULT_RESOURCE = "/objects"


@dataclass
class RemoteConfig:
    """Where items are fetched from."""
    api_url: str = DEFAULT_API_URL
    resource: str = DEFAULT_RESOURCE
    timeout: float = 30.0
    api_key: Optional[str] = None
    fetch_delay: float = 0.0      # simulated latency before each fetch, seconds
    write_through: bool = False   # send create/delete to the remote as well


@dataclass
class CacheConfig:
    """Local SQLite cache."""
    filename: str = "items.db"


@dataclass
class ScoutConfig:
    """Complete configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    backend: str = "http"
    offline: bool = False
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    @property
    def cache_path(self) -> Path:
        """Path to the SQLite cache."""
        return self.path / self.cache.filename

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def get_config_dir() -> Path:
    """Config directory: SCOUT_CONFIG_DIR, else ~/.scout."""
    env = os.environ.get("SCOUT_CONFIG_DIR")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".scout"


def _env_flag(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None:
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def apply_env_overrides(config: ScoutConfig) -> ScoutConfig:
    """Apply SCOUT_API_URL, SCOUT_API_KEY and SCOUT_OFFLINE over file values."""
    api_url = os.environ.get("SCOUT_API_URL")
    if api_url:
        config.remote.api_url = api_url
    api_key = os.environ.get("SCOUT_API_KEY")
    if api_key:
        config.remote.api_key = api_key
    offline = _env_flag("SCOUT_OFFLINE")
    if offline is not None:
        config.offline = offline
    return config


def load_config(config_dir: Path) -> ScoutConfig:
    """
    Load configuration from a config directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = config_dir / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid config {config_path}: {e}") from e

    store = data.get("store", {})
    version = store.get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    remote = data.get("remote", {})
    cache = data.get("cache", {})
    defaults = RemoteConfig()

    return ScoutConfig(
        path=config_dir,
        version=version,
        created=store.get("created", ""),
        backend=store.get("backend", "http"),
        offline=bool(store.get("offline", False)),
        remote=RemoteConfig(
            api_url=remote.get("api_url", defaults.api_url),
            resource=remote.get("resource", defaults.resource),
            timeout=float(remote.get("timeout", defaults.timeout)),
            api_key=remote.get("api_key") or None,
            fetch_delay=float(remote.get("fetch_delay", defaults.fetch_delay)),
            write_through=bool(remote.get("write_through", defaults.write_through)),
        ),
        cache=CacheConfig(filename=cache.get("filename", CacheConfig().filename)),
    )


def save_config(config: ScoutConfig) -> None:
    """
    Save configuration to the config directory.

    Creates the directory if it doesn't exist. The API key is never
    written; supply it through SCOUT_API_KEY.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    data = {
        "store": {
            "version": config.version,
            "created": config.created,
            "backend": config.backend,
            "offline": config.offline,
        },
        "remote": {
            "api_url": config.remote.api_url,
            "resource": config.remote.resource,
            "timeout": config.remote.timeout,
            "fetch_delay": config.remote.fetch_delay,
            "write_through": config.remote.write_through,
        },
        "cache": {
            "filename": config.cache.filename,
        },
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(config_dir: Path) -> ScoutConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management. Environment
    overrides are applied after loading and are not saved.
    """
    config_path = config_dir / CONFIG_FILENAME

    if config_path.exists():
        config = load_config(config_dir)
    else:
        config = ScoutConfig(path=config_dir)
        save_config(config)
    return apply_env_overrides(config)
