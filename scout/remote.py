"""
HTTP client for the remote item source.

The source serves an "objects" collection: GET {resource} returns every
item, GET {resource}/{id} a single one. POST and DELETE are used only
when write-through is enabled in config.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from .errors import ScoutError
from .types import Item

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_RESOURCE = "/objects"

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


class RemoteSourceError(ScoutError):
    """Error communicating with the remote item source."""


def _parse_items(data) -> list[Item]:
    if not isinstance(data, list):
        raise RemoteSourceError(
            f"Malformed payload: expected a list of items, got {type(data).__name__}"
        )
    try:
        return [Item.from_dict(entry) for entry in data]
    except ValueError as e:
        raise RemoteSourceError(f"Malformed item in payload: {e}") from e


class RemoteItemSource:
    """Fetches items from the remote REST source."""

    def __init__(
        self,
        api_url: str,
        *,
        resource: str = DEFAULT_RESOURCE,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        fetch_delay: float = 0.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._resource = "/" + resource.strip("/")
        self._fetch_delay = fetch_delay

        headers: dict[str, str] = {"Accept": "application/json"}
        if api_key:
            # Refuse non-HTTPS when a key would be sent in cleartext
            if not self._api_url.startswith("https://"):
                from urllib.parse import urlparse
                host = urlparse(self._api_url).hostname or ""
                if host not in _LOCAL_HOSTS:
                    raise ValueError(
                        f"API URL must use HTTPS when an API key is set (got {self._api_url})."
                    )
            headers["x-api-key"] = api_key

        self._client = httpx.Client(
            base_url=self._api_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def api_url(self) -> str:
        return self._api_url

    def _get_json(self, path: str):
        try:
            resp = self._client.get(path)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise RemoteSourceError(
                f"GET {path} failed: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteSourceError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise RemoteSourceError(f"GET {path} returned invalid JSON: {e}") from e

    def fetch_all(self) -> list[Item]:
        """GET {resource} -> every item."""
        if self._fetch_delay > 0:
            # Simulated latency, configurable for demonstrations
            time.sleep(self._fetch_delay)
        items = _parse_items(self._get_json(self._resource))
        logger.debug("Fetched %d items from %s", len(items), self._api_url)
        return items

    def fetch_by_id(self, id: str) -> Optional[Item]:
        """GET {resource}/{id} -> item, or None if the source has no such id."""
        path = f"{self._resource}/{id}"
        try:
            resp = self._client.get(path)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            return Item.from_dict(resp.json())
        except httpx.HTTPStatusError as e:
            raise RemoteSourceError(f"GET {path} failed: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RemoteSourceError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise RemoteSourceError(f"GET {path} returned a malformed item: {e}") from e

    def create(self, item: Item) -> Item:
        """POST {resource} -> the stored item, carrying its new id."""
        payload = {"name": item.name, "data": dict(item.properties) or None}
        try:
            resp = self._client.post(self._resource, json=payload)
            resp.raise_for_status()
            return Item.from_dict(resp.json())
        except httpx.HTTPStatusError as e:
            raise RemoteSourceError(
                f"Create rejected: {e.response.status_code} {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteSourceError(f"Create failed: {e}") from e
        except ValueError as e:
            raise RemoteSourceError(f"Create returned a malformed item: {e}") from e

    def delete(self, id: str) -> bool:
        """DELETE {resource}/{id}. False if the source has no such id."""
        path = f"{self._resource}/{id}"
        try:
            resp = self._client.delete(path)
            if resp.status_code == 404:
                return False
            resp.raise_for_status()
            return True
        except httpx.HTTPStatusError as e:
            raise RemoteSourceError(
                f"Delete rejected: {e.response.status_code} {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteSourceError(f"Delete failed: {e}") from e

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()
