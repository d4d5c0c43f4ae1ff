"""Tests for scout.remote: HTTP client for the remote item source."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from scout.protocol import RemoteSourceProtocol
from scout.remote import RemoteItemSource, RemoteSourceError


class FakeResponse:
    """Minimal httpx.Response stand-in."""

    def __init__(self, status_code=200, json_data=None, text="", headers=None, bad_json=False):
        self.status_code = status_code
        self._json = json_data
        self._bad_json = bad_json
        self.text = text
        self.headers = headers or {}

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"{self.status_code}",
                request=httpx.Request("GET", "http://test"),
                response=self,
            )


OBJECTS = [
    {"id": "1", "name": "Google Pixel 6 Pro", "data": {"color": "Cloudy White", "capacity": "128 GB"}},
    {"id": "2", "name": "Apple iPhone 12 Mini, 256GB, Blue", "data": None},
    {"id": "7", "name": "Apple MacBook Pro 16", "data": {"year": 2019, "price": 1849.99}},
]


@pytest.fixture
def mock_client():
    """RemoteItemSource with a mocked httpx.Client."""
    with patch("scout.remote.httpx.Client") as MockClient:
        client_instance = MagicMock()
        MockClient.return_value = client_instance
        source = RemoteItemSource("https://api.example.com/")
        yield source, client_instance


class TestConstruction:
    def test_strips_trailing_slash(self, mock_client):
        source, _ = mock_client
        assert source.api_url == "https://api.example.com"

    def test_satisfies_protocol(self, mock_client):
        source, _ = mock_client
        assert isinstance(source, RemoteSourceProtocol)

    def test_rejects_plain_http_with_api_key(self):
        with pytest.raises(ValueError, match="must use HTTPS"):
            RemoteItemSource("http://api.example.com", api_key="secret")

    def test_allows_localhost_with_api_key(self):
        with patch("scout.remote.httpx.Client") as MockClient:
            RemoteItemSource("http://localhost:8000", api_key="secret")
            headers = MockClient.call_args[1]["headers"]
            assert headers["x-api-key"] == "secret"

    def test_allows_plain_http_without_key(self):
        with patch("scout.remote.httpx.Client"):
            source = RemoteItemSource("http://api.example.com")
            assert source.api_url == "http://api.example.com"


class TestFetchAll:
    def test_returns_items(self, mock_client):
        source, http = mock_client
        http.get.return_value = FakeResponse(json_data=OBJECTS)

        items = source.fetch_all()

        http.get.assert_called_once_with("/objects")
        assert [i.id for i in items] == ["1", "2", "7"]
        assert items[0].properties["color"] == "Cloudy White"
        assert items[1].properties == {}
        assert items[2].properties["year"] == 2019

    def test_custom_resource(self):
        with patch("scout.remote.httpx.Client") as MockClient:
            http = MagicMock()
            MockClient.return_value = http
            http.get.return_value = FakeResponse(json_data=[])
            RemoteItemSource("https://api.example.com", resource="things/").fetch_all()
            http.get.assert_called_once_with("/things")

    def test_http_error_raises(self, mock_client):
        source, http = mock_client
        http.get.return_value = FakeResponse(status_code=500, text="boom")
        with pytest.raises(RemoteSourceError, match="500"):
            source.fetch_all()

    def test_connect_error_raises(self, mock_client):
        source, http = mock_client
        http.get.side_effect = httpx.ConnectError("down")
        with pytest.raises(RemoteSourceError, match="down"):
            source.fetch_all()

    def test_invalid_json_raises(self, mock_client):
        source, http = mock_client
        http.get.return_value = FakeResponse(bad_json=True)
        with pytest.raises(RemoteSourceError, match="invalid JSON"):
            source.fetch_all()

    def test_non_list_payload_raises(self, mock_client):
        source, http = mock_client
        http.get.return_value = FakeResponse(json_data={"error": "nope"})
        with pytest.raises(RemoteSourceError, match="Malformed"):
            source.fetch_all()

    def test_item_without_name_raises(self, mock_client):
        source, http = mock_client
        http.get.return_value = FakeResponse(json_data=[{"id": "1"}])
        with pytest.raises(RemoteSourceError, match="Malformed item"):
            source.fetch_all()

    def test_fetch_delay_sleeps(self):
        with patch("scout.remote.httpx.Client") as MockClient, \
                patch("scout.remote.time.sleep") as sleep:
            http = MagicMock()
            MockClient.return_value = http
            http.get.return_value = FakeResponse(json_data=[])
            RemoteItemSource("https://api.example.com", fetch_delay=4.0).fetch_all()
            sleep.assert_called_once_with(4.0)


class TestFetchById:
    def test_returns_item(self, mock_client):
        source, http = mock_client
        http.get.return_value = FakeResponse(json_data=OBJECTS[2])
        item = source.fetch_by_id("7")
        http.get.assert_called_once_with("/objects/7")
        assert item.name == "Apple MacBook Pro 16"

    def test_404_returns_none(self, mock_client):
        source, http = mock_client
        http.get.return_value = FakeResponse(status_code=404)
        assert source.fetch_by_id("999") is None

    def test_server_error_raises(self, mock_client):
        source, http = mock_client
        http.get.return_value = FakeResponse(status_code=503)
        with pytest.raises(RemoteSourceError):
            source.fetch_by_id("1")


class TestWrites:
    def test_create_posts_payload(self, mock_client):
        from scout.types import Item

        source, http = mock_client
        http.post.return_value = FakeResponse(
            json_data={"id": "ff808181", "name": "Widget", "data": {"Weight": "10"}},
        )

        created = source.create(Item(name="Widget", properties={"Weight": "10"}))

        call_args = http.post.call_args
        assert call_args[0][0] == "/objects"
        assert call_args[1]["json"] == {"name": "Widget", "data": {"Weight": "10"}}
        assert created.id == "ff808181"

    def test_create_rejected(self, mock_client):
        from scout.types import Item

        source, http = mock_client
        http.post.return_value = FakeResponse(status_code=400, text="bad")
        with pytest.raises(RemoteSourceError, match="400"):
            source.create(Item(name="x"))

    def test_delete(self, mock_client):
        source, http = mock_client
        http.delete.return_value = FakeResponse(status_code=200)
        assert source.delete("7") is True
        http.delete.assert_called_once_with("/objects/7")

    def test_delete_missing(self, mock_client):
        source, http = mock_client
        http.delete.return_value = FakeResponse(status_code=404)
        assert source.delete("7") is False

    def test_delete_reserved_id_rejected(self, mock_client):
        source, http = mock_client
        http.delete.return_value = FakeResponse(status_code=405, text="reserved")
        with pytest.raises(RemoteSourceError, match="405"):
            source.delete("1")


def test_mock_transport_end_to_end():
    """Exercise the real httpx.Client against a MockTransport."""
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/objects"
        return httpx.Response(200, json=OBJECTS)

    source = RemoteItemSource("https://api.example.com", transport=httpx.MockTransport(handler))
    try:
        assert len(source.fetch_all()) == 3
    finally:
        source.close()
