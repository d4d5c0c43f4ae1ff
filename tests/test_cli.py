"""
CLI tests using typer's CliRunner.

The Scouter is built over in-memory collaborators and patched in for
_get_scouter, so no network or config directory is touched.
"""

import json

import pytest
from typer.testing import CliRunner

from scout import cli
from scout.cli import _parse_properties, app


runner = CliRunner()


@pytest.fixture(autouse=True)
def patched_scouter(monkeypatch, scouter):
    monkeypatch.setattr(cli, "_get_scouter", lambda config_dir=None: scouter)
    monkeypatch.setattr(cli, "_json_output", False)
    return scouter


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("list", "properties", "search", "create", "delete", "show", "refresh", "menu"):
        assert command in result.output


def test_list():
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "1  Apple iPhone 12" in result.output
    assert "    Price: 499.99" in result.output


def test_list_json():
    result = runner.invoke(app, ["--json", "list"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [d["id"] for d in data] == ["1", "2", "3", "4"]
    assert data[3]["data"] is None


def test_properties_sorted():
    result = runner.invoke(app, ["properties"])
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "Capacity GB", "Color", "ColorScheme", "Price", "Weight",
    ]


def test_search_requires_an_option():
    result = runner.invoke(app, ["search"])
    assert result.exit_code == 1
    assert "Specify --name, --value, or both" in result.output


def test_search_by_name_prints_values():
    result = runner.invoke(app, ["search", "--name", "COLO"])
    assert result.exit_code == 0
    assert result.output.splitlines() == ["Red", "Dark"]


def test_search_by_value():
    result = runner.invoke(app, ["search", "--value", "dark"])
    assert result.exit_code == 0
    assert "Google Pixel has matching ColorScheme: Dark" in result.output


def test_search_name_filters_value_matches():
    result = runner.invoke(app, ["search", "-n", "weight", "-V", "dark"])
    assert result.exit_code == 0
    assert "No items have a property equal to dark." in result.output


def test_create_pending_item(fake_persistence):
    result = runner.invoke(app, ["create", "Widget", "-p", "Size=L", "-p", "Weight=10"])
    assert result.exit_code == 0
    assert "local-" in result.output
    assert "Widget (pending)" in result.output
    assert fake_persistence.pending[0].properties == {"Size": "L", "Weight": "10"}


def test_create_bad_property_hint():
    result = runner.invoke(app, ["create", "Widget", "-p", "Size:L"])
    assert result.exit_code == 1
    assert "Did you mean: Size=L?" in result.output


def test_delete_found():
    result = runner.invoke(app, ["delete", "3"])
    assert result.exit_code == 0
    assert "ID 3 removed." in result.output


def test_delete_not_found():
    result = runner.invoke(app, ["delete", "999"])
    assert result.exit_code == 1
    assert "Item ID not found: 999" in result.output


def test_show():
    result = runner.invoke(app, ["show", "2"])
    assert result.exit_code == 0
    assert "2  Google Pixel" in result.output


def test_show_missing():
    result = runner.invoke(app, ["show", "404"])
    assert result.exit_code == 1
    assert "Not found: 404" in result.output


def test_refresh_summary():
    result = runner.invoke(app, ["refresh"])
    assert result.exit_code == 0
    assert "4 items (0 pending), 5 properties" in result.output


def test_refresh_failure_exits(fake_remote):
    from scout.remote import RemoteSourceError

    fake_remote.error = RemoteSourceError("connection refused")
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_parse_properties():
    assert _parse_properties(["a=1", "b = x=y"]) == {"a": "1", "b": " x=y"}
    assert _parse_properties(None) == {}
