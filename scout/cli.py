"""
CLI interface for scout.

Usage:
    scout                       # interactive menu
    scout list
    scout search --name colo --value red
    scout create Widget -p Weight=10
    scout delete 7
"""

import json
import os
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import Scouter
from .console import ConsoleInteraction, MenuApp, format_item, format_value
from .errors import ScoutError, SyncError
from .logging_config import configure_quiet_mode, enable_debug_mode
from .remote import RemoteSourceError
from .types import Item, PropertyMatch


# Configure quiet mode by default (suppress HTTP library output)
# Set SCOUT_VERBOSE=1 to enable debug mode via environment
if os.environ.get("SCOUT_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"scout {version('object-scout')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_config_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _config_callback(value: Optional[Path]):
    global _config_override
    if value is not None:
        _config_override = value


app = typer.Typer(
    name="scout",
    help="Browse and search schema-free items from a remote source.",
    no_args_is_help=False,
    invoke_without_command=True,
    rich_markup_mode=None,
)


# -----------------------------------------------------------------------------
# Output Formatting
# -----------------------------------------------------------------------------

def _item_to_json(item: Item) -> dict:
    d = item.to_dict()
    if item.pending:
        d["pending"] = True
    return d


def _format_items(items: list[Item], as_json: bool = False) -> str:
    if as_json:
        return json.dumps([_item_to_json(i) for i in items], indent=2)
    if not items:
        return "No items to display."
    return "\n".join(format_item(i) for i in items)


def _format_matches(matches: list[PropertyMatch], as_json: bool = False) -> str:
    if as_json:
        return json.dumps([
            {"id": m.item.id, "name": m.item.name, "property": m.name, "value": m.value}
            for m in matches
        ], indent=2)
    return "\n".join(
        f"{m.item.name} has matching {m.name}: {format_value(m.value)}" for m in matches
    )


def _get_scouter(config_dir: Optional[Path] = None) -> Scouter:
    """Open the collection, handling config errors gracefully."""
    import atexit

    actual = config_dir if config_dir is not None else _config_override
    try:
        sc = Scouter(actual)
    except (OSError, ValueError, ScoutError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    atexit.register(sc.close)
    return sc


def _refreshed_scouter() -> Scouter:
    """Open the collection and load it before returning."""
    sc = _get_scouter()
    try:
        sc.refresh()
    except SyncError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    return sc


def _parse_properties(props: Optional[list[str]]) -> dict[str, str]:
    """Parse key=value property list to dict."""
    if not props:
        return {}
    parsed: dict[str, str] = {}
    for prop in props:
        if "=" not in prop:
            hint = f"Error: Invalid property format '{prop}'."
            if ":" in prop:
                k, v = prop.split(":", 1)
                hint += f" Did you mean: {k}={v}?"
            else:
                hint += " Use key=value"
            typer.echo(hint, err=True)
            raise typer.Exit(1)
        k, v = prop.split("=", 1)
        parsed[k.strip()] = v
    return parsed


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    config: Annotated[Optional[Path], typer.Option(
        "--config", "-c",
        envvar="SCOUT_CONFIG_DIR",
        help="Path to the config directory (default: ~/.scout/)",
        callback=_config_callback,
        is_eager=True,
    )] = None,
):
    """Browse and search schema-free items from a remote source."""
    # No subcommand: run the interactive menu
    if ctx.invoked_subcommand is None:
        menu()


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def menu():
    """Run the interactive menu (default)."""
    sc = _get_scouter()
    MenuApp(sc, ConsoleInteraction()).run()


@app.command("list")
def list_items():
    """List all items."""
    sc = _refreshed_scouter()
    typer.echo(_format_items(sc.items() or [], as_json=_get_json_output()))


@app.command()
def properties():
    """List the distinct property names across all items."""
    sc = _refreshed_scouter()
    index = sc.property_names()
    names = index.names() if index is not None else []
    if _get_json_output():
        typer.echo(json.dumps(names))
    elif not names:
        typer.echo("No properties found.")
    else:
        for name in names:
            typer.echo(name)


@app.command()
def search(
    name: Annotated[Optional[str], typer.Option(
        "--name", "-n",
        help="Property name fragment (case-insensitive substring)"
    )] = None,
    value: Annotated[Optional[str], typer.Option(
        "--value", "-V",
        help="Exact property value (case-insensitive)"
    )] = None,
):
    """
    Search by property name fragment, property value, or both.

    \b
    Examples:
        scout search --name colo          # values of Color, ColorScheme, ...
        scout search --value red          # items with a property equal to red
        scout search -n colo -V red       # only matches on matching names
    """
    if name is None and value is None:
        typer.echo("Error: Specify --name, --value, or both", err=True)
        raise typer.Exit(1)

    sc = _refreshed_scouter()
    as_json = _get_json_output()

    if value is None:
        values = sc.values_for_property(name)
        if as_json:
            typer.echo(json.dumps(values))
        else:
            for v in values:
                typer.echo(format_value(v))
        return

    matches = sc.find_by_value(value)
    if name is not None:
        fragment = name.casefold()
        matches = [m for m in matches if fragment in m.name.casefold()]
    if not matches and not as_json:
        typer.echo(f"No items have a property equal to {value}.")
        return
    typer.echo(_format_matches(matches, as_json=as_json))


@app.command()
def create(
    name: Annotated[str, typer.Argument(help="Name of the new item")],
    prop: Annotated[Optional[list[str]], typer.Option(
        "--prop", "-p",
        help="Property as key=value (repeatable)"
    )] = None,
):
    """Create an item and refresh the collection."""
    properties = _parse_properties(prop)
    sc = _refreshed_scouter()
    try:
        item = sc.create_item(name, properties)
    except (SyncError, RemoteSourceError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if _get_json_output():
        typer.echo(json.dumps(_item_to_json(item), indent=2))
    else:
        typer.echo(format_item(item))


@app.command()
def delete(
    id: Annotated[str, typer.Argument(help="ID of the item to delete")],
):
    """Delete an item by ID and refresh the collection."""
    sc = _refreshed_scouter()
    try:
        removed = sc.delete_item(id)
    except (SyncError, RemoteSourceError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if not removed:
        typer.echo(f"Item ID not found: {id}", err=True)
        raise typer.Exit(1)
    typer.echo(f"ID {id} removed.")


@app.command()
def show(
    id: Annotated[str, typer.Argument(help="ID of the item to fetch")],
):
    """Fetch a single item from the remote source."""
    sc = _get_scouter()
    try:
        item = sc.show(id)
    except RemoteSourceError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if item is None:
        typer.echo(f"Not found: {id}", err=True)
        raise typer.Exit(1)
    if _get_json_output():
        typer.echo(json.dumps(_item_to_json(item), indent=2))
    else:
        typer.echo(format_item(item))


@app.command()
def refresh():
    """Reload items from the cache and remote source."""
    sc = _refreshed_scouter()
    items = sc.items() or []
    index = sc.property_names()
    summary = {
        "items": len(items),
        "pending": sum(1 for i in items if i.pending),
        "properties": len(index) if index is not None else 0,
    }
    if _get_json_output():
        typer.echo(json.dumps(summary))
    else:
        typer.echo(
            f"{summary['items']} items ({summary['pending']} pending), "
            f"{summary['properties']} properties"
        )


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="scout CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
