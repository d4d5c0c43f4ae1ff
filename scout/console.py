"""
Interactive menu for scout.

The menu loop reads a choice while the initial refresh runs in the
background, then joins the refresh before dispatching, so handlers
always see a fully loaded collection.
"""

import logging
from typing import Callable, Iterable, Optional, Protocol

import typer

from .api import Scouter
from .errors import ScoutError, SyncError
from .types import Item, PropertyValue, value_text

logger = logging.getLogger(__name__)

CREATE_OPTION = "Create"
SEARCH_OPTION = "Search"
LIST_OPTION = "List"
DELETE_OPTION = "Delete"
EXIT_OPTION = "Exit"

CANCEL_COMMAND = "cancel"


class UserInteraction(Protocol):
    """Text input/output used by the menu."""

    def display_text(self, text: str) -> None: ...

    def get_valid_string(self, prompt: str = "") -> str: ...

    def get_yes_or_no(self, prompt: str, invalid_message: str) -> bool: ...

    def list_strings(self, values: Iterable[Optional[str]]) -> None: ...

    def list_items(self, items: Iterable[Item]) -> None: ...

    def wait_for_any_input(self) -> None: ...


def format_value(value: PropertyValue) -> str:
    text = value_text(value)
    return text if text is not None else "(none)"


def format_item(item: Item) -> str:
    """Multi-line rendering of one item: id and name, then its properties."""
    header = f"{item.id if item.id is not None else '(unsynced)'}  {item.name}"
    if item.pending:
        header += " (pending)"
    lines = [header]
    for name, value in item.properties.items():
        lines.append(f"    {name}: {format_value(value)}")
    return "\n".join(lines)


class ConsoleInteraction:
    """UserInteraction on the terminal via typer."""

    def display_text(self, text: str) -> None:
        typer.echo(text)

    def get_valid_string(self, prompt: str = "") -> str:
        """Prompt until a non-blank answer is given."""
        while True:
            value = typer.prompt(prompt.rstrip() or ">", default="", show_default=False)
            value = value.strip()
            if value:
                return value

    def get_yes_or_no(self, prompt: str, invalid_message: str) -> bool:
        while True:
            answer = self.get_valid_string(prompt).casefold()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self.display_text(invalid_message)

    def list_strings(self, values: Iterable[Optional[str]]) -> None:
        for value in values:
            typer.echo(value if value is not None else "(none)")
        typer.echo()

    def list_items(self, items: Iterable[Item]) -> None:
        for item in items:
            typer.echo(format_item(item))
        typer.echo()

    def wait_for_any_input(self) -> None:
        typer.prompt("", default="", show_default=False, prompt_suffix="")


class MenuApp:
    """
    Menu-driven front end.

    Commands are looked up case-insensitively; anything else takes the
    "Invalid choice." branch.
    """

    def __init__(self, scouter: Scouter, ui: UserInteraction):
        self._scouter = scouter
        self._ui = ui
        self._options: dict[str, Callable[[], None]] = {
            CREATE_OPTION: self.handle_create,
            SEARCH_OPTION: self.handle_search,
            LIST_OPTION: self.handle_list,
            DELETE_OPTION: self.handle_delete,
            EXIT_OPTION: self.handle_exit,
        }
        self._lookup = {name.casefold(): handler for name, handler in self._options.items()}

    @property
    def options(self) -> list[str]:
        return list(self._options)

    def run(self) -> None:
        """Start the refresh, then read and dispatch choices until Exit."""
        self._ui.display_text("Contacting database...\n")
        self._scouter.start()

        while True:
            choice = self.get_menu_choice()
            self.join_refresh()
            self.dispatch(choice)
            if choice.casefold() == EXIT_OPTION.casefold():
                break

    def join_refresh(self) -> None:
        """Join point: wait for the background refresh and report failure."""
        try:
            self._scouter.join()
        except SyncError as e:
            self._ui.display_text(f"Could not refresh items: {e.__cause__ or e}\n")

    def get_menu_choice(self) -> str:
        self._ui.display_text("Choose an option: ")
        for option in self._options:
            self._ui.display_text(option)
        self._ui.display_text("")
        return self._ui.get_valid_string()

    def dispatch(self, choice: str) -> None:
        handler = self._lookup.get(choice.strip().casefold())
        if handler is None:
            self._ui.display_text("Invalid choice.\n")
            return
        try:
            handler()
        except SyncError as e:
            self._ui.display_text(f"Could not refresh items: {e.__cause__ or e}\n")
        except ScoutError as e:
            self._ui.display_text(f"Error: {e}\n")

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def handle_create(self) -> None:
        name = self._ui.get_valid_string("Enter the name for the new item:\n")
        properties: dict[str, str] = {}

        finished = False
        while not finished:
            prop_name = self._ui.get_valid_string("Enter new property name:\n")
            prop_value = self._ui.get_valid_string(f"Enter value for {prop_name}:\n")
            properties[prop_name] = prop_value
            finished = self._ui.get_yes_or_no(
                "Finished adding properties? Y or N?\n",
                "Invalid response.",
            )

        item = self._scouter.create_item(name, properties)
        self._ui.display_text(f"Created {item.name}.\n")

    def handle_search(self) -> None:
        property_names = self._scouter.property_names()
        if property_names is None:
            self._ui.display_text("No properties found to search for.\n")
            return

        self._ui.list_strings(property_names.names())
        target_name = self._ui.get_valid_string("Enter a property to search for:\n")

        values = self._scouter.values_for_property(target_name)
        self._ui.list_strings([value_text(v) for v in values])

        target_value = self._ui.get_valid_string(
            f"Enter a value to search all {target_name} properties for:\n"
        )
        matches = self._scouter.find_by_value(target_value)
        if not matches:
            self._ui.display_text(f"No items have a property equal to {target_value}.\n")
            return
        for match in matches:
            self._ui.display_text(
                f"{match.item.name} has matching {match.name}: {format_value(match.value)}"
            )
        self._ui.display_text("")

    def handle_list(self) -> None:
        items = self._scouter.items()
        if items is None:
            self._ui.display_text("No items to display.\n")
            return
        self._ui.list_items(items)

    def handle_delete(self) -> None:
        while True:
            user_input = self._ui.get_valid_string(
                "Enter ID of object to delete, or type 'Cancel':\n"
            )
            if user_input.casefold() == CANCEL_COMMAND:
                return
            if self._scouter.delete_item(user_input):
                self._ui.display_text(f"ID {user_input} removed.\n")
                return
            self._ui.display_text("Item ID not found. Please try again.\n")

    def handle_exit(self) -> None:
        self._ui.display_text("Press Enter to close the application...")
        self._ui.wait_for_any_input()
