"""
Commands and menu contributions offered to the host UI.

The host shows two commands for the note in focus and an "Archive file"
entry in its file and editor context menus. Availability is decided by the
engine's prefix gating, never by a ledger lookup.

Menus are driven through a small capability interface (MenuItem) rather
than host-specific payloads, so the same contribution works for every menu
context.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

from .engine import RelocationEngine
from .errors import CommandUnavailableError

logger = logging.getLogger(__name__)

ARCHIVE_COMMAND_ID = "archive-current-note"
UNARCHIVE_COMMAND_ID = "unarchive-current-note"

ARCHIVE_MENU_TITLE = "Archive file"
ARCHIVE_MENU_ICON = "archive"

ClickHandler = Callable[[], Awaitable[Any]]


class MenuContext(Enum):
    """Where a menu is opened from."""

    FILE_MENU = "file-menu"
    EDITOR_MENU = "editor-menu"


class MenuItem(Protocol):
    """The parts of a host menu item a contribution may touch."""

    def set_title(self, title: str) -> MenuItem: ...

    def set_icon(self, icon: str) -> MenuItem: ...

    def on_click(self, handler: ClickHandler) -> MenuItem: ...


class MenuItemSpec:
    """Host-independent MenuItem that simply remembers what was set."""

    def __init__(self) -> None:
        self.title: Optional[str] = None
        self.icon: Optional[str] = None
        self.handler: Optional[ClickHandler] = None

    def set_title(self, title: str) -> MenuItemSpec:
        self.title = title
        return self

    def set_icon(self, icon: str) -> MenuItemSpec:
        self.icon = icon
        return self

    def on_click(self, handler: ClickHandler) -> MenuItemSpec:
        self.handler = handler
        return self

    async def click(self) -> Any:
        if self.handler is None:
            return None
        return await self.handler()

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"title": self.title, "icon": self.icon}


@dataclass(frozen=True)
class Command:
    """A command the host can offer for the note in focus.

    Attributes:
        id: Stable command identifier
        name: Human-readable name
        check: Whether the command is offered for a path
        run: Performs the command for a path
    """

    id: str
    name: str
    check: Callable[[str], bool]
    run: Callable[[str], Awaitable[Any]]

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}


class CommandRegistry:
    """Commands and menu contributions backed by a RelocationEngine.

    Example:
        >>> registry = CommandRegistry(engine)
        >>> registry.is_available("archive-current-note", "Notes/todo.md")
        True
        >>> await registry.execute("archive-current-note", "Notes/todo.md")
    """

    def __init__(self, engine: RelocationEngine) -> None:
        self.engine = engine
        self._commands: dict[str, Command] = {
            ARCHIVE_COMMAND_ID: Command(
                id=ARCHIVE_COMMAND_ID,
                name="Archive current note",
                check=engine.can_archive,
                run=engine.archive,
            ),
            UNARCHIVE_COMMAND_ID: Command(
                id=UNARCHIVE_COMMAND_ID,
                name="Unarchive current note",
                check=engine.can_unarchive,
                run=engine.unarchive,
            ),
        }

    def list_commands(self) -> list[Command]:
        return list(self._commands.values())

    def get(self, command_id: str) -> Command:
        """Look up a command.

        Raises:
            KeyError: If no command has that id
        """
        return self._commands[command_id]

    def is_available(self, command_id: str, path: Optional[str]) -> bool:
        """Whether ``command_id`` is offered for ``path``.

        Nothing is offered when there is no note in focus.
        """
        if not path:
            return False
        return self.get(command_id).check(path)

    async def execute(self, command_id: str, path: Optional[str]) -> Any:
        """Run a command for ``path``.

        Raises:
            KeyError: If no command has that id
            CommandUnavailableError: If the command is not offered for ``path``
        """
        command = self.get(command_id)
        if not self.is_available(command_id, path):
            raise CommandUnavailableError(command_id, path)

        logger.debug("Executing command", extra={"command_id": command_id, "path": path})
        return await command.run(path)

    def contribute_menu(
        self,
        context: MenuContext,
        path: Optional[str],
        add_item: Callable[[], MenuItem],
    ) -> bool:
        """Add this module's entries to a menu being built by the host.

        Both contexts get the same entry: "Archive file", only for notes
        outside the archive folder.

        Args:
            context: Which menu is being opened
            path: Path of the note the menu is for
            add_item: Creates a new item in the host menu

        Returns:
            Whether an item was added
        """
        if not path or not self.engine.can_archive(path):
            return False

        async def archive_clicked() -> Any:
            return await self.engine.archive(path)

        add_item().set_title(ARCHIVE_MENU_TITLE).set_icon(ARCHIVE_MENU_ICON).on_click(
            archive_clicked
        )
        logger.debug("Menu entry contributed", extra={"context": context.value, "path": path})
        return True

    def menu_items(self, context: MenuContext, path: Optional[str]) -> list[MenuItemSpec]:
        """Build the menu entries for ``path`` as MenuItemSpec objects."""
        items: list[MenuItemSpec] = []

        def add_item() -> MenuItemSpec:
            item = MenuItemSpec()
            items.append(item)
            return item

        self.contribute_menu(context, path, add_item)
        return items
