"""
Archive settings surface.

SettingsManager owns the live ArchiveSettings shared with the engine. Every
change is committed immediately: the value is applied and persisted before
the setter returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import ArchiveSettings, Grouping
from .errors import InvalidSettingError
from .ledger import StateRepository
from .paths import VAULT_ROOT, normalize_path
from .store import EntryKind, VaultStore

logger = logging.getLogger(__name__)

GROUPING_LABELS: dict[Grouping, str] = {
    Grouping.NO_GROUPING: "Don't group my files",
    Grouping.YEAR: "Group by year file is archived",
    Grouping.MONTH: "Group by year and month file is archived",
    Grouping.DATE: "Group by year, month and day file is archived",
}


class FolderState(Enum):
    """What the configured archive folder currently is in the vault."""

    MISSING = "missing"
    IS_FILE = "is_file"
    OK = "ok"


_FOLDER_HELP: dict[FolderState, str] = {
    FolderState.MISSING: "Folder not in vault, it will be created when you archive a note here",
    FolderState.IS_FILE: "File exists with this name, you can't archive anything until you change this",
    FolderState.OK: "Folder exists, all good",
}


@dataclass(frozen=True)
class FolderStatus:
    """Archive folder status with its help message."""

    folder: str
    state: FolderState

    @property
    def message(self) -> str:
        return _FOLDER_HELP[self.state]

    def to_dict(self) -> dict[str, str]:
        return {"folder": self.folder, "state": self.state.value, "message": self.message}


class SettingsManager:
    """Edits and persists the archive settings.

    Attributes:
        repository: Where settings are persisted
        settings: Live settings object (shared with the engine)
        store: Vault, used to report the archive folder status
    """

    def __init__(
        self,
        repository: StateRepository,
        settings: ArchiveSettings,
        store: VaultStore,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self.store = store

    async def set_archive_folder(self, value: str) -> str:
        """Change the archive folder.

        Returns:
            The normalized folder path that was stored

        Raises:
            InvalidSettingError: If ``value`` names the vault root
        """
        folder = normalize_path(value)
        if folder == VAULT_ROOT:
            raise InvalidSettingError(
                "The archive folder cannot be the vault root",
                setting="archive_folder",
                value=value,
            )

        self.settings.archive_folder = folder
        await self._persist()
        logger.info("Archive folder changed", extra={"archive_folder": folder})
        return folder

    async def set_grouping(self, value: str | Grouping) -> Grouping:
        """Change the grouping strategy.

        Raises:
            InvalidSettingError: If ``value`` is not a known grouping
        """
        try:
            grouping = Grouping.parse(value)
        except ValueError as e:
            raise InvalidSettingError(str(e), setting="grouping", value=value) from e

        self.settings.grouping = grouping
        await self._persist()
        logger.info("Archive grouping changed", extra={"grouping": grouping.value})
        return grouping

    async def update(
        self,
        archive_folder: str | None = None,
        grouping: str | Grouping | None = None,
    ) -> ArchiveSettings:
        """Apply any given fields, each committed on its own."""
        if grouping is not None:
            await self.set_grouping(grouping)
        if archive_folder is not None:
            await self.set_archive_folder(archive_folder)
        return self.settings

    async def folder_status(self) -> FolderStatus:
        """Whether the archive folder exists, and as what."""
        folder = normalize_path(self.settings.archive_folder)
        kind = await self.store.resolve(folder)
        if kind == EntryKind.NONE:
            state = FolderState.MISSING
        elif kind == EntryKind.FILE:
            state = FolderState.IS_FILE
        else:
            state = FolderState.OK
        return FolderStatus(folder=folder, state=state)

    @staticmethod
    def grouping_options() -> list[dict[str, Any]]:
        """Choices offered for the grouping setting."""
        return [{"value": g.value, "label": label} for g, label in GROUPING_LABELS.items()]

    async def _persist(self) -> None:
        await self.repository.save_section(**self.settings.to_dict())
