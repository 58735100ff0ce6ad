"""
Relocation engine for the note archiver.

The RelocationEngine archives and unarchives notes. Each operation:
1. Resolves the note in the vault
2. Works out the target path (planner for archive, ledger for unarchive)
3. Makes sure the target folder exists
4. Moves the note
5. Updates the ledger
6. Notifies the user

Invariants:
    - Nothing is mutated before the note has been found
    - A folder that already exists is never an error
    - The ledger is only touched after a successful move
    - Operations on one engine never interleave

How to change safely:
    - Keep the move as the last fallible step before the ledger update
    - Read settings once per operation (snapshot), never mid-operation
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .config import ArchiveSettings
from .errors import (
    FolderCreationError,
    InvalidPathError,
    NoteNotFoundError,
    RelocationError,
    RelocationMoveError,
    VaultAccessError,
)
from .ledger import ArchiveLedger, RelocationRecord
from .notifications import LoggingNotifier, Notifier
from .paths import normalize_path, parent_folder
from .planner import plan_destination
from .store import (
    EntryKind,
    EntryNotFoundError,
    FolderExistsError,
    PathOutsideVaultError,
    StoreError,
    VaultStore,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class RelocationResult:
    """Outcome of a completed archive or unarchive.

    Attributes:
        source: Where the note was before the operation
        target: Where the note is now
        record: The ledger record that was added (archive) or removed
            (unarchive)
    """

    source: str
    target: str
    record: RelocationRecord

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target, "record": self.record.to_dict()}


class RelocationEngine:
    """Archives and unarchives notes.

    Attributes:
        store: Vault the notes live in
        ledger: Record of relocations
        settings: Live archive settings (read once per operation)
        notifier: Receives user-facing messages
        clock: Source of the current local time

    Thread safety:
        Operations run under an asyncio lock, so a double-invoked command
        waits for the first invocation to finish.

    Example:
        >>> engine = RelocationEngine(store, ledger, ArchiveSettings())
        >>> result = await engine.archive("Notes/todo.md")
        >>> result.target
        'Archive/Notes/todo.md'
        >>> await engine.unarchive("Archive/Notes/todo.md")
    """

    def __init__(
        self,
        store: VaultStore,
        ledger: ArchiveLedger,
        settings: ArchiveSettings,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.settings = settings
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock or datetime.now

        self._lock = asyncio.Lock()
        self._archived_count = 0
        self._unarchived_count = 0
        self._failed_count = 0

    def can_archive(self, path: str) -> bool:
        """Whether archiving is offered for ``path``.

        This is a literal prefix test against the archive folder, not a
        ledger lookup.
        """
        return not path.startswith(self.settings.archive_folder)

    def can_unarchive(self, path: str) -> bool:
        """Whether unarchiving is offered for ``path``."""
        return not self.can_archive(path)

    async def archive(self, path: str) -> RelocationResult:
        """Move a note into the archive folder and record where it came from.

        Args:
            path: Vault path of the note

        Returns:
            RelocationResult describing the move

        Raises:
            InvalidPathError: If ``path`` points outside the vault
            NoteNotFoundError: If no note exists at ``path``
            FolderCreationError: If the destination folder cannot be created
            RelocationMoveError: If the store refuses the move
            VaultAccessError: If the vault cannot be queried
            PersistenceError: If the ledger cannot be written after the move
        """
        path = normalize_path(path)

        async with self._lock:
            settings = self.settings.snapshot()
            try:
                await self._require_note(path)
                destination = plan_destination(path, settings, self.clock())
                await self._ensure_folder(path, parent_folder(destination))
                await self._move(path, destination)
            except RelocationError as e:
                self._report_failure("archive", e)
                raise

            record = RelocationRecord(origin=path, destination=destination)
            await self.ledger.append(record)
            self._archived_count += 1

        logger.info(
            "Note archived",
            extra={
                "origin": path,
                "destination": destination,
                "grouping": settings.grouping.value,
            },
        )
        self.notifier.notify(f"{path} moved to {destination}")
        return RelocationResult(source=path, target=destination, record=record)

    async def unarchive(self, path: str) -> RelocationResult | None:
        """Move an archived note back to where it was archived from.

        Args:
            path: Vault path of the archived note

        Returns:
            RelocationResult, or None if the ledger has no record for
            ``path`` (nothing is moved and nothing is reported)

        Raises:
            InvalidPathError: If ``path`` or the origin points outside the vault
            NoteNotFoundError: If the archived note is no longer at ``path``
            FolderCreationError: If the origin folder cannot be created
            RelocationMoveError: If the store refuses the move
            VaultAccessError: If the vault cannot be queried
            PersistenceError: If the ledger cannot be written after the move
        """
        path = normalize_path(path)

        async with self._lock:
            record = self.ledger.find_by_destination(path)
            if record is None:
                logger.debug("No ledger record for path, nothing to unarchive", extra={"path": path})
                return None

            try:
                await self._require_note(path)
                await self._ensure_folder(path, parent_folder(record.origin))
                await self._move(path, record.origin)
            except RelocationError as e:
                self._report_failure("unarchive", e)
                raise

            await self.ledger.remove(record)
            self._unarchived_count += 1

        logger.info(
            "Note unarchived",
            extra={"origin": record.origin, "destination": path},
        )
        self.notifier.notify(f"{path} moved to {record.origin}")
        return RelocationResult(source=path, target=record.origin, record=record)

    async def _resolve(self, path: str, note_path: str) -> EntryKind:
        """Resolve ``path``, reporting store failures against ``note_path``."""
        try:
            return await self.store.resolve(path)
        except PathOutsideVaultError as e:
            raise InvalidPathError(note_path, str(e)) from e
        except StoreError as e:
            raise VaultAccessError(note_path, str(e)) from e

    async def _require_note(self, path: str) -> None:
        kind = await self._resolve(path, path)
        if kind != EntryKind.FILE:
            found = kind.value if kind != EntryKind.NONE else None
            raise NoteNotFoundError(path, found=found)

    async def _ensure_folder(self, path: str, folder: str) -> None:
        """Create ``folder`` unless it already exists.

        An empty folder is the vault root, which always exists.
        """
        if not folder:
            return
        if await self._resolve(folder, path) != EntryKind.NONE:
            return

        try:
            await self.store.create_folder(folder)
        except FolderExistsError:
            # Created concurrently, outside this engine.
            logger.debug("Folder appeared before creation", extra={"folder": folder})
        except StoreError as e:
            raise FolderCreationError(path, folder, str(e)) from e

    async def _move(self, path: str, new_path: str) -> None:
        try:
            await self.store.move(path, new_path)
        except EntryNotFoundError as e:
            raise NoteNotFoundError(path) from e
        except PathOutsideVaultError as e:
            raise InvalidPathError(path, str(e)) from e
        except StoreError as e:
            raise RelocationMoveError(path, new_path, str(e)) from e

    def _report_failure(self, operation: str, error: RelocationError) -> None:
        self._failed_count += 1
        logger.warning(
            f"Failed to {operation} note",
            extra={"path": error.path, "error_code": error.code, "error": error.message},
        )
        self.notifier.notify(f"Could not {operation} {error.path}: {error.message}")

    @property
    def stats(self) -> dict[str, Any]:
        """Get engine statistics."""
        return {
            "archived_count": self._archived_count,
            "unarchived_count": self._unarchived_count,
            "failed_count": self._failed_count,
            "ledger_records": len(self.ledger),
        }
