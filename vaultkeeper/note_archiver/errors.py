"""
Error types for the archive engine.

- NoteArchiverError: Base exception
- RelocationError: An archive/unarchive operation failed
- NoteNotFoundError: The note to relocate is not in the vault
- InvalidPathError: The path points outside the vault
- VaultAccessError: The vault could not be queried
- FolderCreationError: The destination folder could not be created
- RelocationMoveError: The store refused the move
- InvalidSettingError: A settings value was rejected
- CommandUnavailableError: A command was run where it is not offered

Invariants:
    - All errors inherit from NoteArchiverError
    - Relocation errors carry the path they were raised for
    - A RelocationError means the ledger was not mutated
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class NoteArchiverError(Exception):
    """Base exception for all note archiver errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "NOTE_ARCHIVER_ERROR"
        self.details = details or {}


class RelocationError(NoteArchiverError):
    """An archive or unarchive operation could not be completed."""

    def __init__(
        self,
        message: str,
        path: str,
        code: str = "RELOCATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details={"path": path, **(details or {})})
        self.path = path


class NoteNotFoundError(RelocationError):
    """The note is not present (as a file) at the expected path.

    Raised when:
    - The source note of an archive does not exist
    - The archived note of an unarchive has been moved or deleted
    - The path points at a folder
    """

    def __init__(self, path: str, found: Optional[str] = None) -> None:
        message = f"Note not found: {path}"
        if found:
            message = f"{message} (found {found})"
        super().__init__(message, path, code="NOTE_NOT_FOUND", details={"found": found})


class InvalidPathError(RelocationError):
    """The path does not name a location inside the vault."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Invalid vault path {path}: {reason}", path, code="INVALID_PATH")


class VaultAccessError(RelocationError):
    """The vault could not be queried for a path."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not access {path}: {reason}", path, code="VAULT_ACCESS_FAILED")


class FolderCreationError(RelocationError):
    """The folder a note should be moved into could not be created."""

    def __init__(self, path: str, folder: str, reason: str) -> None:
        super().__init__(
            f"Could not create folder {folder}: {reason}",
            path,
            code="FOLDER_CREATION_FAILED",
            details={"folder": folder},
        )
        self.folder = folder


class RelocationMoveError(RelocationError):
    """The store failed to move the note."""

    def __init__(self, path: str, new_path: str, reason: str) -> None:
        super().__init__(
            f"Could not move {path} to {new_path}: {reason}",
            path,
            code="MOVE_FAILED",
            details={"new_path": new_path},
        )
        self.new_path = new_path


class InvalidSettingError(NoteArchiverError):
    """A settings value could not be accepted."""

    def __init__(self, message: str, setting: str, value: Any = None) -> None:
        super().__init__(
            message,
            code="INVALID_SETTING",
            details={"setting": setting, "value": value},
        )
        self.setting = setting
        self.value = value


class CommandUnavailableError(NoteArchiverError):
    """A command was executed for a path it is not offered for."""

    def __init__(self, command_id: str, path: Optional[str]) -> None:
        super().__init__(
            f"Command {command_id} is not available for {path!r}",
            code="COMMAND_UNAVAILABLE",
            details={"command_id": command_id, "path": path},
        )
        self.command_id = command_id
        self.path = path
