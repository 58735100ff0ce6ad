"""
Local directory vault store.

Serves a vault that lives in a directory on disk. Vault paths are mapped
below the root directory; anything that would escape it is rejected.

Invariants:
    - No operation touches files outside the root directory
    - OS errors are translated into store errors
    - move never overwrites an existing entry
"""

from __future__ import annotations

import errno
import logging
import os
from pathlib import Path

from ..paths import VAULT_ROOT, normalize_path
from .base import (
    DestinationExistsError,
    EntryKind,
    EntryNotFoundError,
    FolderExistsError,
    PathOutsideVaultError,
    StoreError,
)

logger = logging.getLogger(__name__)


class LocalVaultStore:
    """VaultStore backed by a directory.

    Attributes:
        root: Vault root directory

    Example:
        >>> store = LocalVaultStore("/home/me/notes")
        >>> await store.resolve("Inbox/todo.md")
        <EntryKind.FILE: 'file'>
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _to_fs_path(self, path: str) -> Path:
        """Map a vault path to a filesystem path below the root."""
        path = normalize_path(path)
        if path == VAULT_ROOT:
            return self.root

        fs_path = (self.root / path).resolve()
        if fs_path != self.root and self.root not in fs_path.parents:
            raise PathOutsideVaultError(f"Path escapes the vault: {path}", path)
        return fs_path

    async def resolve(self, path: str) -> EntryKind:
        """Look up what ``path`` currently is."""
        fs_path = self._to_fs_path(path)
        if fs_path.is_file():
            return EntryKind.FILE
        if fs_path.is_dir():
            return EntryKind.FOLDER
        return EntryKind.NONE

    async def create_folder(self, path: str) -> None:
        """Create a folder and any missing parents."""
        fs_path = self._to_fs_path(path)
        try:
            fs_path.mkdir(parents=True, exist_ok=False)
        except FileExistsError:
            raise FolderExistsError(f"Folder already exists: {path}", path)
        except OSError as e:
            raise StoreError(f"Failed to create folder {path}: {e}", path) from e

        logger.debug("Folder created", extra={"path": path, "fs_path": str(fs_path)})

    async def move(self, path: str, new_path: str) -> None:
        """Move a file to ``new_path``."""
        source = self._to_fs_path(path)
        target = self._to_fs_path(new_path)

        if not source.is_file():
            raise EntryNotFoundError(f"File not found: {path}", path)
        if target.exists():
            raise DestinationExistsError(f"Destination already exists: {new_path}", new_path)
        if not target.parent.is_dir():
            raise StoreError(f"Destination folder does not exist: {target.parent}", new_path)

        try:
            os.rename(source, target)
        except OSError as e:
            if e.errno == errno.ENOENT:
                raise EntryNotFoundError(f"File not found: {path}", path) from e
            raise StoreError(f"Failed to move {path} to {new_path}: {e}", path) from e

        logger.debug("File moved", extra={"path": path, "new_path": new_path})
