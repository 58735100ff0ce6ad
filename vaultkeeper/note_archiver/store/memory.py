"""
In-memory vault store implementation.

This module provides a dict-backed vault for:
- Unit tests
- Integration tests
- Trying the archiver without touching a real directory

Invariants:
    - All data is lost on process exit
    - Parent folders of every file and folder exist
    - Same error semantics as the local backend

How to change safely:
    - Keep interface compatible with VaultStore protocol
    - Add features to help with testing scenarios
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Set

from ..paths import normalize_path, parent_folder
from .base import (
    DestinationExistsError,
    EntryKind,
    EntryNotFoundError,
    FolderExistsError,
    StoreError,
)

logger = logging.getLogger(__name__)


class InMemoryVaultStore:
    """In-memory implementation of VaultStore.

    Files map to their text content; folders are tracked as a set of paths.

    Thread safety:
        Uses an asyncio lock. Safe to use from multiple coroutines.

    Example:
        >>> store = InMemoryVaultStore()
        >>> store.add_file("Notes/todo.md", "- buy milk")
        >>> await store.move("Notes/todo.md", "Notes/done.md")
        >>> store.read("Notes/done.md")
        '- buy milk'
    """

    def __init__(self) -> None:
        self._files: Dict[str, str] = {}
        self._folders: Set[str] = set()
        self._lock = asyncio.Lock()
        self._failures: Dict[str, List[Exception]] = {}
        self.calls: List[tuple[str, ...]] = []

    async def resolve(self, path: str) -> EntryKind:
        """Look up what ``path`` currently is."""
        path = normalize_path(path)
        self.calls.append(("resolve", path))
        self._raise_injected("resolve")
        return self._kind(path)

    async def create_folder(self, path: str) -> None:
        """Create a folder and any missing parents."""
        path = normalize_path(path)
        self.calls.append(("create_folder", path))

        async with self._lock:
            self._raise_injected("create_folder")
            if self._kind(path) != EntryKind.NONE:
                raise FolderExistsError(f"Folder already exists: {path}", path)
            self._check_parents_are_folders(path)
            self._add_folder_chain(path)

        logger.debug("Folder created in memory vault", extra={"path": path})

    async def move(self, path: str, new_path: str) -> None:
        """Move a file to ``new_path``."""
        path = normalize_path(path)
        new_path = normalize_path(new_path)
        self.calls.append(("move", path, new_path))

        async with self._lock:
            self._raise_injected("move")
            if path not in self._files:
                raise EntryNotFoundError(f"File not found: {path}", path)
            if self._kind(new_path) != EntryKind.NONE:
                raise DestinationExistsError(f"Destination already exists: {new_path}", new_path)
            folder = parent_folder(new_path)
            if folder and self._kind(folder) != EntryKind.FOLDER:
                raise StoreError(f"Destination folder does not exist: {folder}", new_path)

            self._files[new_path] = self._files.pop(path)

        logger.debug(
            "File moved in memory vault",
            extra={"path": path, "new_path": new_path},
        )

    def _kind(self, path: str) -> EntryKind:
        if path in self._files:
            return EntryKind.FILE
        if path in self._folders:
            return EntryKind.FOLDER
        return EntryKind.NONE

    def _check_parents_are_folders(self, path: str) -> None:
        folder = parent_folder(path)
        while folder:
            if folder in self._files:
                raise StoreError(f"Parent is a file: {folder}", path)
            folder = parent_folder(folder)

    def _add_folder_chain(self, path: str) -> None:
        while path:
            self._folders.add(path)
            path = parent_folder(path)

    def _raise_injected(self, operation: str) -> None:
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    # Testing helpers

    def add_file(self, path: str, content: str = "") -> None:
        """Create a file (and its parent folders) directly."""
        path = normalize_path(path)
        self._add_folder_chain(parent_folder(path))
        self._files[path] = content

    def add_folder(self, path: str) -> None:
        """Create a folder (and its parents) directly."""
        self._add_folder_chain(normalize_path(path))

    def remove(self, path: str) -> None:
        """Delete a file directly, simulating an external change."""
        self._files.pop(normalize_path(path), None)

    def read(self, path: str) -> Optional[str]:
        """Content of a file, or None if absent."""
        return self._files.get(normalize_path(path))

    def list_files(self) -> List[str]:
        """All file paths, sorted."""
        return sorted(self._files)

    def list_folders(self) -> List[str]:
        """All folder paths, sorted."""
        return sorted(self._folders)

    def inject_failure(self, operation: str, exception: Exception) -> None:
        """Make the next call to ``operation`` raise ``exception``.

        Failures queue up: injecting twice fails the next two calls.
        """
        self._failures.setdefault(operation, []).append(exception)

    def count_calls(self, operation: str) -> int:
        """Number of calls made to ``operation``."""
        return sum(1 for call in self.calls if call[0] == operation)
