"""
Base protocol and types for the vault store abstraction.

This module defines the VaultStore protocol that all backends must implement,
along with the entry kinds and the structured store errors.

Invariants:
    - Paths are vault paths (relative, slash-delimited, normalized)
    - Failures are reported by exception type, never by message text
    - create_folder raises FolderExistsError when the folder is already there
    - move never overwrites an existing entry

How to change safely:
    - Protocol changes require updating all implementations
    - New failure modes get a new StoreError subclass
"""

from __future__ import annotations

from abc import abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import logging

if TYPE_CHECKING:
    from ..config import ServerConfig

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base exception for vault store operations.

    Attributes:
        path: Vault path the operation was applied to
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class EntryNotFoundError(StoreError):
    """The entry to operate on does not exist."""
    pass


class FolderExistsError(StoreError):
    """The folder to create already exists."""
    pass


class DestinationExistsError(StoreError):
    """An entry already occupies the move destination."""
    pass


class PathOutsideVaultError(StoreError):
    """The path does not name a location inside the vault."""
    pass


class EntryKind(Enum):
    """What a vault path resolves to."""

    NONE = "none"
    FILE = "file"
    FOLDER = "folder"


@runtime_checkable
class VaultStore(Protocol):
    """Protocol for vault store backends.

    The engine only needs three capabilities from the vault: look up what a
    path is, create a folder, and move a file.

    Example:
        >>> store = InMemoryVaultStore()
        >>> store.add_file("Notes/todo.md")
        >>> await store.resolve("Notes")
        <EntryKind.FOLDER: 'folder'>
    """

    @abstractmethod
    async def resolve(self, path: str) -> EntryKind:
        """Look up what ``path`` currently is.

        Args:
            path: Vault path

        Returns:
            EntryKind.NONE if nothing is there
        """
        ...

    @abstractmethod
    async def create_folder(self, path: str) -> None:
        """Create a folder, including missing parent folders.

        Args:
            path: Vault path of the folder

        Raises:
            FolderExistsError: If an entry already exists at ``path``
            StoreError: For any other failure
        """
        ...

    @abstractmethod
    async def move(self, path: str, new_path: str) -> None:
        """Move (rename) a file.

        The parent folder of ``new_path`` must already exist.

        Args:
            path: Current vault path of the file
            new_path: Vault path to move it to

        Raises:
            EntryNotFoundError: If nothing is at ``path``
            DestinationExistsError: If ``new_path`` is taken
            StoreError: For any other failure
        """
        ...


def create_vault_store(config: "ServerConfig") -> VaultStore:
    """Factory function to create a vault store from configuration.

    Args:
        config: Server configuration

    Returns:
        Appropriate VaultStore implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import StoreBackend
    from .local import LocalVaultStore
    from .memory import InMemoryVaultStore

    if config.storage.backend == StoreBackend.LOCAL:
        return LocalVaultStore(config.storage.vault_root)
    elif config.storage.backend == StoreBackend.MEMORY:
        return InMemoryVaultStore()
    else:
        raise ValueError(f"Unsupported store backend: {config.storage.backend}")
