"""
Vault store abstraction for the note archiver.

This module provides a pluggable vault backend interface supporting:
- A directory on disk
- In-memory (for testing)

Invariants:
    - Folder-already-exists is reported as FolderExistsError, by type
    - Moves never overwrite an existing entry
    - Failed moves leave the vault unchanged

How to change safely:
    - New backends must implement the VaultStore protocol
    - Map backend-specific failures onto the StoreError hierarchy
"""

from .base import (
    DestinationExistsError,
    EntryKind,
    EntryNotFoundError,
    FolderExistsError,
    PathOutsideVaultError,
    StoreError,
    VaultStore,
    create_vault_store,
)
from .local import LocalVaultStore
from .memory import InMemoryVaultStore

__all__ = [
    # Protocol and types
    "VaultStore",
    "EntryKind",
    "StoreError",
    "EntryNotFoundError",
    "FolderExistsError",
    "DestinationExistsError",
    "PathOutsideVaultError",
    # Factory
    "create_vault_store",
    # Implementations
    "LocalVaultStore",
    "InMemoryVaultStore",
]
