"""
Ledger module for the note archiver.

This module records every relocation so it can be reversed:
- RelocationRecord: one origin -> destination pair
- ArchiveLedger: the ordered, persisted list of records
- StateRepository: validated access to the persisted settings/ledger blob

Invariants:
    - The ledger is persisted after every mutation
    - Malformed persisted state is rejected on load (strict mode)
"""

from .ledger import ArchiveLedger
from .models import PersistedState, RelocationRecord
from .persistence import (
    CorruptStateError,
    InMemoryStateStore,
    JsonFileStateStore,
    PersistenceError,
    StateRepository,
    StateStore,
)

__all__ = [
    "ArchiveLedger",
    "RelocationRecord",
    "PersistedState",
    "StateRepository",
    "StateStore",
    "JsonFileStateStore",
    "InMemoryStateStore",
    "PersistenceError",
    "CorruptStateError",
]
