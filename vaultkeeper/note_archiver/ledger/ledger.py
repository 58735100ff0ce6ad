"""
Relocation ledger.

The ledger is the durable, ordered list of origin -> destination records
that makes archiving reversible. It is looked up by destination: given the
path of an archived note, it answers where that note came from.

Invariants:
    - Insertion order is preserved; lookups return the first match
    - Destinations are unique: appending a record for a destination that is
      already recorded replaces the stale record in place
    - Every mutation is persisted before it returns
    - Mutations are serialized by a lock

How to change safely:
    - Persist through StateRepository.save_section("paths") only
    - Keep RelocationRecord structurally comparable (remove() relies on it)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator

from .models import RelocationRecord
from .persistence import StateRepository

logger = logging.getLogger(__name__)


class ArchiveLedger:
    """Ordered, persisted origin/destination records.

    Attributes:
        repository: Where the ledger is persisted

    Example:
        >>> ledger = await ArchiveLedger.load(repository)
        >>> await ledger.append(RelocationRecord("Notes/a.md", "Archive/Notes/a.md"))
        >>> ledger.find_by_destination("Archive/Notes/a.md").origin
        'Notes/a.md'
    """

    def __init__(
        self,
        repository: StateRepository,
        records: list[RelocationRecord] | None = None,
    ) -> None:
        self.repository = repository
        self._records: list[RelocationRecord] = list(records or [])
        self._lock = asyncio.Lock()

    @classmethod
    async def load(cls, repository: StateRepository) -> ArchiveLedger:
        """Build the ledger from persisted state.

        Raises:
            CorruptStateError: If the persisted state is malformed
        """
        state = await repository.load()
        return cls(repository, state.records())

    @property
    def records(self) -> tuple[RelocationRecord, ...]:
        """Current records in insertion order."""
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RelocationRecord]:
        return iter(tuple(self._records))

    def __contains__(self, record: object) -> bool:
        return record in self._records

    def find_by_destination(self, path: str) -> RelocationRecord | None:
        """First record whose destination is ``path``, if any."""
        for record in self._records:
            if record.destination == path:
                return record
        return None

    async def append(self, record: RelocationRecord) -> None:
        """Add a record and persist.

        Raises:
            PersistenceError: If the ledger could not be written. The record
                stays in memory, since the relocation it describes happened.
        """
        async with self._lock:
            for index, existing in enumerate(self._records):
                if existing.destination == record.destination:
                    logger.warning(
                        "Replacing stale ledger record",
                        extra={
                            "destination": record.destination,
                            "old_origin": existing.origin,
                            "new_origin": record.origin,
                        },
                    )
                    self._records[index] = record
                    break
            else:
                self._records.append(record)

            await self._persist()

        logger.debug("Ledger record appended", extra=record.to_dict())

    async def remove(self, record: RelocationRecord) -> bool:
        """Remove the first record equal to ``record`` and persist.

        Returns:
            False (without writing) if no such record exists
        """
        async with self._lock:
            try:
                self._records.remove(record)
            except ValueError:
                return False

            await self._persist()

        logger.debug("Ledger record removed", extra=record.to_dict())
        return True

    async def _persist(self) -> None:
        await self.repository.save_section(paths=[r.to_dict() for r in self._records])
