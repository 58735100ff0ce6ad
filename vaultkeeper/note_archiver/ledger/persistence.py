"""
Durable storage for settings and ledger.

StateStore backends read and write one opaque JSON-like blob. The
StateRepository sits on top: it validates the blob on load and lets the
settings and the ledger each write their own top-level keys without
clobbering the other's.

Invariants:
    - save() returns only after the blob is durably written
    - A partially written blob is never observable (write + rename)
    - Every save writes the complete blob
    - Malformed state fails closed unless strict loading is disabled

How to change safely:
    - Never drop unknown top-level keys on save
    - Keep load() able to read the legacy combined shape
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from abc import abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from .models import PersistedState

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Persisted state could not be read or written."""
    pass


class CorruptStateError(PersistenceError):
    """Persisted state exists but is malformed."""
    pass


@runtime_checkable
class StateStore(Protocol):
    """Protocol for state storage backends."""

    @abstractmethod
    async def load(self) -> Optional[Dict[str, Any]]:
        """Read the stored blob.

        Returns:
            The blob, or None if nothing has been stored yet

        Raises:
            CorruptStateError: If the stored data is not a JSON object
            PersistenceError: If the data cannot be read
        """
        ...

    @abstractmethod
    async def save(self, data: Dict[str, Any]) -> None:
        """Durably replace the stored blob.

        Raises:
            PersistenceError: If the data cannot be written
        """
        ...


class JsonFileStateStore:
    """StateStore backed by a JSON file.

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so readers see either the old or the new blob.

    Example:
        >>> store = JsonFileStateStore("/home/me/notes/.note-archiver/data.json")
        >>> await store.save({"paths": []})
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read state file {self.path}: {e}") from e

        if not text.strip():
            return None

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptStateError(f"State file {self.path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CorruptStateError(
                f"State file {self.path} must hold a JSON object, got {type(data).__name__}"
            )
        return data

    async def save(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write state file {self.path}: {e}") from e

        logger.debug("State saved", extra={"path": str(self.path)})


class InMemoryStateStore:
    """StateStore holding the blob in memory (testing helper).

    Attributes:
        data: Last saved blob
        saves: Every blob ever saved, oldest first
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data = json.loads(json.dumps(data)) if data is not None else None
        self.saves: List[Dict[str, Any]] = []
        self._failures: List[Exception] = []

    async def load(self) -> Optional[Dict[str, Any]]:
        if self.data is None:
            return None
        return json.loads(json.dumps(self.data))

    async def save(self, data: Dict[str, Any]) -> None:
        if self._failures:
            raise self._failures.pop(0)
        snapshot = json.loads(json.dumps(data))
        self.data = snapshot
        self.saves.append(snapshot)

    def inject_failure(self, exception: Exception) -> None:
        """Make the next save raise ``exception``."""
        self._failures.append(exception)


class StateRepository:
    """Validating, section-aware access to the persisted blob.

    Loading overlays the stored blob onto the defaults and validates it.
    Saving a section overlays the given top-level keys onto the last known
    blob and writes the whole thing back.

    Attributes:
        store: Underlying state store
        strict: Whether malformed state aborts loading

    Example:
        >>> repo = StateRepository(JsonFileStateStore(path))
        >>> state = await repo.load()
        >>> await repo.save_section(grouping="Year")
    """

    def __init__(self, store: StateStore, strict: bool = True) -> None:
        self.store = store
        self.strict = strict
        self._blob: Dict[str, Any] = PersistedState().to_blob()
        self._lock = asyncio.Lock()

    async def load(self) -> PersistedState:
        """Load and validate persisted state.

        Returns:
            Validated state, defaults filled in

        Raises:
            CorruptStateError: If the state is malformed and strict is set
            PersistenceError: If the state cannot be read
        """
        try:
            raw = await self.store.load()
            state = PersistedState.model_validate(raw or {})
        except ValidationError as e:
            if self.strict:
                raise CorruptStateError(f"Persisted state is malformed: {e}") from e
            state = self._fallback(str(e))
        except CorruptStateError as e:
            if self.strict:
                raise
            state = self._fallback(str(e))

        self._blob = state.to_blob()
        logger.info(
            "Persisted state loaded",
            extra={
                "archive_folder": state.archiveFolderName,
                "grouping": state.grouping,
                "records": len(state.paths),
            },
        )
        return state

    def _fallback(self, reason: str) -> PersistedState:
        logger.warning(
            "Malformed persisted state replaced by defaults",
            extra={"reason": reason},
        )
        return PersistedState()

    async def save_section(self, **fields: Any) -> None:
        """Overlay top-level keys onto the blob and persist it.

        Raises:
            PersistenceError: If the write fails (the in-memory blob is
                left as it was)
        """
        async with self._lock:
            blob = {**self._blob, **fields}
            await self.store.save(blob)
            self._blob = blob

    @property
    def blob(self) -> Dict[str, Any]:
        """Copy of the last persisted (or loaded) blob."""
        return json.loads(json.dumps(self._blob))
