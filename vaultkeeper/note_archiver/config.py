"""
Configuration management for the note archiver.

Process configuration is done via environment variables. The user-facing
archive settings (archive folder, grouping) are not environment driven: they
are persisted alongside the ledger and edited through SettingsManager.

Invariants:
    - All settings have sensible defaults for local use
    - ArchiveSettings.archive_folder is always stored normalized
    - Grouping values round-trip through their persisted names

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Never rename the persisted keys (archiveFolderName, grouping)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any

from .paths import normalize_path

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_FOLDER = "Archive"
STATE_DIR_NAME = ".note-archiver"


class Grouping(Enum):
    """How the archive folder is subdivided by time of archiving."""

    NO_GROUPING = "NoGrouping"
    YEAR = "Year"
    MONTH = "Month"
    DATE = "Date"

    @classmethod
    def parse(cls, value: str | Grouping) -> Grouping:
        """Parse a persisted grouping name.

        Raises:
            ValueError: If the name is not a known grouping.
        """
        if isinstance(value, Grouping):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unable to parse grouping from value {value!r}")


class StoreBackend(Enum):
    """Supported vault store backends."""

    LOCAL = "local"
    MEMORY = "memory"


@dataclass
class ArchiveSettings:
    """User-editable archive settings.

    Attributes:
        archive_folder: Vault folder archived notes are moved under
        grouping: Time-based subdivision of the archive folder
    """

    archive_folder: str = DEFAULT_ARCHIVE_FOLDER
    grouping: Grouping = Grouping.NO_GROUPING

    def snapshot(self) -> ArchiveSettings:
        """Copy of the current values, for use during a single operation."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted key names."""
        return {
            "archiveFolderName": self.archive_folder,
            "grouping": self.grouping.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArchiveSettings:
        """Create from persisted key names, falling back to defaults."""
        return cls(
            archive_folder=normalize_path(data.get("archiveFolderName", DEFAULT_ARCHIVE_FOLDER)),
            grouping=Grouping.parse(data.get("grouping", Grouping.NO_GROUPING.value)),
        )


@dataclass(frozen=True)
class StorageConfig:
    """Vault and state storage configuration.

    Attributes:
        backend: Which vault store backend to use
        vault_root: Directory holding the vault (local backend)
        state_file: JSON file holding settings and ledger
    """

    backend: StoreBackend = StoreBackend.LOCAL
    vault_root: str = "."
    state_file: str = ""

    @property
    def state_path(self) -> Path:
        """Resolved state file path (defaults to a file inside the vault)."""
        if self.state_file:
            return Path(self.state_file)
        return Path(self.vault_root) / STATE_DIR_NAME / "data.json"

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Load configuration from environment variables.

        Raises:
            ValueError: If STORE_BACKEND is not a known backend.
        """
        backend_str = os.getenv("STORE_BACKEND", "local").lower()
        try:
            backend = StoreBackend(backend_str)
        except ValueError:
            raise ValueError(f"Invalid STORE_BACKEND '{backend_str}'. Must be one of: local, memory")

        return cls(
            backend=backend,
            vault_root=os.getenv("VAULT_ROOT", "."),
            state_file=os.getenv("STATE_FILE", ""),
        )


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger loading configuration.

    Attributes:
        strict_load: Refuse to start on malformed persisted state. When
            disabled, malformed state is replaced by defaults and an empty
            ledger, with a warning.
    """

    strict_load: bool = True

    @classmethod
    def from_env(cls) -> LedgerConfig:
        """Load configuration from environment variables."""
        return cls(
            strict_load=os.getenv("LEDGER_STRICT_LOAD", "true").lower() == "true",
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )


@dataclass
class ServerConfig:
    """Complete process configuration.

    Attributes:
        storage: Vault and state storage configuration
        ledger: Ledger loading configuration
        observability: Logging configuration
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        config = cls(
            storage=StorageConfig.from_env(),
            ledger=LedgerConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.storage.backend == StoreBackend.LOCAL:
            if not self.storage.vault_root:
                raise ValueError("VAULT_ROOT is required when STORE_BACKEND=local")
            if not os.path.isdir(self.storage.vault_root):
                raise ValueError(f"VAULT_ROOT is not a directory: {self.storage.vault_root}")

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Note archiver configuration loaded",
            extra={
                "store_backend": self.storage.backend.value,
                "vault_root": self.storage.vault_root,
                "state_file": str(self.storage.state_path),
                "strict_load": self.ledger.strict_load,
                "log_level": self.observability.log_level,
            },
        )
