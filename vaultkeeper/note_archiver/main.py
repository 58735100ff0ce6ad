"""
Note Archiver - Main entry point.

This module wires the archiver together and serves it over HTTP:
- Vault store (local directory or in-memory)
- State repository (settings + ledger, loaded once at start)
- Relocation engine and command registry
- FastAPI application (see api/)

Usage:
    python -m vaultkeeper.note_archiver.main

Configuration is via environment variables. See config.py for the process
settings and api/config.py for the HTTP settings.

Invariants:
    - Persisted state is loaded exactly once, before anything is served
    - Settings and ledger share one StateRepository
    - Startup fails on malformed persisted state unless strict loading is off

How to change safely:
    - Add new components to ArchiverServer.start(), in dependency order
    - Keep ArchiverServer usable without the HTTP layer (the CLI uses it)
"""

from __future__ import annotations

import logging
import sys

import json_log_formatter
import uvicorn

from .commands import CommandRegistry
from .config import ArchiveSettings, ServerConfig
from .engine import Clock, RelocationEngine
from .ledger import ArchiveLedger, JsonFileStateStore, StateRepository, StateStore
from .notifications import LoggingNotifier, Notifier, RecordingNotifier
from .settings import SettingsManager
from .store import VaultStore, create_vault_store

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION_BACKLOG = 50


def setup_logging(config: ServerConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Server configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class ArchiverServer:
    """Owns the lifecycle of all archiver components.

    Attributes:
        config: Process configuration
        store: Vault store
        repository: Settings/ledger persistence
        ledger: Relocation ledger
        settings_manager: Archive settings surface
        engine: Relocation engine
        commands: Commands and menu contributions
        notifications: Recent user-facing messages

    Example:
        >>> server = ArchiverServer()
        >>> await server.start()
        >>> await server.engine.archive("Notes/todo.md")
        >>> await server.stop()
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        store: VaultStore | None = None,
        state_store: StateStore | None = None,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
        notification_backlog: int = DEFAULT_NOTIFICATION_BACKLOG,
    ) -> None:
        """Initialize the server.

        Args:
            config: Optional configuration (loaded from env if not provided)
            store: Optional vault store (built from config if not provided)
            state_store: Optional state store (JSON file from config if not provided)
            notifier: Optional notifier messages are forwarded to
            clock: Optional clock for the engine
            notification_backlog: How many recent notifications are kept
        """
        self.config = config or ServerConfig.from_env()
        self._store = store
        self._state_store = state_store
        self._clock = clock
        self.notifications = RecordingNotifier(
            forward=(notifier or LoggingNotifier()).notify,
            maxlen=notification_backlog,
        )
        self._running = False

        # Components (initialized in start())
        self.store: VaultStore | None = None
        self.repository: StateRepository | None = None
        self.ledger: ArchiveLedger | None = None
        self.settings_manager: SettingsManager | None = None
        self.engine: RelocationEngine | None = None
        self.commands: CommandRegistry | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Build all components and load persisted state."""
        if self._running:
            logger.warning("Archiver already running")
            return

        logger.info("Starting note archiver")
        self.config.log_config()

        self.store = self._store or create_vault_store(self.config)
        state_store = self._state_store or JsonFileStateStore(self.config.storage.state_path)

        self.repository = StateRepository(state_store, strict=self.config.ledger.strict_load)
        state = await self.repository.load()

        settings = ArchiveSettings.from_dict(state.to_blob())
        self.ledger = ArchiveLedger(self.repository, state.records())
        self.settings_manager = SettingsManager(self.repository, settings, self.store)
        self.engine = RelocationEngine(
            self.store,
            self.ledger,
            settings,
            notifier=self.notifications,
            clock=self._clock,
        )
        self.commands = CommandRegistry(self.engine)

        self._running = True
        logger.info(
            "Note archiver started",
            extra={
                "archive_folder": settings.archive_folder,
                "grouping": settings.grouping.value,
                "records": len(self.ledger),
            },
        )

    async def stop(self) -> None:
        """Stop the server."""
        if not self._running:
            return

        self._running = False
        logger.info("Note archiver stopped", extra=self.engine.stats if self.engine else {})


def serve(config: ServerConfig, host: str | None = None, port: int | None = None) -> None:
    """Serve the HTTP API until interrupted."""
    from .api import HttpSettings, create_app

    http_settings = HttpSettings()
    server = ArchiverServer(config, notification_backlog=http_settings.notification_backlog)
    app = create_app(server, http_settings)
    uvicorn.run(
        app,
        host=host or http_settings.host,
        port=port or http_settings.port,
        log_config=None,
    )


def main() -> None:
    """Main entry point."""
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(config)
    serve(config)


if __name__ == "__main__":
    main()
