"""
Command-line tool for the note archiver.

Commands:
- archive: Move a note into the archive folder
- unarchive: Move an archived note back where it came from
- status: Show which command is offered for a note and its ledger record
- ledger: List the ledger records
- settings: Show or change the archive settings
- serve: Run the HTTP API

Usage:
    note-archiver archive "Notes/todo.md"
    note-archiver unarchive "Archive/Notes/todo.md"
    note-archiver settings set --grouping Month
    note-archiver ledger --format json

The vault and state file are taken from the environment (VAULT_ROOT,
STATE_FILE); --vault overrides VAULT_ROOT.

Invariants:
    - Exit code 0 on success, 1 on operation failure, 2 on bad configuration
    - Unarchiving a path with no ledger record succeeds and changes nothing
    - JSON output is deterministic (sorted keys)
    - Command output goes to stdout, user notifications to stderr
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Any, Optional

from ..commands import ARCHIVE_COMMAND_ID, UNARCHIVE_COMMAND_ID
from ..config import LedgerConfig, ObservabilityConfig, ServerConfig, StorageConfig
from ..errors import NoteArchiverError
from ..ledger import PersistenceError
from ..main import ArchiverServer, serve, setup_logging
from ..store import StoreError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


class ConsoleNotifier:
    """Prints notifications to stderr, keeping stdout for command output."""

    def notify(self, message: str) -> None:
        print(message, file=sys.stderr)


class ArchiverCLI:
    """CLI operations on a started ArchiverServer.

    Each method performs one command and returns the text to print.

    Example:
        >>> cli = ArchiverCLI(server)
        >>> await cli.archive("Notes/todo.md")
    """

    def __init__(self, server: ArchiverServer) -> None:
        self.server = server

    async def archive(self, path: str) -> str:
        result = await self.server.engine.archive(path)
        return f"Archived: {result.source} -> {result.target}"

    async def unarchive(self, path: str) -> str:
        result = await self.server.engine.unarchive(path)
        if result is None:
            return f"No ledger record for {path}, nothing to do"
        return f"Restored: {result.source} -> {result.target}"

    def status(self, path: str) -> dict[str, Any]:
        """Gating and ledger information for ``path``."""
        record = self.server.ledger.find_by_destination(path)
        return {
            "path": path,
            ARCHIVE_COMMAND_ID: self.server.commands.is_available(ARCHIVE_COMMAND_ID, path),
            UNARCHIVE_COMMAND_ID: self.server.commands.is_available(UNARCHIVE_COMMAND_ID, path),
            "origin": record.origin if record else None,
        }

    def ledger(self, output_format: str = "text") -> str:
        records = [record.to_dict() for record in self.server.ledger]
        if output_format == "json":
            return json.dumps(records, indent=2, sort_keys=True)
        if not records:
            return "Ledger is empty"
        lines = [f"{len(records)} record(s):"]
        for record in records:
            lines.append(f"  {record['destination']}  (from {record['origin']})")
        return "\n".join(lines)

    async def show_settings(self) -> dict[str, Any]:
        manager = self.server.settings_manager
        status = await manager.folder_status()
        return {
            "archive_folder": manager.settings.archive_folder,
            "grouping": manager.settings.grouping.value,
            "folder_status": status.message,
        }

    async def set_settings(
        self,
        folder: Optional[str] = None,
        grouping: Optional[str] = None,
    ) -> dict[str, Any]:
        await self.server.settings_manager.update(archive_folder=folder, grouping=grouping)
        return await self.show_settings()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="note-archiver",
        description="Archive notes and put them back where they came from",
    )
    parser.add_argument("--vault", help="Vault root directory (overrides VAULT_ROOT)")
    parser.add_argument("--state-file", help="State file (overrides STATE_FILE)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    archive_parser = subparsers.add_parser("archive", help="Archive a note")
    archive_parser.add_argument("path", help="Vault path of the note")

    unarchive_parser = subparsers.add_parser("unarchive", help="Unarchive a note")
    unarchive_parser.add_argument("path", help="Vault path of the archived note")

    status_parser = subparsers.add_parser("status", help="Show command availability for a note")
    status_parser.add_argument("path", help="Vault path of the note")

    ledger_parser = subparsers.add_parser("ledger", help="List ledger records")
    ledger_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )

    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_sub = settings_parser.add_subparsers(dest="settings_command", required=True)
    settings_sub.add_parser("show", help="Show current settings")
    set_parser = settings_sub.add_parser("set", help="Change settings")
    set_parser.add_argument("--folder", help="Archive folder path")
    set_parser.add_argument(
        "--grouping",
        choices=["NoGrouping", "Year", "Month", "Date"],
        help="Group archived notes by time of archiving",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind host")
    serve_parser.add_argument("--port", type=int, help="Bind port")

    return parser


def load_config(args: argparse.Namespace) -> ServerConfig:
    """Configuration from the environment, with command-line overrides.

    Raises:
        ValueError: If the configuration is invalid
    """
    overrides: dict[str, str] = {}
    if args.vault:
        overrides["vault_root"] = args.vault
    if args.state_file:
        overrides["state_file"] = args.state_file

    config = ServerConfig(
        storage=replace(StorageConfig.from_env(), **overrides),
        ledger=LedgerConfig.from_env(),
        observability=ObservabilityConfig.from_env(),
    )
    config.validate()
    return config


async def run_command(args: argparse.Namespace, server: ArchiverServer) -> str:
    """Run one command against a server and return its output."""
    await server.start()
    try:
        cli = ArchiverCLI(server)

        if args.command == "archive":
            return await cli.archive(args.path)
        if args.command == "unarchive":
            return await cli.unarchive(args.path)
        if args.command == "status":
            return json.dumps(cli.status(args.path), indent=2, sort_keys=True)
        if args.command == "ledger":
            return cli.ledger(args.format)
        if args.command == "settings":
            if args.settings_command == "set":
                data = await cli.set_settings(folder=args.folder, grouping=args.grouping)
            else:
                data = await cli.show_settings()
            return json.dumps(data, indent=2, sort_keys=True)

        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await server.stop()


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(EXIT_CONFIG)

    setup_logging(config)

    if args.command == "serve":
        serve(config, host=args.host, port=args.port)
        return

    server = ArchiverServer(config, notifier=ConsoleNotifier())
    try:
        output = asyncio.run(run_command(args, server))
    except (NoteArchiverError, PersistenceError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILED)

    print(output)
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
