"""
HTTP API for the note archiver.

Exposes the host-facing surface over REST so that a UI shell (or a script)
can drive the archiver:
- Commands with their availability for a note
- Menu contributions per menu context
- Archive / unarchive
- Settings (each field committed immediately)
- The ledger and recent notifications

Invariants:
    - Endpoints have the same semantics as the CommandRegistry and engine
    - Errors are returned as {"error", "error_code", "details"} JSON
    - Unarchiving a path without a ledger record succeeds with performed=false

How to change safely:
    - Keep response shapes stable, add fields rather than renaming
    - Map new NoteArchiverError subclasses in _STATUS_BY_ERROR
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .._version import __version__
from ..commands import MenuContext
from ..engine import RelocationResult
from ..errors import (
    CommandUnavailableError,
    InvalidPathError,
    InvalidSettingError,
    NoteArchiverError,
    NoteNotFoundError,
    RelocationError,
)
from ..ledger import PersistenceError
from ..main import ArchiverServer
from ..store import PathOutsideVaultError, StoreError
from .config import HttpSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["Archiver"])

_STATUS_BY_ERROR: list[tuple[type[NoteArchiverError], int]] = [
    (NoteNotFoundError, 404),
    (CommandUnavailableError, 409),
    (InvalidSettingError, 422),
    (InvalidPathError, 422),
    (RelocationError, 502),
]


# =============================================================================
# Request/Response Models
# =============================================================================


class PathRequest(BaseModel):
    """A request about one note."""
    path: str = Field(..., min_length=1, description="Vault path of the note")


class RelocationResponse(BaseModel):
    """Result of an archive/unarchive."""
    performed: bool
    source: Optional[str] = None
    target: Optional[str] = None


class CommandInfo(BaseModel):
    """A command and whether it is offered for the requested note."""
    id: str
    name: str
    available: bool


class MenuItemInfo(BaseModel):
    """An entry contributed to a menu."""
    title: Optional[str]
    icon: Optional[str]


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields are left unchanged."""
    archive_folder: Optional[str] = Field(None, description="Archive folder path")
    grouping: Optional[str] = Field(None, description="NoGrouping, Year, Month or Date")


class SettingsResponse(BaseModel):
    """Current settings plus what the settings surface displays."""
    archive_folder: str
    grouping: str
    folder_status: dict[str, str]
    grouping_options: list[dict[str, Any]]


class LedgerResponse(BaseModel):
    """All ledger records in insertion order."""
    records: list[dict[str, str]]


# =============================================================================
# Dependencies
# =============================================================================


def get_server(request: Request) -> ArchiverServer:
    """Get the running archiver from app state."""
    server = request.app.state.server
    if not server.is_running:
        raise HTTPException(status_code=503, detail="Archiver is not running")
    return server


def _relocation_response(result: RelocationResult | None) -> RelocationResponse:
    if result is None:
        return RelocationResponse(performed=False)
    return RelocationResponse(performed=True, source=result.source, target=result.target)


# =============================================================================
# Routes
# =============================================================================


@router.get("/commands", response_model=list[CommandInfo])
async def list_commands(
    path: Optional[str] = Query(None, description="Note in focus"),
    server: ArchiverServer = Depends(get_server),
) -> list[CommandInfo]:
    """List commands with their availability for ``path``."""
    return [
        CommandInfo(
            id=command.id,
            name=command.name,
            available=server.commands.is_available(command.id, path),
        )
        for command in server.commands.list_commands()
    ]


@router.post("/commands/{command_id}", response_model=RelocationResponse)
async def execute_command(
    command_id: str,
    body: PathRequest,
    server: ArchiverServer = Depends(get_server),
) -> RelocationResponse:
    """Run a command for a note."""
    try:
        server.commands.get(command_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown command: {command_id}")

    result = await server.commands.execute(command_id, body.path)
    return _relocation_response(result)


@router.post("/archive", response_model=RelocationResponse)
async def archive_note(
    body: PathRequest,
    server: ArchiverServer = Depends(get_server),
) -> RelocationResponse:
    """Archive a note, regardless of command gating."""
    result = await server.engine.archive(body.path)
    return _relocation_response(result)


@router.post("/unarchive", response_model=RelocationResponse)
async def unarchive_note(
    body: PathRequest,
    server: ArchiverServer = Depends(get_server),
) -> RelocationResponse:
    """Unarchive a note; a path without a ledger record is a no-op."""
    result = await server.engine.unarchive(body.path)
    return _relocation_response(result)


@router.get("/menu/{context}", response_model=list[MenuItemInfo])
async def menu_items(
    context: MenuContext,
    path: Optional[str] = Query(None, description="Note the menu is opened for"),
    server: ArchiverServer = Depends(get_server),
) -> list[MenuItemInfo]:
    """Entries contributed to a menu opened for ``path``."""
    items = server.commands.menu_items(context, path)
    return [MenuItemInfo(**item.to_dict()) for item in items]


async def _settings_response(server: ArchiverServer) -> SettingsResponse:
    manager = server.settings_manager
    status = await manager.folder_status()
    return SettingsResponse(
        archive_folder=manager.settings.archive_folder,
        grouping=manager.settings.grouping.value,
        folder_status=status.to_dict(),
        grouping_options=manager.grouping_options(),
    )


@router.get("/settings", response_model=SettingsResponse)
async def get_settings(server: ArchiverServer = Depends(get_server)) -> SettingsResponse:
    return await _settings_response(server)


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    body: SettingsUpdate,
    server: ArchiverServer = Depends(get_server),
) -> SettingsResponse:
    """Apply the given settings; each field is persisted as it is applied."""
    await server.settings_manager.update(
        archive_folder=body.archive_folder,
        grouping=body.grouping,
    )
    return await _settings_response(server)


@router.get("/ledger", response_model=LedgerResponse)
async def get_ledger(server: ArchiverServer = Depends(get_server)) -> LedgerResponse:
    return LedgerResponse(records=[record.to_dict() for record in server.ledger])


@router.get("/notifications")
async def get_notifications(server: ArchiverServer = Depends(get_server)) -> dict[str, list[str]]:
    """Messages produced since the last call (most recent backlog only)."""
    return {"messages": server.notifications.drain()}


@router.get("/stats")
async def get_stats(server: ArchiverServer = Depends(get_server)) -> dict[str, Any]:
    return server.engine.stats


# =============================================================================
# Application
# =============================================================================


async def handle_archiver_error(request: Request, exc: NoteArchiverError) -> JSONResponse:
    """Translate archiver errors into JSON error responses."""
    status = 400
    for error_type, error_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = error_status
            break

    return JSONResponse(
        {"error": exc.message, "error_code": exc.code, "details": exc.details},
        status_code=status,
    )


async def handle_persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(f"Persistence failure: {exc}", exc_info=True)
    return JSONResponse(
        {"error": str(exc), "error_code": "PERSISTENCE_ERROR", "details": {}},
        status_code=500,
    )


async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
    status = 422 if isinstance(exc, PathOutsideVaultError) else 502
    code = "INVALID_PATH" if status == 422 else "STORE_ERROR"
    return JSONResponse(
        {"error": str(exc), "error_code": code, "details": {"path": exc.path}},
        status_code=status,
    )


def create_app(server: ArchiverServer, settings: HttpSettings | None = None) -> FastAPI:
    """Create the archiver FastAPI app.

    The server is started when the app starts and stopped when it shuts
    down.

    Args:
        server: Archiver to expose (started by the app lifespan)
        settings: HTTP settings (loaded from env if not provided)
    """
    settings = settings or HttpSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await server.start()
        yield
        await server.stop()

    app = FastAPI(
        title="Note Archiver",
        description="Reversible archiving of notes inside a vault.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.server = server
    app.state.http_settings = settings
    server.notifications.set_maxlen(settings.notification_backlog)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NoteArchiverError, handle_archiver_error)
    app.add_exception_handler(PersistenceError, handle_persistence_error)
    app.add_exception_handler(StoreError, handle_store_error)

    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "healthy" if server.is_running else "starting",
            "service": "note-archiver",
            "version": __version__,
        }

    return app
