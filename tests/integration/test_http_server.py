"""
Integration tests for the HTTP API.

Runs the FastAPI app against an in-memory vault and state store.

Tests cover:
- Command listing, execution and gating
- Archive/unarchive endpoints and error mapping
- Menu contributions
- Settings, ledger, notifications and stats
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from vaultkeeper.note_archiver.api import HttpSettings, create_app
from vaultkeeper.note_archiver.config import ServerConfig, StorageConfig, StoreBackend
from vaultkeeper.note_archiver.ledger import InMemoryStateStore, PersistenceError
from vaultkeeper.note_archiver.main import ArchiverServer
from vaultkeeper.note_archiver.store import InMemoryVaultStore, LocalVaultStore, StoreError

MARCH_15 = datetime(2024, 3, 15, 10, 30)


@pytest.fixture
def vault():
    store = InMemoryVaultStore()
    store.add_file("Notes/todo.md", "- buy milk")
    store.add_file("Notes/done.md")
    return store


@pytest.fixture
def state_store():
    return InMemoryStateStore()


@pytest.fixture
def server(vault, state_store):
    config = ServerConfig(storage=StorageConfig(backend=StoreBackend.MEMORY))
    return ArchiverServer(config, store=vault, state_store=state_store, clock=lambda: MARCH_15)


@pytest.fixture
def client(server):
    app = create_app(server, HttpSettings(cors_origins=["http://localhost:3000"]))
    with TestClient(app) as client:
        yield client


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "note-archiver"


class TestCommandEndpoints:
    """Tests for /v1/commands."""

    def test_list_commands_for_note(self, client):
        response = client.get("/v1/commands", params={"path": "Notes/todo.md"})

        assert response.status_code == 200
        available = {c["id"]: c["available"] for c in response.json()}
        assert available == {"archive-current-note": True, "unarchive-current-note": False}

    def test_list_commands_without_note(self, client):
        response = client.get("/v1/commands")

        assert all(not c["available"] for c in response.json())

    def test_execute_archive(self, client, vault):
        response = client.post(
            "/v1/commands/archive-current-note", json={"path": "Notes/todo.md"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "performed": True,
            "source": "Notes/todo.md",
            "target": "Archive/Notes/todo.md",
        }
        assert vault.read("Archive/Notes/todo.md") == "- buy milk"

    def test_execute_unknown_command(self, client):
        response = client.post("/v1/commands/format-disk", json={"path": "Notes/todo.md"})

        assert response.status_code == 404

    def test_execute_unavailable_command(self, client):
        response = client.post(
            "/v1/commands/unarchive-current-note", json={"path": "Notes/todo.md"}
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "COMMAND_UNAVAILABLE"

    def test_empty_path_rejected(self, client):
        response = client.post("/v1/commands/archive-current-note", json={"path": ""})

        assert response.status_code == 422


class TestRelocationEndpoints:
    """Tests for /v1/archive and /v1/unarchive."""

    def test_round_trip(self, client, vault, state_store):
        client.post("/v1/archive", json={"path": "Notes/todo.md"})

        response = client.post("/v1/unarchive", json={"path": "Archive/Notes/todo.md"})

        assert response.json()["performed"] is True
        assert response.json()["target"] == "Notes/todo.md"
        assert vault.read("Notes/todo.md") == "- buy milk"
        assert state_store.data["paths"] == []

    def test_unarchive_without_record(self, client, vault):
        vault.add_file("Archive/manual.md")

        response = client.post("/v1/unarchive", json={"path": "Archive/manual.md"})

        assert response.status_code == 200
        assert response.json() == {"performed": False, "source": None, "target": None}

    def test_missing_note(self, client):
        response = client.post("/v1/archive", json={"path": "Notes/gone.md"})

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "NOTE_NOT_FOUND"
        assert body["details"]["path"] == "Notes/gone.md"

    def test_move_failure(self, client, vault):
        vault.inject_failure("move", StoreError("disk full"))

        response = client.post("/v1/archive", json={"path": "Notes/todo.md"})

        assert response.status_code == 502
        assert response.json()["error_code"] == "MOVE_FAILED"
        assert client.get("/v1/ledger").json() == {"records": []}

    def test_folder_creation_failure(self, client, vault):
        vault.inject_failure("create_folder", StoreError("permission denied"))

        response = client.post("/v1/archive", json={"path": "Notes/todo.md"})

        assert response.status_code == 502
        assert response.json()["error_code"] == "FOLDER_CREATION_FAILED"
        assert response.json()["details"]["folder"] == "Archive/Notes"

    def test_persistence_failure(self, client, state_store):
        state_store.inject_failure(PersistenceError("read-only"))

        response = client.post("/v1/archive", json={"path": "Notes/todo.md"})

        assert response.status_code == 500
        assert response.json()["error_code"] == "PERSISTENCE_ERROR"

    def test_path_outside_vault(self, tmp_path):
        vault_dir = tmp_path / "vault"
        vault_dir.mkdir()
        (tmp_path / "outside.md").write_text("secret", encoding="utf-8")
        config = ServerConfig(
            storage=StorageConfig(backend=StoreBackend.LOCAL, vault_root=str(vault_dir))
        )
        server = ArchiverServer(
            config, store=LocalVaultStore(vault_dir), state_store=InMemoryStateStore()
        )

        with TestClient(create_app(server, HttpSettings())) as client:
            response = client.post("/v1/archive", json={"path": "../outside.md"})
            messages = client.get("/v1/notifications").json()["messages"]

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_PATH"
        assert messages[0].startswith("Could not archive ../outside.md")
        assert (tmp_path / "outside.md").exists()

    def test_vault_lookup_failure(self, client, vault):
        vault.inject_failure("resolve", StoreError("vault unavailable"))

        response = client.post("/v1/archive", json={"path": "Notes/todo.md"})

        assert response.status_code == 502
        assert response.json()["error_code"] == "VAULT_ACCESS_FAILED"


class TestMenuEndpoint:
    """Tests for /v1/menu/{context}."""

    @pytest.mark.parametrize("context", ["file-menu", "editor-menu"])
    def test_archive_entry(self, client, context):
        response = client.get(f"/v1/menu/{context}", params={"path": "Notes/todo.md"})

        assert response.json() == [{"title": "Archive file", "icon": "archive"}]

    def test_no_entry_inside_archive(self, client):
        response = client.get("/v1/menu/file-menu", params={"path": "Archive/x.md"})

        assert response.json() == []

    def test_unknown_context(self, client):
        response = client.get("/v1/menu/ribbon", params={"path": "Notes/todo.md"})

        assert response.status_code == 422


class TestSettingsEndpoints:
    """Tests for /v1/settings."""

    def test_defaults(self, client):
        body = client.get("/v1/settings").json()

        assert body["archive_folder"] == "Archive"
        assert body["grouping"] == "NoGrouping"
        assert body["folder_status"]["state"] == "missing"
        assert len(body["grouping_options"]) == 4

    def test_update_persists(self, client, state_store):
        response = client.put("/v1/settings", json={"grouping": "Month"})

        assert response.status_code == 200
        assert response.json()["grouping"] == "Month"
        assert state_store.data["grouping"] == "Month"

    def test_update_changes_destination(self, client):
        client.put("/v1/settings", json={"archive_folder": "Old", "grouping": "Date"})

        response = client.post("/v1/archive", json={"path": "Notes/todo.md"})

        assert response.json()["target"] == "Old/2024/03-March/2024-03-15/Notes/todo.md"

    def test_invalid_grouping(self, client):
        response = client.put("/v1/settings", json={"grouping": "Fortnight"})

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_SETTING"

    def test_vault_root_rejected(self, client, state_store):
        response = client.put("/v1/settings", json={"archive_folder": ""})

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_SETTING"
        assert client.get("/v1/settings").json()["archive_folder"] == "Archive"
        assert state_store.saves == []


class TestLedgerAndNotifications:
    """Tests for /v1/ledger, /v1/notifications and /v1/stats."""

    def test_ledger(self, client):
        client.post("/v1/archive", json={"path": "Notes/todo.md"})
        client.post("/v1/archive", json={"path": "Notes/done.md"})

        records = client.get("/v1/ledger").json()["records"]

        assert records == [
            {"origin": "Notes/todo.md", "destination": "Archive/Notes/todo.md"},
            {"origin": "Notes/done.md", "destination": "Archive/Notes/done.md"},
        ]

    def test_notifications_are_drained(self, client):
        client.post("/v1/archive", json={"path": "Notes/todo.md"})

        first = client.get("/v1/notifications").json()
        second = client.get("/v1/notifications").json()

        assert first == {"messages": ["Notes/todo.md moved to Archive/Notes/todo.md"]}
        assert second == {"messages": []}

    def test_failure_is_notified(self, client):
        client.post("/v1/archive", json={"path": "Notes/gone.md"})

        messages = client.get("/v1/notifications").json()["messages"]

        assert messages[0].startswith("Could not archive Notes/gone.md")

    def test_notification_backlog_is_bounded(self, server):
        with TestClient(create_app(server, HttpSettings(notification_backlog=3))) as client:
            for i in range(10):
                client.post("/v1/archive", json={"path": f"Notes/missing-{i}.md"})
            messages = client.get("/v1/notifications").json()["messages"]

        assert len(messages) == 3
        assert messages[0].startswith("Could not archive Notes/missing-7.md")
        assert messages[-1].startswith("Could not archive Notes/missing-9.md")

    def test_stats(self, client):
        client.post("/v1/archive", json={"path": "Notes/todo.md"})

        stats = client.get("/v1/stats").json()

        assert stats["archived_count"] == 1
        assert stats["ledger_records"] == 1


class TestStartup:
    """Tests for loading persisted state at startup."""

    def test_existing_state_is_loaded(self, vault):
        vault.add_file("Old/Notes/a.md")
        state_store = InMemoryStateStore(
            {
                "archiveFolderName": "Old",
                "grouping": "Year",
                "paths": [{"origin": "Notes/a.md", "destination": "Old/Notes/a.md"}],
            }
        )
        server = ArchiverServer(
            ServerConfig(storage=StorageConfig(backend=StoreBackend.MEMORY)),
            store=vault,
            state_store=state_store,
        )

        with TestClient(create_app(server, HttpSettings())) as client:
            settings = client.get("/v1/settings").json()
            response = client.post("/v1/unarchive", json={"path": "Old/Notes/a.md"})

        assert settings["archive_folder"] == "Old"
        assert settings["grouping"] == "Year"
        assert response.json()["target"] == "Notes/a.md"

    def test_corrupt_state_fails_startup(self, vault):
        server = ArchiverServer(
            ServerConfig(storage=StorageConfig(backend=StoreBackend.MEMORY)),
            store=vault,
            state_store=InMemoryStateStore({"grouping": "Fortnight"}),
        )

        with pytest.raises(PersistenceError):
            with TestClient(create_app(server, HttpSettings())):
                pass
