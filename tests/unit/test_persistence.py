"""
Unit tests for persisted state.

Tests cover:
- JSON file store (missing, empty, corrupt, atomic replace)
- Strict and lenient loading
- Section writes preserving the other sections
- Unknown keys surviving a round trip
"""

import json

import pytest

from vaultkeeper.note_archiver.ledger import (
    CorruptStateError,
    InMemoryStateStore,
    JsonFileStateStore,
    PersistedState,
    PersistenceError,
    StateRepository,
)

LEGACY_BLOB = {
    "archiveFolderName": "Old",
    "grouping": "Month",
    "paths": [{"origin": "Notes/a.md", "destination": "Old/2024/03-March/Notes/a.md"}],
}


class TestJsonFileStateStore:
    """Tests for JsonFileStateStore."""

    @pytest.fixture
    def path(self, tmp_path):
        return tmp_path / ".note-archiver" / "data.json"

    @pytest.mark.asyncio
    async def test_missing_file(self, path):
        assert await JsonFileStateStore(path).load() is None

    @pytest.mark.asyncio
    async def test_empty_file(self, path):
        path.parent.mkdir()
        path.write_text("   ", encoding="utf-8")

        assert await JsonFileStateStore(path).load() is None

    @pytest.mark.asyncio
    async def test_save_creates_directory(self, path):
        store = JsonFileStateStore(path)

        await store.save(LEGACY_BLOB)

        assert json.loads(path.read_text(encoding="utf-8")) == LEGACY_BLOB
        assert await store.load() == LEGACY_BLOB

    @pytest.mark.asyncio
    async def test_save_leaves_no_temp_files(self, path):
        store = JsonFileStateStore(path)

        await store.save({"paths": []})
        await store.save({"paths": [], "grouping": "Year"})

        assert [p.name for p in path.parent.iterdir()] == ["data.json"]

    @pytest.mark.asyncio
    async def test_invalid_json(self, path):
        path.parent.mkdir()
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CorruptStateError):
            await JsonFileStateStore(path).load()

    @pytest.mark.asyncio
    async def test_non_object_json(self, path):
        path.parent.mkdir()
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(CorruptStateError, match="JSON object"):
            await JsonFileStateStore(path).load()

    @pytest.mark.asyncio
    async def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileStateStore(blocker / "data.json")

        with pytest.raises(PersistenceError):
            await store.save({})


class TestPersistedState:
    """Tests for the persisted blob model."""

    def test_defaults(self):
        state = PersistedState()

        assert state.archiveFolderName == "Archive"
        assert state.grouping == "NoGrouping"
        assert state.records() == []

    def test_records_in_order(self):
        state = PersistedState.model_validate(LEGACY_BLOB)

        assert [r.origin for r in state.records()] == ["Notes/a.md"]

    def test_unknown_keys_survive(self):
        state = PersistedState.model_validate({**LEGACY_BLOB, "future": {"x": 1}})

        assert state.to_blob()["future"] == {"x": 1}


class TestStateRepository:
    """Tests for StateRepository."""

    @pytest.mark.asyncio
    async def test_load_nothing_stored(self):
        repo = StateRepository(InMemoryStateStore())

        state = await repo.load()

        assert state == PersistedState()

    @pytest.mark.asyncio
    async def test_load_existing_blob(self):
        repo = StateRepository(InMemoryStateStore(LEGACY_BLOB))

        state = await repo.load()

        assert state.archiveFolderName == "Old"
        assert state.grouping == "Month"
        assert len(state.records()) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "blob",
        [
            {"grouping": "Fortnight"},
            {"paths": [{"origin": "a.md"}]},
            {"paths": [{"origin": "", "destination": "Archive/a.md"}]},
            {"paths": "not a list"},
        ],
    )
    async def test_strict_load_rejects_malformed(self, blob):
        repo = StateRepository(InMemoryStateStore(blob), strict=True)

        with pytest.raises(CorruptStateError):
            await repo.load()

    @pytest.mark.asyncio
    async def test_lenient_load_falls_back(self):
        repo = StateRepository(InMemoryStateStore({"grouping": "Fortnight"}), strict=False)

        state = await repo.load()

        assert state == PersistedState()

    @pytest.mark.asyncio
    async def test_lenient_load_of_corrupt_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{oops", encoding="utf-8")
        repo = StateRepository(JsonFileStateStore(path), strict=False)

        state = await repo.load()

        assert state.records() == []

    @pytest.mark.asyncio
    async def test_save_section_preserves_other_sections(self):
        store = InMemoryStateStore({**LEGACY_BLOB, "future": True})
        repo = StateRepository(store)
        await repo.load()

        await repo.save_section(grouping="Year")

        assert store.data["grouping"] == "Year"
        assert store.data["archiveFolderName"] == "Old"
        assert store.data["paths"] == LEGACY_BLOB["paths"]
        assert store.data["future"] is True

    @pytest.mark.asyncio
    async def test_interleaved_sections(self):
        store = InMemoryStateStore()
        repo = StateRepository(store)
        await repo.load()

        await repo.save_section(paths=[{"origin": "a.md", "destination": "Archive/a.md"}])
        await repo.save_section(archiveFolderName="Old", grouping="Date")

        assert store.data == {
            "archiveFolderName": "Old",
            "grouping": "Date",
            "paths": [{"origin": "a.md", "destination": "Archive/a.md"}],
        }

    @pytest.mark.asyncio
    async def test_failed_save_keeps_previous_blob(self):
        store = InMemoryStateStore()
        repo = StateRepository(store)
        await repo.load()
        store.inject_failure(PersistenceError("disk full"))

        with pytest.raises(PersistenceError):
            await repo.save_section(grouping="Year")

        assert repo.blob["grouping"] == "NoGrouping"
        assert store.saves == []
