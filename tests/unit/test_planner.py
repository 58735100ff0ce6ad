"""
Unit tests for archive destination planning and vault paths.

Tests cover:
- Path normalization
- Destination per grouping
- Month folder naming
- Archive folder variations
"""

from datetime import datetime

import pytest

from vaultkeeper.note_archiver.config import ArchiveSettings, Grouping
from vaultkeeper.note_archiver.paths import join_path, normalize_path, parent_folder
from vaultkeeper.note_archiver.planner import (
    archive_folder_for,
    month_folder_name,
    plan_destination,
)

MARCH_15 = datetime(2024, 3, 15, 10, 30)


class TestPaths:
    """Tests for vault path helpers."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Notes/todo.md", "Notes/todo.md"),
            ("/Notes/todo.md/", "Notes/todo.md"),
            ("Archive//2024///x.md", "Archive/2024/x.md"),
            ("Notes\\todo.md", "Notes/todo.md"),
            ("", "/"),
            ("///", "/"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected

    def test_normalize_replaces_non_breaking_spaces(self):
        assert normalize_path("My\u00a0Notes/a\u202fb.md") == "My Notes/a b.md"

    def test_normalize_composes_unicode(self):
        decomposed = "Cafe\u0301.md"
        assert normalize_path(decomposed) == "Caf\u00e9.md"

    def test_join_collapses_separators(self):
        assert join_path("Archive/", "/Notes/todo.md") == "Archive/Notes/todo.md"

    def test_parent_folder(self):
        assert parent_folder("Archive/Notes/todo.md") == "Archive/Notes"
        assert parent_folder("todo.md") == ""


class TestMonthFolderName:
    """Tests for month folder names."""

    def test_zero_padded_with_english_name(self):
        assert month_folder_name(MARCH_15) == "03-March"

    def test_two_digit_month(self):
        assert month_folder_name(datetime(2024, 12, 1)) == "12-December"


class TestPlanDestination:
    """Tests for plan_destination."""

    def test_no_grouping_keeps_source_path(self):
        settings = ArchiveSettings("Archive", Grouping.NO_GROUPING)

        assert plan_destination("Notes/todo.md", settings, MARCH_15) == "Archive/Notes/todo.md"

    def test_year_grouping(self):
        settings = ArchiveSettings("Archive", Grouping.YEAR)

        assert plan_destination("x.md", settings, MARCH_15) == "Archive/2024/x.md"

    def test_month_grouping(self):
        settings = ArchiveSettings("Archive", Grouping.MONTH)

        assert plan_destination("x.md", settings, MARCH_15) == "Archive/2024/03-March/x.md"

    def test_date_grouping(self):
        settings = ArchiveSettings("Archive", Grouping.DATE)

        assert (
            plan_destination("x.md", settings, MARCH_15)
            == "Archive/2024/03-March/2024-03-15/x.md"
        )

    def test_nested_archive_folder(self):
        settings = ArchiveSettings("Old/Stuff", Grouping.YEAR)

        assert plan_destination("a/b.md", settings, MARCH_15) == "Old/Stuff/2024/a/b.md"

    def test_unnormalized_archive_folder(self):
        settings = ArchiveSettings("/Archive/", Grouping.NO_GROUPING)

        assert plan_destination("x.md", settings, MARCH_15) == "Archive/x.md"

    def test_same_name_in_different_folders_does_not_collide(self):
        settings = ArchiveSettings()

        first = plan_destination("Work/todo.md", settings, MARCH_15)
        second = plan_destination("Home/todo.md", settings, MARCH_15)

        assert first != second

    def test_planning_is_pure(self):
        settings = ArchiveSettings("Archive", Grouping.DATE)

        first = plan_destination("x.md", settings, MARCH_15)
        second = plan_destination("x.md", settings, MARCH_15)

        assert first == second
        assert settings == ArchiveSettings("Archive", Grouping.DATE)


class TestArchiveFolderFor:
    """Tests for archive_folder_for."""

    def test_folder_follows_the_clock(self):
        settings = ArchiveSettings("Archive", Grouping.MONTH)

        assert archive_folder_for(settings, datetime(2023, 1, 31)) == "Archive/2023/01-January"

    def test_unknown_grouping_rejected(self):
        settings = ArchiveSettings("Archive", Grouping.YEAR)
        settings.grouping = "Week"

        with pytest.raises(ValueError):
            archive_folder_for(settings, MARCH_15)
