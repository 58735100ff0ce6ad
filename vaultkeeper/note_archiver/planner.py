"""
Archive destination planning.

Computes where a note goes when it is archived. Planning never touches the
vault: it is a pure function of the source path, the archive settings and a
reference instant.

Layout under the archive folder, per grouping:
    NoGrouping: <archive>/<source path>
    Year:       <archive>/2024/<source path>
    Month:      <archive>/2024/03-March/<source path>
    Date:       <archive>/2024/03-March/2024-03-15/<source path>

The full source path is kept below the archive folder, so notes with the
same name in different folders never collide and the origin can always be
read back from the destination.
"""

from __future__ import annotations

import calendar
from datetime import datetime

from .config import ArchiveSettings, Grouping
from .paths import join_path, normalize_path


def month_folder_name(now: datetime) -> str:
    """Zero-padded month number and full month name, e.g. "03-March"."""
    return f"{now.month:02d}-{calendar.month_name[now.month]}"


def archive_folder_for(settings: ArchiveSettings, now: datetime) -> str:
    """Folder archived notes are placed under at instant ``now``."""
    root = settings.archive_folder
    grouping = settings.grouping

    if grouping == Grouping.NO_GROUPING:
        return normalize_path(root)
    if grouping == Grouping.YEAR:
        return join_path(root, f"{now.year:04d}")
    if grouping == Grouping.MONTH:
        return join_path(root, f"{now.year:04d}", month_folder_name(now))
    if grouping == Grouping.DATE:
        return join_path(
            root,
            f"{now.year:04d}",
            month_folder_name(now),
            now.strftime("%Y-%m-%d"),
        )
    raise ValueError(f"Unsupported grouping: {grouping}")


def plan_destination(source_path: str, settings: ArchiveSettings, now: datetime) -> str:
    """Destination path for archiving ``source_path`` at instant ``now``.

    Args:
        source_path: Vault path of the note being archived
        settings: Archive folder and grouping to plan with
        now: Reference instant (local time)

    Returns:
        Normalized destination path
    """
    return join_path(archive_folder_for(settings, now), source_path)
