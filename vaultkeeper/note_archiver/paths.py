"""
Vault path helpers.

Vault paths are relative, slash-delimited strings. Normalization is purely
syntactic: separators are collapsed and trimmed, but "." and ".." segments
are left alone since they may be part of a legitimate note name.
"""

from __future__ import annotations

import re
import unicodedata

_SEPARATORS = re.compile(r"[\\/]+")
_EDGE_SLASHES = re.compile(r"^/+|/+$")
_NARROW_SPACES = re.compile(r"[\u00a0\u202f]")

VAULT_ROOT = "/"


def normalize_path(path: str) -> str:
    """Canonical form of a vault path.

    Examples:
        >>> normalize_path("Archive//2024/notes/")
        'Archive/2024/notes'
        >>> normalize_path("")
        '/'
    """
    path = _SEPARATORS.sub("/", path)
    path = _EDGE_SLASHES.sub("", path)
    if path == "":
        path = VAULT_ROOT
    path = _NARROW_SPACES.sub(" ", path)
    return unicodedata.normalize("NFC", path)


def join_path(*parts: str) -> str:
    """Join vault path segments and normalize the result."""
    return normalize_path("/".join(parts))


def parent_folder(path: str) -> str:
    """Folder containing a vault path, or "" for a root-level entry."""
    index = path.rfind("/")
    if index == -1:
        return ""
    return path[:index]
