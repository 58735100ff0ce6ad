"""
HTTP API for the note archiver.

Usage:
    python -m vaultkeeper.note_archiver.main
"""

from .config import HttpSettings
from .http_server import create_app, router

__all__ = ["HttpSettings", "create_app", "router"]
