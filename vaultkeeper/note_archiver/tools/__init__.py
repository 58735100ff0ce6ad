"""
Operational tools for the note archiver.

This module provides:
- cli: Archive, unarchive and inspect the ledger from the command line
"""

from .cli import ArchiverCLI, main

__all__ = ["ArchiverCLI", "main"]
