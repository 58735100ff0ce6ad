"""
Note Archiver - reversible archiving of notes inside a vault.

This package moves notes between the live area of a vault and an archive
folder, and can put them back exactly where they came from:
- A path planner computes where an archived note goes (optionally grouped
  by year, month or day of archiving)
- A vault store performs folder creation and moves
- A ledger durably records every origin -> destination relocation

Architecture:
    ┌─────────────┐     ┌──────────────┐     ┌──────────────────┐
    │  HTTP / CLI │────▶│   Commands   │────▶│ RelocationEngine │
    └─────────────┘     └──────────────┘     └────────┬─────────┘
                                                      │
                        ┌─────────────────────────────┼───────────────┐
                        │                             │               │
                        ▼                             ▼               ▼
                  ┌───────────┐               ┌────────────┐   ┌───────────┐
                  │  Planner  │               │ VaultStore │   │  Ledger   │
                  └───────────┘               └────────────┘   └─────┬─────┘
                                                                     │
                                                                     ▼
                                                              ┌────────────┐
                                                              │ StateStore │
                                                              │   (JSON)   │
                                                              └────────────┘

Invariants:
    - Every ledger record's destination is where its note is believed to live
    - The ledger is persisted after every mutation, never batched
    - A failed move never mutates the ledger
    - Relocations are serialized per engine

How to change safely:
    - Keep the persisted blob readable in its legacy combined shape
    - New grouping strategies need a planner branch and a settings label
    - Store backends must raise the structured store errors, not bare OSError

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
