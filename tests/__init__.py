"""
Note Archiver Test Suite.

This package contains:
- unit/: Unit tests (in-memory vault and state, temporary directories)
- integration/: HTTP API and CLI tests against the assembled archiver
"""
