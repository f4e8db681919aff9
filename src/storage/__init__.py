"""
Server-side storage for detection snapshots.
"""

from .database import Database, StorageError, EXPECTED_SCHEMA_VERSION

__all__ = ["Database", "StorageError", "EXPECTED_SCHEMA_VERSION"]
