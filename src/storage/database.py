"""
Database module for persisted detection snapshots.

Schema versioning ensures automatic migration when the schema changes.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from models.snapshot import DetectionSnapshot, format_timestamp, parse_timestamp

# Schema version - increment when schema changes
EXPECTED_SCHEMA_VERSION = 1


class StorageError(RuntimeError):
    """A database operation failed."""


class Database:
    """
    SQLite store for detection snapshots.

    Tables:
    - schema_meta: tracks schema version
    - detections: one row per saved snapshot (objects as a JSON array)

    The connection is shared across the server's worker threads and guarded
    by a lock.
    """

    def __init__(self, local_database_path: str):
        """
        Args:
            local_database_path: Path to the SQLite database file.
        """
        self.local_database_path = local_database_path
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

        db_dir = os.path.dirname(local_database_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        logging.info(f"Database initialized at {local_database_path}")

    def _get_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            self.conn = sqlite3.connect(self.local_database_path, check_same_thread=False)
        return self.conn

    def _get_schema_version(self) -> Optional[int]:
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_meta'"
            )
            if cursor.fetchone() is None:
                return None

            cursor.execute("SELECT schema_version FROM schema_meta LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else None
        except sqlite3.Error:
            return None

    def _drop_old_tables(self) -> None:
        cursor = self._get_connection().cursor()
        for table in ("detections", "schema_meta"):
            cursor.execute(f"DROP TABLE IF EXISTS {table}")
            logging.debug(f"Dropped table: {table}")
        self._get_connection().commit()

    def _create_schema(self) -> None:
        cursor = self._get_connection().cursor()

        cursor.execute("""
            CREATE TABLE schema_meta (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                schema_version INTEGER NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)

        cursor.execute("""
            CREATE TABLE detections (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                objects TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        cursor.execute(
            "CREATE INDEX idx_detections_created_at ON detections(created_at)"
        )

        cursor.execute(
            "INSERT INTO schema_meta (id, schema_version) VALUES (1, ?)",
            (EXPECTED_SCHEMA_VERSION,)
        )

        self._get_connection().commit()
        logging.info(f"Created schema version {EXPECTED_SCHEMA_VERSION}")

    def initialize(self) -> None:
        """
        Initialize the database schema.

        If schema_meta is missing or its version doesn't match
        EXPECTED_SCHEMA_VERSION, drops old tables and creates a fresh schema.
        """
        with self._lock:
            try:
                current_version = self._get_schema_version()

                if current_version != EXPECTED_SCHEMA_VERSION:
                    if current_version is not None:
                        logging.warning(
                            f"Schema version mismatch: found {current_version}, "
                            f"expected {EXPECTED_SCHEMA_VERSION}. Dropping old tables."
                        )
                    else:
                        logging.info("No schema found, creating fresh database.")
                    self._drop_old_tables()
                    self._create_schema()
                else:
                    logging.info(f"Schema version {current_version} is current")
            except sqlite3.Error as e:
                logging.error(f"Database initialization error: {e}")
                raise

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def add_detection(self, objects: Sequence[str]) -> DetectionSnapshot:
        """
        Store a snapshot of object labels.

        Returns:
            The stored snapshot with its generated id and timestamp.

        Raises:
            StorageError: On any database error.
        """
        snapshot = DetectionSnapshot(
            id=uuid.uuid4().hex,
            objects=tuple(objects),
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            try:
                cursor = self._get_connection().cursor()
                cursor.execute(
                    "INSERT INTO detections (id, objects, created_at) VALUES (?, ?, ?)",
                    (snapshot.id, json.dumps(list(snapshot.objects)), format_timestamp(snapshot.created_at)),
                )
                self._get_connection().commit()
            except sqlite3.Error as e:
                logging.error(f"Error adding detection: {e}")
                raise StorageError(str(e)) from e

        logging.debug(f"Detection added: id={snapshot.id}, objects={len(snapshot.objects)}")
        return snapshot

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def list_detections(self, limit: Optional[int] = None) -> List[DetectionSnapshot]:
        """
        All snapshots, newest first (ties broken by insertion order).

        Raises:
            StorageError: On any database error.
        """
        query = "SELECT id, objects, created_at FROM detections ORDER BY created_at DESC, seq DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        with self._lock:
            try:
                cursor = self._get_connection().cursor()
                cursor.execute(query, params)
                rows = cursor.fetchall()
            except sqlite3.Error as e:
                logging.error(f"Error listing detections: {e}")
                raise StorageError(str(e)) from e

        return [
            DetectionSnapshot(
                id=row[0],
                objects=tuple(json.loads(row[1])),
                created_at=parse_timestamp(row[2]),
            )
            for row in rows
        ]

    def close(self) -> None:
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
