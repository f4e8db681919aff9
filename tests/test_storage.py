"""
Tests for storage/database module.
"""

import os
import sqlite3
import tempfile
import time

import pytest

from storage.database import Database, StorageError, EXPECTED_SCHEMA_VERSION


@pytest.fixture
def temp_db():
    """Create a temporary database file."""
    fd, path = tempfile.mkstemp(suffix=".sqlite")
    os.close(fd)
    yield path
    try:
        os.unlink(path)
    except OSError:
        pass


class TestSchemaCreation:
    def test_creates_tables(self, temp_db):
        db = Database(temp_db)
        db.initialize()

        conn = sqlite3.connect(temp_db)
        cursor = conn.cursor()
        cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = {row[0] for row in cursor.fetchall()}
        conn.close()
        db.close()

        assert {"schema_meta", "detections"} <= tables

    def test_schema_version_recorded(self, temp_db):
        db = Database(temp_db)
        db.initialize()
        db.close()

        conn = sqlite3.connect(temp_db)
        version = conn.execute("SELECT schema_version FROM schema_meta").fetchone()[0]
        conn.close()
        assert version == EXPECTED_SCHEMA_VERSION

    def test_initialize_is_idempotent(self, temp_db):
        db = Database(temp_db)
        db.initialize()
        db.add_detection(["person"])
        db.initialize()

        assert len(db.list_detections()) == 1
        db.close()

    def test_version_mismatch_recreates_schema(self, temp_db):
        conn = sqlite3.connect(temp_db)
        conn.execute("CREATE TABLE schema_meta (id INTEGER PRIMARY KEY, schema_version INTEGER)")
        conn.execute("INSERT INTO schema_meta VALUES (1, 0)")
        conn.execute("CREATE TABLE detections (legacy TEXT)")
        conn.commit()
        conn.close()

        db = Database(temp_db)
        db.initialize()
        snapshot = db.add_detection(["cup"])

        assert [s.id for s in db.list_detections()] == [snapshot.id]
        db.close()

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "detections.sqlite"
        db = Database(str(path))
        db.initialize()
        db.close()
        assert path.exists()


class TestDetections:
    def test_add_generates_id_and_timestamp(self, temp_db):
        db = Database(temp_db)
        db.initialize()

        before = time.time()
        snapshot = db.add_detection(["person", "cup"])

        assert len(snapshot.id) == 32
        assert snapshot.objects == ("person", "cup")
        assert snapshot.created_at.timestamp() >= before - 1
        db.close()

    def test_ids_are_unique(self, temp_db):
        db = Database(temp_db)
        db.initialize()
        ids = {db.add_detection(["a"]).id for _ in range(20)}
        assert len(ids) == 20
        db.close()

    def test_list_newest_first(self, temp_db):
        db = Database(temp_db)
        db.initialize()

        first = db.add_detection(["person"])
        second = db.add_detection(["cup"])
        third = db.add_detection(["dog", "dog"])

        history = db.list_detections()
        assert [s.id for s in history] == [third.id, second.id, first.id]
        assert history[0].objects == ("dog", "dog")
        assert all(a.created_at >= b.created_at for a, b in zip(history, history[1:]))
        db.close()

    def test_list_limit(self, temp_db):
        db = Database(temp_db)
        db.initialize()
        for i in range(5):
            db.add_detection([str(i)])

        assert [s.objects for s in db.list_detections(limit=2)] == [("4",), ("3",)]
        db.close()

    def test_round_trips_timestamp_precision(self, temp_db):
        db = Database(temp_db)
        db.initialize()
        snapshot = db.add_detection(["person"])

        stored = db.list_detections()[0]
        assert abs((stored.created_at - snapshot.created_at).total_seconds()) < 0.001
        db.close()

    def test_errors_raise_storage_error(self, temp_db):
        db = Database(temp_db)
        # Schema not initialized: table missing
        with pytest.raises(StorageError):
            db.add_detection(["person"])
        with pytest.raises(StorageError):
            db.list_detections()
        db.close()
