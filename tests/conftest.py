"""Project-wide pytest fixtures and utilities."""

from __future__ import annotations

import gc
import logging
import os
import sqlite3
import tempfile
from contextlib import closing

import pytest

from data.storage import connect, init_database

logger = logging.getLogger(__name__)

SEED_PREFERENCES = [
    ("alice", "book", 4.0),
    ("alice", "film", 2.5),
    ("bob", "book", 3.0),
    ("carol", "film", 5.0),
    ("carol", "game", 1.0),
    ("carol", "song", 3.5),
]


def cleanup_sqlite_artifacts(db_path: str):
    """Clean up temporary SQLite database and related WAL/SHM artifacts."""
    if not os.path.exists(db_path):
        return

    # Unreferenced iterators release their connections when collected
    gc.collect()

    try:
        with closing(connect(db_path)) as conn:
            conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")  # Merge WAL→main DB
            conn.execute("PRAGMA journal_mode=DELETE")  # Exit WAL mode (key for Windows)
            conn.commit()
    except sqlite3.Error as exc:
        logger.warning("Failed to checkpoint SQLite WAL for %s: %s", db_path, exc)

    for suffix in ("-wal", "-shm", ""):
        path = db_path + suffix
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except PermissionError as exc:
            logger.warning("Failed to remove SQLite artifact %s: %s", path, exc)


@pytest.fixture
def temp_db_path():
    """Yield path to a temporary SQLite database and clean it up afterwards."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield db_path
    cleanup_sqlite_artifacts(db_path)


@pytest.fixture
def temp_db(temp_db_path):
    """Initialize an empty preference database and yield its path."""
    init_database(temp_db_path)
    yield temp_db_path


@pytest.fixture
def seeded_db(temp_db):
    """Preference database holding SEED_PREFERENCES."""
    with closing(connect(temp_db)) as conn:
        conn.executemany(
            "INSERT INTO taste_preferences (user_id, item_id, preference) VALUES (?, ?, ?)",
            SEED_PREFERENCES,
        )
        conn.commit()
    yield temp_db
