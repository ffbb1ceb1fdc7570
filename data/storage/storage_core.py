"""Connection and schema lifecycle for the preference database."""

import logging
import sqlite3
from contextlib import closing
from importlib.resources import files
from pathlib import Path

logger = logging.getLogger(__name__)

_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA busy_timeout = 5000",
    # Readers streaming a long result must not block writers
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
)


def connect(db_path: str, **kwargs) -> sqlite3.Connection:
    """Open a SQLite connection with the required PRAGMAs applied."""
    conn = sqlite3.connect(db_path, **kwargs)
    for pragma in _PRAGMAS:
        try:
            conn.execute(pragma)
        except sqlite3.Error as e:
            logger.warning("Failed to apply SQLite pragma %r: %s", pragma, e)
    return conn


def init_database(db_path: str) -> None:
    """Create the database file and preference schema if missing."""
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    schema_sql = files("data").joinpath("schema.sql").read_text()

    # sqlite3 connection context managers don't close the connection, so wrap with closing
    with closing(connect(db_path)) as conn:
        conn.executescript(schema_sql)
        conn.commit()
    logger.debug("Preference schema ready at %s", db_path)
