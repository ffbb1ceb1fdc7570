"""Short-lived cursor scope for point lookups and writes."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from data.storage.resource_guard import ResourceGuard
from data.storage.storage_core import connect


@contextmanager
def _cursor_context(db_path: str, *, commit: bool = True) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor on a fresh connection, committing or rolling back on exit.

    With commit=False the work is always rolled back. Cursor and connection
    are closed on every exit path.
    """
    conn = connect(db_path)
    conn.row_factory = sqlite3.Row  # dict-like row access for the row mappers

    with ResourceGuard(conn) as guard:
        cursor = conn.cursor()
        guard.add(cursor)
        try:
            yield cursor
        except BaseException:
            conn.rollback()  # includes KeyboardInterrupt
            raise
        if commit:
            conn.commit()
        else:
            conn.rollback()
