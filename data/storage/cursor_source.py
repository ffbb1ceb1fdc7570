"""SQLite implementation of the CursorSource / CursorHandle contract."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from typing import Any

from data.base import AcquisitionError, CursorHandle, CursorSource, DataAccessError
from data.storage.resource_guard import ResourceGuard
from data.storage.storage_core import connect

logger = logging.getLogger(__name__)

_UNFETCHED: Any = object()


class SqliteCursorHandle(CursorHandle):
    """Forward-only handle over an executed sqlite3 cursor.

    Holds one row of prefetch so is_at_or_past_last() can answer without
    moving the logical position. Owns both the cursor and its connection.
    """

    def __init__(self, conn: sqlite3.Connection, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor
        self._guard = ResourceGuard(conn, cursor)
        self._current: sqlite3.Row | None = None
        self._upcoming: sqlite3.Row | None | Any = _UNFETCHED

    def _peek(self) -> sqlite3.Row | None:
        if self._guard.closed:
            raise DataAccessError("Cursor is closed")
        if self._upcoming is _UNFETCHED:
            try:
                self._upcoming = self._cursor.fetchone()
            except sqlite3.Error as exc:
                raise DataAccessError(f"Failed to fetch row: {exc}") from exc
        return self._upcoming

    def advance(self) -> bool:
        row = self._peek()
        self._upcoming = _UNFETCHED if row is not None else None
        self._current = row
        return row is not None

    def is_at_or_past_last(self) -> bool:
        return self._peek() is None

    def current_row(self) -> sqlite3.Row:
        if self._guard.closed:
            raise DataAccessError("Cursor is closed")
        if self._current is None:
            raise DataAccessError("Cursor is not positioned on a row")
        return self._current

    def close(self) -> None:
        self._current = None
        self._guard.release()


class SqliteCursorSource(CursorSource):
    """Opens a dedicated connection per query against a SQLite database file."""

    def __init__(self, db_path: str, *, connect_kwargs: dict[str, Any] | None = None) -> None:
        self.db_path = db_path
        self._connect_kwargs = dict(connect_kwargs or {})

    def open(self, query: str, params: Sequence[Any] = ()) -> SqliteCursorHandle:
        guard = ResourceGuard()
        try:
            conn = connect(self.db_path, **self._connect_kwargs)
            guard.add(conn)
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            guard.add(cursor)
            cursor.execute(query, tuple(params))
        except sqlite3.Error as exc:
            logger.warning("Failed to open cursor on %s: %s", self.db_path, exc)
            guard.release()
            raise AcquisitionError(f"Failed to execute query on {self.db_path}: {exc}") from exc
        except BaseException:
            guard.release()
            raise
        return SqliteCursorHandle(conn, cursor)
