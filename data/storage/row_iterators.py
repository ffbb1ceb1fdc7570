"""Lazy, single-pass iterators that turn cursor rows into domain entities.

Both iterators own one CursorHandle from construction until release and
never hold more than one row beyond what the caller has consumed. The
handle is released exactly once: when the cursor runs dry, when a read or
mapping error occurs, or when the caller closes the iterator early.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from data.base import (
    AcquisitionError,
    CursorHandle,
    CursorSource,
    DataAccessError,
    ExhaustedError,
    Row,
    UnsupportedOperationError,
)
from data.storage.resource_guard import ResourceGuard

logger = logging.getLogger(__name__)

# Marks an empty lookahead slot / unset group key (None is a legal column value).
_NOTHING: Any = object()

E = TypeVar("E")
K = TypeVar("K")
S = TypeVar("S")


class IteratorState(Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class PullStatus(Enum):
    HAS_MORE = "HAS_MORE"
    EXHAUSTED = "EXHAUSTED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class PullResult:
    """Outcome of trying to make the next row available."""

    status: PullStatus
    error: DataAccessError | None = None

    @property
    def has_more(self) -> bool:
        return self.status is PullStatus.HAS_MORE


class _RowIterator(ABC, Generic[E]):
    """Cursor ownership, lookahead slot and release bookkeeping shared by both iterators."""

    def __init__(self, source: CursorSource, query: str, params: Sequence[Any] = ()) -> None:
        self._state = IteratorState.ACTIVE
        self._pending: Row = _NOTHING
        self._guard = ResourceGuard()
        self._handle = self._acquire(source, query, params)

    def _acquire(self, source: CursorSource, query: str, params: Sequence[Any]) -> CursorHandle:
        logger.debug("Executing SQL query: %s", query)
        try:
            handle = source.open(query, params)
        except AcquisitionError:
            self._release()
            raise
        except Exception as exc:
            self._release()
            raise AcquisitionError(f"Failed to open cursor: {exc}") from exc
        self._guard.add(handle)
        return handle

    @property
    def state(self) -> IteratorState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is IteratorState.CLOSED

    def _release(self) -> None:
        self._state = IteratorState.CLOSED
        self._pending = _NOTHING
        self._guard.release()

    def _read_ahead(self) -> bool:
        """Ensure the lookahead slot holds a row; return False at end of data."""
        if self._pending is not _NOTHING:
            return True
        if self._state is IteratorState.CLOSED:
            return False

        try:
            if not self._handle.advance():
                self._release()
                return False
            self._pending = self._handle.current_row()
        except DataAccessError:
            self._release()
            raise
        except Exception as exc:
            self._release()
            raise DataAccessError(f"Failed to read next row: {exc}") from exc
        return True

    def _take_row(self) -> Row:
        """Consume the lookahead slot, pulling a row first if it is empty."""
        if not self._read_ahead():
            return _NOTHING
        row, self._pending = self._pending, _NOTHING
        return row

    def _map(self, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return func(*args)
        except Exception as exc:
            self._release()
            raise DataAccessError(f"Failed to build entity from row: {exc}") from exc

    def poll(self) -> PullResult:
        """Report whether another element is available, surfacing read failures.

        Unlike has_next(), a failed read comes back as PullStatus.FAILED
        carrying the DataAccessError. Resources are already released for
        EXHAUSTED and FAILED.
        """
        try:
            if self._read_ahead():
                return PullResult(PullStatus.HAS_MORE)
        except DataAccessError as exc:
            return PullResult(PullStatus.FAILED, exc)
        return PullResult(PullStatus.EXHAUSTED)

    def has_next(self) -> bool:
        """Return True if next() will produce an element.

        A read failure here cannot be reported to the caller; it is logged
        and treated as the end of the stream. Use poll() or iter_strict()
        to see such failures.
        """
        result = self.poll()
        if result.status is PullStatus.FAILED:
            logger.warning("Unexpected error while reading rows; ending iteration: %s", result.error)
        return result.has_more

    @abstractmethod
    def next(self) -> E:
        """Return the next entity or raise ExhaustedError."""

    def iter_strict(self) -> Iterator[E]:
        """Yield the remaining entities, raising DataAccessError on any read failure."""
        while True:
            result = self.poll()
            if result.status is PullStatus.FAILED:
                raise result.error
            if result.status is PullStatus.EXHAUSTED:
                return
            yield self.next()

    def remove(self) -> None:
        raise UnsupportedOperationError("Row iterators are read-only")

    def close(self) -> None:
        """Release the cursor now. Safe to call any number of times."""
        self._release()

    def __iter__(self) -> Iterator[E]:
        return self

    def __next__(self) -> E:
        return self.next()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        # __init__ may have failed before the guard existed.
        guard = getattr(self, "_guard", None)
        if guard is not None:
            guard.release()


class FlatRowIterator(_RowIterator[E]):
    """Maps each cursor row to exactly one entity."""

    def __init__(
        self,
        source: CursorSource,
        query: str,
        row_to_entity: Callable[[Row], E],
        *,
        params: Sequence[Any] = (),
    ) -> None:
        self._row_to_entity = row_to_entity
        super().__init__(source, query, params)

    def next(self) -> E:
        row = self._take_row()
        if row is _NOTHING:
            raise ExhaustedError("No more rows")
        return self._map(self._row_to_entity, row)


class GroupingRowIterator(_RowIterator[E], Generic[K, S, E]):
    """Folds each run of adjacent rows sharing a key into one aggregate entity.

    Rows must arrive sorted by key; the iterator only compares neighbours,
    so an unsorted stream yields the same key in more than one aggregate.
    The first row of the following run is read to detect the boundary and
    kept in the lookahead slot for the next call instead of rewinding the
    cursor.
    """

    def __init__(
        self,
        source: CursorSource,
        query: str,
        key_and_sub_item: Callable[[Row], tuple[K, S]],
        build_aggregate: Callable[[K, list[S]], E],
        *,
        params: Sequence[Any] = (),
    ) -> None:
        self._key_and_sub_item = key_and_sub_item
        self._build_aggregate = build_aggregate
        super().__init__(source, query, params)

    def _split_row(self, row: Row) -> tuple[K, S]:
        try:
            key, sub_item = self._key_and_sub_item(row)
        except Exception as exc:
            self._release()
            raise DataAccessError(f"Failed to extract group key from row: {exc}") from exc
        return key, sub_item

    def next(self) -> E:
        current_key: Any = _NOTHING
        sub_items: list[S] = []

        while True:
            row = self._take_row()
            if row is _NOTHING:
                break
            key, sub_item = self._split_row(row)
            if current_key is _NOTHING:
                current_key = key
            elif key != current_key:
                # First row of the next group
                self._pending = row
                break
            sub_items.append(sub_item)

        if current_key is _NOTHING:
            raise ExhaustedError("No more groups")
        return self._map(self._build_aggregate, current_key, sub_items)
