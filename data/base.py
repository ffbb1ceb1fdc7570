from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

Row = Any


class StorageError(Exception):
    """Base exception for preference storage errors."""

    pass


class DataAccessError(StorageError):
    """Raised when reading or mapping a row fails while pulling from a cursor."""

    pass


class AcquisitionError(DataAccessError):
    """Raised when a cursor or its connection cannot be opened."""

    pass


class ExhaustedError(StorageError, StopIteration):
    """Raised by next() once the stream has no more elements."""

    pass


class UnsupportedOperationError(StorageError, NotImplementedError):
    """Raised for operations a read-only iterator does not support."""

    pass


class NoSuchEntityError(StorageError, LookupError):
    """Raised when a point lookup finds no matching user or item."""

    pass


class CursorHandle(ABC):
    """Forward-only position over the rows returned by one query."""

    @abstractmethod
    def advance(self) -> bool:
        """Move to the next row; return False when there is none."""

    @abstractmethod
    def is_at_or_past_last(self) -> bool:
        """Return True if no further row can be reached by advance()."""

    @abstractmethod
    def current_row(self) -> Row:
        """Return the row the handle is positioned on."""

    @abstractmethod
    def close(self) -> None:
        """Release the cursor and whatever it holds open."""


class CursorSource(ABC):
    """Abstract base class for anything that can execute a query into a CursorHandle."""

    @abstractmethod
    def open(self, query: str, params: Sequence[Any] = ()) -> CursorHandle:
        """Execute query and return a handle positioned before the first row.

        Raises AcquisitionError if the connection or cursor cannot be opened.
        """
