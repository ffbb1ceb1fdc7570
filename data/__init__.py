"""Public data models, cursor contracts, and storage helpers for the preference store."""

# Core abstractions (available immediately)
from data.base import (
    AcquisitionError,
    CursorHandle,
    CursorSource,
    DataAccessError,
    ExhaustedError,
    NoSuchEntityError,
    StorageError,
    UnsupportedOperationError,
)

# Data models
from data.models import Item, Preference, User

# Storage operations
from data.storage import (
    FlatRowIterator,
    GroupingRowIterator,
    IteratorState,
    PullResult,
    PullStatus,
    ResourceGuard,
    SqliteCursorSource,
    connect,
    get_item,
    get_items,
    get_num_items,
    get_num_users,
    get_preferences_for_item,
    get_user,
    get_users,
    init_database,
    remove_preference,
    set_preference,
)

__all__ = [
    "CursorSource",
    "CursorHandle",
    "StorageError",
    "DataAccessError",
    "AcquisitionError",
    "ExhaustedError",
    "UnsupportedOperationError",
    "NoSuchEntityError",
    "Item",
    "Preference",
    "User",
    "ResourceGuard",
    "FlatRowIterator",
    "GroupingRowIterator",
    "IteratorState",
    "PullResult",
    "PullStatus",
    "SqliteCursorSource",
    "connect",
    "init_database",
    "get_users",
    "get_user",
    "get_items",
    "get_item",
    "get_preferences_for_item",
    "get_num_users",
    "get_num_items",
    "set_preference",
    "remove_preference",
]
