"""Public facade for preference storage helpers."""

from data.storage.cursor_source import SqliteCursorHandle, SqliteCursorSource
from data.storage.resource_guard import ResourceGuard
from data.storage.row_iterators import (
    FlatRowIterator,
    GroupingRowIterator,
    IteratorState,
    PullResult,
    PullStatus,
)
from data.storage.storage_core import (
    connect,
    init_database,
)
from data.storage.storage_crud import (
    get_item,
    get_items,
    get_num_items,
    get_num_users,
    get_preferences_for_item,
    get_user,
    get_users,
    remove_preference,
    set_preference,
)

__all__ = [
    "connect",
    "init_database",
    "ResourceGuard",
    "FlatRowIterator",
    "GroupingRowIterator",
    "IteratorState",
    "PullResult",
    "PullStatus",
    "SqliteCursorSource",
    "SqliteCursorHandle",
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
