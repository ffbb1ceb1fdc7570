"""
Read and write operations over the preference table.
Bulk reads stream through row iterators; point lookups and writes use a short-lived cursor.
"""

import logging
import math
import sqlite3

from config.storage import DEFAULT_SCHEMA, PreferenceSchema
from data.base import DataAccessError, NoSuchEntityError
from data.models import Item, Preference, User
from data.storage.cursor_source import SqliteCursorSource
from data.storage.db_context import _cursor_context
from data.storage.queries import build_queries
from data.storage.row_iterators import FlatRowIterator, GroupingRowIterator
from data.storage.storage_utils import (
    _build_user,
    _row_to_item,
    _row_to_preference,
    _row_to_user_preference,
)

logger = logging.getLogger(__name__)


def _require_ids(user_id: object, item_id: object) -> None:
    if user_id is None or item_id is None:
        raise ValueError("user_id or item_id is None")
    if not str(user_id).strip() or not str(item_id).strip():
        raise ValueError("user_id or item_id is empty")


def get_users(
    db_path: str, *, schema: PreferenceSchema = DEFAULT_SCHEMA
) -> GroupingRowIterator[str, Preference, User]:
    """
    Stream every user with their preferences, one User per user id.
    The iterator holds a connection open until drained or closed.
    """
    logger.debug("Retrieving all users...")
    return GroupingRowIterator(
        SqliteCursorSource(db_path),
        build_queries(schema).get_users,
        _row_to_user_preference,
        _build_user,
    )


def get_user(db_path: str, user_id: str, *, schema: PreferenceSchema = DEFAULT_SCHEMA) -> User:
    """Load one user with all preferences; raise NoSuchEntityError if they have none."""
    logger.debug("Retrieving user ID '%s'...", user_id)
    try:
        with _cursor_context(db_path, commit=False) as cursor:
            cursor.execute(build_queries(schema).get_user, (user_id,))
            prefs = [_row_to_preference(row, user_id) for row in cursor.fetchall()]
    except sqlite3.Error as exc:
        logger.warning("Exception while retrieving user: %s", exc)
        raise DataAccessError(f"Failed to retrieve user {user_id!r}: {exc}") from exc

    if not prefs:
        raise NoSuchEntityError(f"No such user: {user_id!r}")
    return _build_user(user_id, prefs)


def get_items(db_path: str, *, schema: PreferenceSchema = DEFAULT_SCHEMA) -> FlatRowIterator[Item]:
    """
    Stream every distinct item id as an Item.
    The iterator holds a connection open until drained or closed.
    """
    logger.debug("Retrieving all items...")
    return FlatRowIterator(SqliteCursorSource(db_path), build_queries(schema).get_items, _row_to_item)


def get_item(
    db_path: str,
    item_id: str,
    *,
    assume_exists: bool = False,
    schema: PreferenceSchema = DEFAULT_SCHEMA,
) -> Item:
    """Return the Item for item_id, checking it has at least one preference unless assume_exists."""
    if assume_exists:
        return Item(id=item_id)

    logger.debug("Retrieving item ID '%s'...", item_id)
    try:
        with _cursor_context(db_path, commit=False) as cursor:
            cursor.execute(build_queries(schema).get_item, (item_id,))
            found = cursor.fetchone() is not None
    except sqlite3.Error as exc:
        logger.warning("Exception while retrieving item: %s", exc)
        raise DataAccessError(f"Failed to retrieve item {item_id!r}: {exc}") from exc

    if not found:
        raise NoSuchEntityError(f"No such item: {item_id!r}")
    return Item(id=item_id)


def get_preferences_for_item(
    db_path: str, item_id: str, *, schema: PreferenceSchema = DEFAULT_SCHEMA
) -> list[Preference]:
    """Return all preferences expressed for item_id, ordered by user id."""
    logger.debug("Retrieving preferences for item ID '%s'...", item_id)
    get_item(db_path, item_id, schema=schema)
    try:
        with _cursor_context(db_path, commit=False) as cursor:
            cursor.execute(build_queries(schema).get_prefs_for_item, (item_id,))
            return [_row_to_preference(row) for row in cursor.fetchall()]
    except sqlite3.Error as exc:
        logger.warning("Exception while retrieving prefs for item: %s", exc)
        raise DataAccessError(f"Failed to retrieve preferences for {item_id!r}: {exc}") from exc


def _get_num_things(db_path: str, name: str, sql: str) -> int:
    logger.debug("Retrieving number of %s in model...", name)
    try:
        with _cursor_context(db_path, commit=False) as cursor:
            cursor.execute(sql)
            return int(cursor.fetchone()[0])
    except sqlite3.Error as exc:
        logger.warning("Exception while retrieving number of %s: %s", name, exc)
        raise DataAccessError(f"Failed to count {name}: {exc}") from exc


def get_num_users(db_path: str, *, schema: PreferenceSchema = DEFAULT_SCHEMA) -> int:
    """Count distinct users that have at least one preference."""
    return _get_num_things(db_path, "users", build_queries(schema).get_num_users)


def get_num_items(db_path: str, *, schema: PreferenceSchema = DEFAULT_SCHEMA) -> int:
    """Count distinct items that have at least one preference."""
    return _get_num_things(db_path, "items", build_queries(schema).get_num_items)


def set_preference(
    db_path: str,
    user_id: str,
    item_id: str,
    value: float,
    *,
    schema: PreferenceSchema = DEFAULT_SCHEMA,
) -> None:
    """Insert or overwrite the preference of user_id for item_id."""
    _require_ids(user_id, item_id)
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value: {value!r}") from exc
    if math.isnan(value):
        raise ValueError(f"Invalid value: {value}")

    logger.debug("Setting preference for user '%s', item '%s', value %s", user_id, item_id, value)
    try:
        with _cursor_context(db_path) as cursor:
            cursor.execute(build_queries(schema).set_preference, (user_id, item_id, value))
    except sqlite3.Error as exc:
        logger.warning("Exception while setting preference: %s", exc)
        raise DataAccessError(f"Failed to set preference: {exc}") from exc


def remove_preference(
    db_path: str, user_id: str, item_id: str, *, schema: PreferenceSchema = DEFAULT_SCHEMA
) -> None:
    """Delete the preference of user_id for item_id, if present."""
    _require_ids(user_id, item_id)

    logger.debug("Removing preference for user '%s', item '%s'", user_id, item_id)
    try:
        with _cursor_context(db_path) as cursor:
            cursor.execute(build_queries(schema).remove_preference, (user_id, item_id))
    except sqlite3.Error as exc:
        logger.warning("Exception while removing preference: %s", exc)
        raise DataAccessError(f"Failed to remove preference: {exc}") from exc
