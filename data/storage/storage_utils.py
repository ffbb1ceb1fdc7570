"""Row-to-model conversions for preference storage."""

from collections.abc import Mapping
from typing import Any

from data.models import Item, Preference, User, _normalize_id


def _row_to_item(row: Mapping[str, Any]) -> Item:
    """Convert a row carrying item_id to an Item model."""
    return Item(id=row["item_id"])


def _row_to_preference(row: Mapping[str, Any], user_id: str | None = None) -> Preference:
    """Convert a row carrying item_id, preference and optionally user_id to a Preference."""
    if user_id is None and "user_id" in row.keys():
        user_id = row["user_id"]
    return Preference(item=_row_to_item(row), value=row["preference"], user_id=user_id)


def _row_to_user_preference(row: Mapping[str, Any]) -> tuple[str, Preference]:
    """Split a joined preference row into its user id and the user's Preference.

    The user id is normalized the same way User normalizes it so that
    grouping compares the same values the models end up holding.
    """
    user_id = _normalize_id(row["user_id"], "user_id")
    preference = Preference(item=_row_to_item(row), value=row["preference"], user_id=user_id)
    return user_id, preference


def _build_user(user_id: str, preferences: list[Preference]) -> User:
    """Build a User from its id and the preferences gathered for it."""
    return User(id=user_id, preferences=preferences)
