"""Shared factory helpers for building data model instances in tests."""

from tests.factories.models import (
    make_item,
    make_preference,
    make_user,
)

__all__ = [
    "make_item",
    "make_preference",
    "make_user",
]
