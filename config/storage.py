"""Preference storage configuration settings."""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_DATABASE_PATH = "data/database/preferences.db"


@dataclass(frozen=True)
class PreferenceSchema:
    """Table and column names holding (user, item, preference) rows"""

    table: str = "taste_preferences"
    user_id_column: str = "user_id"
    item_id_column: str = "item_id"
    preference_column: str = "preference"

    def __post_init__(self) -> None:
        """Reject names that cannot be used verbatim as SQL identifiers."""
        for name in ("table", "user_id_column", "item_id_column", "preference_column"):
            value = getattr(self, name)
            if not isinstance(value, str) or not _IDENTIFIER.match(value):
                raise ValueError(f"{name} must be a plain SQL identifier, got {value!r}")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> "PreferenceSchema":
        """Load schema names from environment variables, keeping defaults for unset ones."""
        if env is None:
            env = os.environ
        overrides = {
            attr: env[var].strip()
            for attr, var in (
                ("table", "PREFERENCE_TABLE"),
                ("user_id_column", "USER_ID_COLUMN"),
                ("item_id_column", "ITEM_ID_COLUMN"),
                ("preference_column", "PREFERENCE_COLUMN"),
            )
            if (env.get(var) or "").strip()
        }
        return PreferenceSchema(**overrides)


DEFAULT_SCHEMA = PreferenceSchema()


@dataclass(frozen=True)
class StorageSettings:
    """Where the preference database lives and how its table is laid out"""

    db_path: str = DEFAULT_DATABASE_PATH
    schema: PreferenceSchema = field(default=DEFAULT_SCHEMA)

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> "StorageSettings":
        """Load storage settings from environment variables."""
        if env is None:
            env = os.environ
        db_path = (env.get("DATABASE_PATH") or "").strip() or DEFAULT_DATABASE_PATH
        return StorageSettings(db_path=db_path, schema=PreferenceSchema.from_env(env))
