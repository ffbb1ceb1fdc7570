"""SQL text for the preference table, parameterized by PreferenceSchema."""

from dataclasses import dataclass
from functools import lru_cache

from config.storage import PreferenceSchema


@dataclass(frozen=True)
class PreferenceQueries:
    """Statements for one schema. Result columns are aliased to user_id/item_id/preference."""

    get_users: str
    get_user: str
    get_items: str
    get_item: str
    get_prefs_for_item: str
    get_num_users: str
    get_num_items: str
    set_preference: str
    remove_preference: str


@lru_cache(maxsize=16)
def build_queries(schema: PreferenceSchema) -> PreferenceQueries:
    """Render every statement for the given table/column names."""
    t = schema.table
    u = schema.user_id_column
    i = schema.item_id_column
    p = schema.preference_column

    # Rows must stay ordered by user so GroupingRowIterator sees each user's run contiguously
    return PreferenceQueries(
        get_users=(
            f"SELECT {u} AS user_id, {i} AS item_id, {p} AS preference "
            f"FROM {t} ORDER BY {u} ASC, {i} ASC"
        ),
        get_user=(
            f"SELECT {i} AS item_id, {p} AS preference "
            f"FROM {t} WHERE {u} = ? ORDER BY {i} ASC"
        ),
        get_items=f"SELECT DISTINCT {i} AS item_id FROM {t} ORDER BY {i} ASC",
        get_item=f"SELECT 1 FROM {t} WHERE {i} = ? LIMIT 1",
        get_prefs_for_item=(
            f"SELECT {p} AS preference, {u} AS user_id, {i} AS item_id "
            f"FROM {t} WHERE {i} = ? ORDER BY {u} ASC"
        ),
        get_num_users=f"SELECT COUNT(DISTINCT {u}) FROM {t}",
        get_num_items=f"SELECT COUNT(DISTINCT {i}) FROM {t}",
        set_preference=(
            f"INSERT INTO {t} ({u}, {i}, {p}) VALUES (?, ?, ?) "
            f"ON CONFLICT({u}, {i}) DO UPDATE SET {p} = excluded.{p}"
        ),
        remove_preference=f"DELETE FROM {t} WHERE {u} = ? AND {i} = ?",
    )
