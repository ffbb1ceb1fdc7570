"""Shared pytest configuration for integration tests."""

from contextlib import closing

import pytest

from data.storage import connect


@pytest.fixture
def large_db(temp_db):
    """Preference database with 500 users holding 1..5 preferences each."""
    rows = [
        (f"user{u:04d}", f"item{i:03d}", float((u + i) % 5) + 0.5)
        for u in range(500)
        for i in range(u % 5 + 1)
    ]
    with closing(connect(temp_db)) as conn:
        conn.executemany(
            "INSERT INTO taste_preferences (user_id, item_id, preference) VALUES (?, ?, ?)",
            rows,
        )
        conn.commit()
    yield temp_db
