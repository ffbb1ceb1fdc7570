"""Command-line entry point for inspecting and exporting the preference store.

Notes:
    Reads ``DATABASE_PATH`` and the optional ``PREFERENCE_TABLE`` /
    ``*_COLUMN`` overrides from the environment (a ``.env`` file is loaded
    first). Exported records go to stdout as JSON lines; logs go to stderr.
"""

import argparse
import json
import logging
import sqlite3
import sys
from collections.abc import Iterator, Sequence
from dataclasses import replace
from typing import Any, TextIO

from dotenv import load_dotenv

from config.storage import StorageSettings
from data import DataAccessError, StorageError, User
from data.storage import get_items, get_num_items, get_num_users, get_users, init_database
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


def setup_environment(verbose: bool = False) -> None:
    """Load environment and setup logging."""
    load_dotenv(override=True)
    setup_logging("DEBUG" if verbose else None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and export stored user preferences.")
    parser.add_argument("--db", help="Database path (overrides DATABASE_PATH)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init", help="Create the preference schema")
    for name, help_text in (
        ("users", "Stream users and their preferences as JSON lines"),
        ("items", "Stream item ids, one per line"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument(
            "--strict",
            action="store_true",
            help="Fail on read errors instead of ending the stream early",
        )
    sub.add_parser("stats", help="Print user and item counts")
    return parser


def _drain(rows, *, strict: bool) -> Iterator[Any]:
    """Yield entities from a row iterator.

    In strict mode any read failure propagates. Otherwise the stream ends at
    the first failure, which is logged, and what was read so far is kept.
    """
    if strict:
        yield from rows.iter_strict()
        return

    while rows.has_next():
        try:
            entity = rows.next()
        except DataAccessError as exc:
            logger.warning("Read failed mid-stream; ending export early: %s", exc)
            return
        yield entity


def _user_record(user: User) -> dict:
    return {
        "user_id": user.id,
        "preferences": [{"item_id": p.item_id, "value": p.value} for p in user.preferences],
    }


def export_users(settings: StorageSettings, out: TextIO, *, strict: bool = False) -> int:
    """Write one JSON line per user; return the number written."""
    count = 0
    with get_users(settings.db_path, schema=settings.schema) as users:
        for user in _drain(users, strict=strict):
            out.write(json.dumps(_user_record(user)) + "\n")
            count += 1
    logger.info("Exported %s users", count)
    return count


def export_items(settings: StorageSettings, out: TextIO, *, strict: bool = False) -> int:
    """Write one item id per line; return the number written."""
    count = 0
    with get_items(settings.db_path, schema=settings.schema) as items:
        for item in _drain(items, strict=strict):
            out.write(item.id + "\n")
            count += 1
    logger.info("Exported %s items", count)
    return count


def print_stats(settings: StorageSettings, out: TextIO) -> None:
    stats = {
        "users": get_num_users(settings.db_path, schema=settings.schema),
        "items": get_num_items(settings.db_path, schema=settings.schema),
    }
    out.write(json.dumps(stats) + "\n")


def main(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    """Run the CLI and return a process exit code."""
    args = build_parser().parse_args(argv)
    out = out or sys.stdout
    setup_environment(args.verbose)

    try:
        settings = StorageSettings.from_env()
        if args.db:
            settings = replace(settings, db_path=args.db)
    except ValueError as e:
        logger.exception("Invalid storage configuration: %s", e)
        return 1

    try:
        if args.command == "init":
            init_database(settings.db_path)
            logger.info("Database initialized at %s", settings.db_path)
        elif args.command == "users":
            export_users(settings, out, strict=args.strict)
        elif args.command == "items":
            export_items(settings, out, strict=args.strict)
        elif args.command == "stats":
            print_stats(settings, out)
    except (StorageError, ValueError, OSError, sqlite3.Error) as exc:
        logger.error("Command '%s' failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
