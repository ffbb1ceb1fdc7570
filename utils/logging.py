"""Centralized logging configuration for the preference store."""

import logging
import os
import sys

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logger from environment variables.

    An explicit level (e.g. from a --verbose flag) wins over LOG_LEVEL.
    Handlers write to stderr so stdout stays free for exported records.
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    fmt = os.getenv("LOG_FORMAT", DEFAULT_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    log_file = os.getenv("LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level.upper(),
        format=fmt,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )
