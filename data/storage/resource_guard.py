"""Idempotent release of the resources backing an open cursor."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Closeable(Protocol):
    def close(self) -> None: ...


class ResourceGuard:
    """Close a bundle of resources at most once, whichever path asks first.

    Resources are closed in reverse acquisition order (cursor before
    connection). A failing close() is logged and skipped so it never masks
    the error that triggered cleanup.
    """

    def __init__(self, *resources: Closeable | None) -> None:
        self._resources: list[Closeable] = [r for r in resources if r is not None]
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, resource: Closeable) -> None:
        """Register a resource acquired after the guard was created."""
        if self._closed:
            # Nothing may be acquired after release; close the latecomer right away.
            self._close_quietly(resource)
            return
        self._resources.append(resource)

    def release(self) -> None:
        """Close every registered resource once; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True

        resources, self._resources = self._resources, []
        for resource in reversed(resources):
            self._close_quietly(resource)

    @staticmethod
    def _close_quietly(resource: Closeable) -> None:
        try:
            resource.close()
        except Exception as exc:
            logger.warning("Failed to close %s; continuing: %s", type(resource).__name__, exc)

    def __enter__(self) -> ResourceGuard:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
