"""Stubs standing in for external collaborators in unit tests."""

from tests.shared_stubs.cursor import FakeCursorHandle, FakeCursorSource, InjectedReadError

__all__ = ["FakeCursorHandle", "FakeCursorSource", "InjectedReadError"]
