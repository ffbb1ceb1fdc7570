"""Configuration package exposing settings modules for the preference store."""

from config import storage

__all__ = ["storage"]
