"""Persistence helpers."""

from .json_writer import JsonWriter
from .sqlite_store import SqliteStore

__all__ = ["JsonWriter", "SqliteStore"]
