"""Storage providers for the text BBS daemon."""

from .sqlite_repository import SqliteRepository

__all__ = ["SqliteRepository"]
