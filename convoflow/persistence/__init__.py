"""Persistence layer for workflow contexts."""

from __future__ import annotations

from typing import Optional

from ..config import ConvoflowConfig, load_config
from .inmemory import InMemoryContextRepository
from .postgres import PostgresContextRepository
from .repository import OPEN_STATUSES, ContextRepository
from .sqlite import SQLiteContextRepository

MEMORY_URL = "memory://"

_repository_instance: ContextRepository | None = None


def open_repository(database_url: Optional[str]) -> ContextRepository:
    """Build a repository for ``database_url``.

    ``sqlite://<path>`` opens a SQLite file, ``postgres://`` and
    ``postgresql://`` DSNs go to PostgreSQL, and an empty URL or
    ``memory://`` keeps contexts in process memory.
    """

    if not database_url or database_url == MEMORY_URL:
        return InMemoryContextRepository()

    scheme, _, location = database_url.partition("://")
    if scheme == "sqlite" and location:
        return SQLiteContextRepository(location)
    if scheme in ("postgres", "postgresql"):
        return PostgresContextRepository(database_url)
    raise ValueError(f"Unsupported database backend: {database_url}")


def get_repository(
    database_url: Optional[str] = None, config: Optional[ConvoflowConfig] = None
) -> ContextRepository:
    """Return the process-wide context repository.

    Called without arguments, the existing instance is reused. Otherwise the
    backend comes from ``database_url`` or, failing that, from
    ``config.database_url``; ``load_config()`` supplies the config when none
    is given, environment overrides included.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    if database_url is None:
        database_url = (config or load_config()).database_url
    _repository_instance = open_repository(database_url)
    return _repository_instance


__all__ = [
    "MEMORY_URL",
    "OPEN_STATUSES",
    "ContextRepository",
    "InMemoryContextRepository",
    "SQLiteContextRepository",
    "PostgresContextRepository",
    "get_repository",
    "open_repository",
]
