"""Generation store: Postgres (preferred) or SQLite fallback."""

from __future__ import annotations

import logging

from trackgen.config import get_settings
from trackgen.store.base import GenerationStore
from trackgen.store.postgres_store import PostgresGenerationStore
from trackgen.store.sql import new_schedule_id, new_task_id
from trackgen.store.sqlite_store import SqliteGenerationStore

logger = logging.getLogger(__name__)

_store: GenerationStore | None = None


def get_generation_store() -> GenerationStore:
    """Return singleton store (Postgres if configured, else SQLite under the data dir)."""
    global _store
    if _store is not None:
        return _store
    settings = get_settings()
    if settings.trackgen_database_url:
        try:
            _store = PostgresGenerationStore(settings.trackgen_database_url)
            logger.info("Using Postgres generation store")
        except Exception as e:
            logger.warning("Postgres generation store failed (%s), falling back to SQLite", e)
            _store = SqliteGenerationStore(settings.sqlite_path)
    else:
        _store = SqliteGenerationStore(settings.sqlite_path)
        logger.info("Using SQLite generation store (%s)", settings.sqlite_path)
    return _store


__all__ = [
    "GenerationStore",
    "PostgresGenerationStore",
    "SqliteGenerationStore",
    "get_generation_store",
    "new_schedule_id",
    "new_task_id",
]
