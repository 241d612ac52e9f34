"""SQLite generation store (default when no database URL is configured)."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from trackgen.store.sql import SqlGenerationStore


class SqliteGenerationStore(SqlGenerationStore):
    """One connection per statement; timestamps stored as UTC ISO-8601 text."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> tuple[list[tuple], int]:
        conn = sqlite3.connect(self.db_path, timeout=30)
        try:
            with conn:
                cursor = conn.execute(sql, params)
                rows = cursor.fetchall()
                return rows, cursor.rowcount
        finally:
            conn.close()

    def _ts(self, value: datetime | None) -> Any:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        # Fixed-width text so lexical order matches chronological order
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
