"""Postgres generation store. Survives restarts and is shared across hosts."""

from __future__ import annotations

from typing import Any, Sequence

from trackgen.store.sql import SqlGenerationStore


class PostgresGenerationStore(SqlGenerationStore):
    placeholder = "%s"
    ts_type = "TIMESTAMPTZ"
    bool_type = "BOOLEAN"
    float_type = "DOUBLE PRECISION"
    serial_pk = "BIGSERIAL PRIMARY KEY"

    def __init__(self, database_url: str):
        self._url = database_url
        self._conn = self._connect()
        self._ensure_schema()

    def _connect(self):
        try:
            import psycopg
        except ImportError:
            raise ImportError(
                "psycopg required for Postgres generation store. pip install 'psycopg[binary]'"
            )
        return psycopg.connect(self._url, autocommit=True)

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> tuple[list[tuple], int]:
        cursor = self._conn.execute(sql, params)
        rows = cursor.fetchall() if cursor.description else []
        return rows, cursor.rowcount
