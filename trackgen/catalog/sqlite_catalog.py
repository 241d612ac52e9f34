"""SQLite catalog for local deployments and tests."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from pathlib import Path

from trackgen.errors import NotFound
from trackgen.schemas.models import CatalogEntry, Collection, utcnow

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = (
    "id", "title", "file_url", "thumbnail_url", "duration", "category", "mood", "tags",
    "is_active", "created_at", "updated_at",
)
_UPDATABLE = {"title", "file_url", "thumbnail_url", "duration", "category", "mood", "tags", "is_active"}


class SqliteCatalog:
    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _connect(self):
        with closing(sqlite3.connect(self.db_path, timeout=30)) as conn:
            with conn:
                yield conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS catalog_entries (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    file_url TEXT NOT NULL,
                    thumbnail_url TEXT,
                    duration INTEGER NOT NULL DEFAULT 0,
                    category TEXT,
                    mood TEXT,
                    tags TEXT NOT NULL DEFAULT '[]',
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS catalog_collections (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    is_public INTEGER NOT NULL DEFAULT 1
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS catalog_collection_entries (
                    collection_id TEXT NOT NULL,
                    entry_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    PRIMARY KEY (collection_id, entry_id)
                )
            """)

    # -- entries -----------------------------------------------------------

    def _row_to_entry(self, row: tuple) -> CatalogEntry:
        data = dict(zip(_ENTRY_COLUMNS, row))
        data["tags"] = json.loads(data["tags"] or "[]")
        data["is_active"] = bool(data["is_active"])
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        data["updated_at"] = datetime.fromisoformat(data["updated_at"])
        return CatalogEntry.model_validate(data)

    def get(self, entry_id: str) -> CatalogEntry | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(_ENTRY_COLUMNS)} FROM catalog_entries WHERE id = ?",
                (entry_id,),
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def find_by_asset_fingerprint(self, fingerprint: str) -> CatalogEntry | None:
        """First entry whose stored file is named ``..._{fp}.ext`` or ``.../{fp}.ext``."""
        if not fingerprint:
            return None
        with self._connect() as conn:
            row = conn.execute(
                f"""
                SELECT {', '.join(_ENTRY_COLUMNS)} FROM catalog_entries
                WHERE instr(file_url, '_' || ? || '.') > 0 OR instr(file_url, '/' || ? || '.') > 0
                ORDER BY created_at LIMIT 1
                """,
                (fingerprint, fingerprint),
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def create(self, entry: CatalogEntry) -> CatalogEntry:
        if not entry.id:
            entry.id = f"track_{uuid.uuid4().hex[:16]}"
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO catalog_entries ({', '.join(_ENTRY_COLUMNS)})
                VALUES ({', '.join('?' for _ in _ENTRY_COLUMNS)})
                """,
                (
                    entry.id, entry.title, entry.file_url, entry.thumbnail_url, entry.duration,
                    entry.category, entry.mood, json.dumps(entry.tags), int(entry.is_active),
                    _iso(entry.created_at), _iso(entry.updated_at),
                ),
            )
        logger.info("Catalog entry created: %s - %s", entry.id, entry.title)
        return entry

    def update(self, entry_id: str, **fields) -> CatalogEntry:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown catalog fields: {sorted(unknown)}")
        if "tags" in fields:
            fields["tags"] = json.dumps(fields["tags"])
        if "is_active" in fields:
            fields["is_active"] = int(fields["is_active"])
        fields["updated_at"] = _iso(utcnow())
        assignments = ", ".join(f"{k} = ?" for k in fields)
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE catalog_entries SET {assignments} WHERE id = ?",
                (*fields.values(), entry_id),
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Catalog entry not found: {entry_id}")
        return self.get(entry_id)

    def list_entries(self) -> list[CatalogEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_ENTRY_COLUMNS)} FROM catalog_entries ORDER BY created_at"
            ).fetchall()
        return [self._row_to_entry(r) for r in rows]

    # -- collections -------------------------------------------------------

    def create_collection(self, name: str, is_public: bool = True) -> Collection:
        collection = Collection(id=f"playlist_{uuid.uuid4().hex[:12]}", name=name, is_public=is_public)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO catalog_collections (id, name, is_public) VALUES (?, ?, ?)",
                (collection.id, collection.name, int(collection.is_public)),
            )
        return collection

    def get_collections(self, ids: list[str]) -> list[Collection]:
        if not ids:
            return []
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT id, name, is_public FROM catalog_collections
                WHERE id IN ({', '.join('?' for _ in ids)})
                """,
                tuple(ids),
            ).fetchall()
        by_id = {r[0]: Collection(id=r[0], name=r[1], is_public=bool(r[2])) for r in rows}
        return [by_id[i] for i in ids if i in by_id]

    def is_member(self, collection_id: str, entry_id: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT 1 FROM catalog_collection_entries
                WHERE collection_id = ? AND entry_id = ?
                """,
                (collection_id, entry_id),
            ).fetchone()
        return row is not None

    def max_position(self, collection_id: str) -> int | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT MAX(position) FROM catalog_collection_entries WHERE collection_id = ?",
                (collection_id,),
            ).fetchone()
        return row[0] if row else None

    def append_to_collection(self, collection_id: str, entry_id: str, position: int) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO catalog_collection_entries (collection_id, entry_id, position)
                VALUES (?, ?, ?)
                """,
                (collection_id, entry_id, position),
            )

    def collection_entries(self, collection_id: str) -> list[tuple[str, int]]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT entry_id, position FROM catalog_collection_entries
                WHERE collection_id = ? ORDER BY position
                """,
                (collection_id,),
            ).fetchall()
        return [(r[0], r[1]) for r in rows]


def _iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")
