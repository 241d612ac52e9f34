"""SQL implementation shared by the SQLite and Postgres generation stores.

Statements are written with ``?`` placeholders; dialect subclasses supply the
placeholder, column types, timestamp adapters and statement execution.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Sequence

from trackgen.schemas.models import (
    GenerationTask,
    Schedule,
    ScheduleFrequency,
    TaskStatus,
    TitleEntry,
)

logger = logging.getLogger(__name__)

SCHEDULE_COLUMNS = (
    "id", "name", "frequency", "interval_days", "run_time", "count", "style", "mood",
    "template_id", "auto_deploy", "next_run", "last_run", "is_active", "created_at",
    "claimed_until",
)
TASK_COLUMNS = (
    "id", "schedule_id", "provider_task_id", "track_index", "title", "style", "mood",
    "status", "auto_deploy", "retry_count", "max_retries", "error", "generated_cover_url",
    "audio_url", "image_url", "duration_hint", "catalog_entry_id", "created_at",
    "updated_at", "last_checked_at", "failed_at",
)
TITLE_COLUMNS = ("primary_text", "secondary_text", "keywords", "used", "used_at")

_SCHEDULE_TS = ("next_run", "last_run", "created_at", "claimed_until")
_TASK_TS = ("created_at", "updated_at", "last_checked_at", "failed_at")


def new_schedule_id() -> str:
    return f"schedule_{uuid.uuid4().hex[:16]}"


def new_task_id() -> str:
    return f"task_{uuid.uuid4().hex[:16]}"


class SqlGenerationStore:
    """Row-per-record store. Subclasses implement ``_execute`` and the dialect hooks."""

    placeholder = "?"
    ts_type = "TEXT"
    bool_type = "INTEGER"
    float_type = "REAL"
    serial_pk = "INTEGER PRIMARY KEY AUTOINCREMENT"

    # -- dialect hooks -----------------------------------------------------

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> tuple[list[tuple], int]:
        raise NotImplementedError

    def _ts(self, value: datetime | None) -> Any:
        return value

    def _dt(self, value: Any) -> datetime | None:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            dt = value
        else:
            dt = datetime.fromisoformat(str(value))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    # -- helpers -----------------------------------------------------------

    def _run(self, sql: str, params: Sequence[Any] = ()) -> tuple[list[tuple], int]:
        if self.placeholder != "?":
            sql = sql.replace("?", self.placeholder)
        return self._execute(sql, tuple(params))

    def _schema_statements(self) -> list[str]:
        ts, boolean, flt = self.ts_type, self.bool_type, self.float_type
        return [
            f"""
            CREATE TABLE IF NOT EXISTS trackgen_schedules (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                frequency TEXT NOT NULL,
                interval_days INTEGER NOT NULL DEFAULT 1,
                run_time TEXT NOT NULL DEFAULT '09:00',
                count INTEGER NOT NULL DEFAULT 1,
                style TEXT NOT NULL DEFAULT 'piano',
                mood TEXT NOT NULL DEFAULT 'calm',
                template_id TEXT NOT NULL DEFAULT '',
                auto_deploy {boolean} NOT NULL,
                next_run {ts},
                last_run {ts},
                is_active {boolean} NOT NULL,
                created_at {ts} NOT NULL,
                claimed_until {ts}
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_trackgen_schedules_due
            ON trackgen_schedules (is_active, next_run)
            """,
            f"""
            CREATE TABLE IF NOT EXISTS trackgen_title_entries (
                seq {self.serial_pk},
                category TEXT NOT NULL,
                primary_text TEXT NOT NULL,
                secondary_text TEXT NOT NULL DEFAULT '',
                keywords TEXT NOT NULL DEFAULT '',
                used {boolean} NOT NULL,
                used_at {ts},
                created_at {ts} NOT NULL
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_trackgen_title_entries_unused
            ON trackgen_title_entries (category, used, seq)
            """,
            f"""
            CREATE TABLE IF NOT EXISTS trackgen_title_pools (
                category TEXT PRIMARY KEY,
                generated_at {ts} NOT NULL
            )
            """,
            f"""
            CREATE TABLE IF NOT EXISTS trackgen_generation_tasks (
                id TEXT PRIMARY KEY,
                schedule_id TEXT,
                provider_task_id TEXT NOT NULL,
                track_index INTEGER NOT NULL DEFAULT 0,
                title TEXT NOT NULL,
                style TEXT,
                mood TEXT,
                status TEXT NOT NULL,
                auto_deploy {boolean} NOT NULL,
                retry_count INTEGER NOT NULL DEFAULT 0,
                max_retries INTEGER NOT NULL DEFAULT 3,
                error TEXT,
                generated_cover_url TEXT,
                audio_url TEXT,
                image_url TEXT,
                duration_hint {flt},
                catalog_entry_id TEXT,
                created_at {ts} NOT NULL,
                updated_at {ts} NOT NULL,
                last_checked_at {ts},
                failed_at {ts}
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_trackgen_generation_tasks_status
            ON trackgen_generation_tasks (status, created_at)
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_trackgen_generation_tasks_provider
            ON trackgen_generation_tasks (provider_task_id)
            """,
        ]

    def _ensure_schema(self) -> None:
        for statement in self._schema_statements():
            self._run(statement)

    # -- row mapping -------------------------------------------------------

    def _schedule_row(self, s: Schedule) -> tuple:
        return (
            s.id, s.name, s.frequency.value, s.interval_days, s.run_time, s.count, s.style,
            s.mood, s.template_id, bool(s.auto_deploy), self._ts(s.next_run),
            self._ts(s.last_run), bool(s.is_active), self._ts(s.created_at),
            self._ts(s.claimed_until),
        )

    def _row_to_schedule(self, row: tuple) -> Schedule:
        data = dict(zip(SCHEDULE_COLUMNS, row))
        for key in _SCHEDULE_TS:
            data[key] = self._dt(data[key])
        data["frequency"] = ScheduleFrequency(data["frequency"])
        data["auto_deploy"] = bool(data["auto_deploy"])
        data["is_active"] = bool(data["is_active"])
        return Schedule.model_validate(data)

    def _task_row(self, t: GenerationTask) -> tuple:
        return (
            t.id, t.schedule_id, t.provider_task_id, t.track_index, t.title, t.style, t.mood,
            t.status.value, bool(t.auto_deploy), t.retry_count, t.max_retries, t.error,
            t.generated_cover_url, t.audio_url, t.image_url, t.duration_hint,
            t.catalog_entry_id, self._ts(t.created_at), self._ts(t.updated_at),
            self._ts(t.last_checked_at), self._ts(t.failed_at),
        )

    def _row_to_task(self, row: tuple) -> GenerationTask:
        data = dict(zip(TASK_COLUMNS, row))
        for key in _TASK_TS:
            data[key] = self._dt(data[key])
        data["status"] = TaskStatus(data["status"])
        data["auto_deploy"] = bool(data["auto_deploy"])
        return GenerationTask.model_validate(data)

    def _row_to_title(self, row: tuple) -> TitleEntry:
        primary, secondary, keywords, used, used_at = row
        return TitleEntry(
            primary=primary,
            secondary=secondary or "",
            keywords=keywords or "",
            used=bool(used),
            used_at=self._dt(used_at),
        )

    # -- schedules ---------------------------------------------------------

    def list_schedules(self) -> list[Schedule]:
        rows, _ = self._run(
            f"SELECT {', '.join(SCHEDULE_COLUMNS)} FROM trackgen_schedules ORDER BY created_at"
        )
        return [self._row_to_schedule(r) for r in rows]

    def get_schedule(self, schedule_id: str) -> Schedule | None:
        rows, _ = self._run(
            f"SELECT {', '.join(SCHEDULE_COLUMNS)} FROM trackgen_schedules WHERE id = ?",
            (schedule_id,),
        )
        return self._row_to_schedule(rows[0]) if rows else None

    def create_schedule(self, schedule: Schedule) -> Schedule:
        if not schedule.id:
            schedule.id = new_schedule_id()
        marks = ", ".join("?" for _ in SCHEDULE_COLUMNS)
        self._run(
            f"INSERT INTO trackgen_schedules ({', '.join(SCHEDULE_COLUMNS)}) VALUES ({marks})",
            self._schedule_row(schedule),
        )
        return schedule

    def update_schedule(self, schedule: Schedule) -> None:
        assignments = ", ".join(f"{c} = ?" for c in SCHEDULE_COLUMNS[1:])
        row = self._schedule_row(schedule)
        self._run(
            f"UPDATE trackgen_schedules SET {assignments} WHERE id = ?",
            row[1:] + (schedule.id,),
        )

    def delete_schedule(self, schedule_id: str) -> bool:
        _, count = self._run("DELETE FROM trackgen_schedules WHERE id = ?", (schedule_id,))
        return count > 0

    def find_due_schedules(self, now: datetime) -> list[Schedule]:
        rows, _ = self._run(
            f"""
            SELECT {', '.join(SCHEDULE_COLUMNS)} FROM trackgen_schedules
            WHERE is_active = ? AND next_run IS NOT NULL AND next_run <= ?
            ORDER BY next_run
            """,
            (True, self._ts(now)),
        )
        return [self._row_to_schedule(r) for r in rows]

    def claim_schedule(self, schedule_id: str, now: datetime, until: datetime) -> bool:
        """Take the run lease; succeeds only if the schedule is still due and unclaimed."""
        _, count = self._run(
            """
            UPDATE trackgen_schedules SET claimed_until = ?
            WHERE id = ? AND is_active = ? AND next_run IS NOT NULL AND next_run <= ?
              AND (claimed_until IS NULL OR claimed_until <= ?)
            """,
            (self._ts(until), schedule_id, True, self._ts(now), self._ts(now)),
        )
        return count == 1

    def release_schedule(self, schedule_id: str) -> None:
        self._run(
            "UPDATE trackgen_schedules SET claimed_until = NULL WHERE id = ?", (schedule_id,)
        )

    # -- title pool --------------------------------------------------------

    def unused_titles(self, category: str, limit: int | None = None) -> list[TitleEntry]:
        sql = f"""
            SELECT {', '.join(TITLE_COLUMNS)} FROM trackgen_title_entries
            WHERE category = ? AND used = ? ORDER BY seq
        """
        params: list[Any] = [category, False]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        rows, _ = self._run(sql, params)
        return [self._row_to_title(r) for r in rows]

    def count_titles(self, category: str) -> tuple[int, int]:
        """Return (unused, total) for a category."""
        rows, _ = self._run(
            """
            SELECT COUNT(*), SUM(CASE WHEN used = ? THEN 0 ELSE 1 END)
            FROM trackgen_title_entries WHERE category = ?
            """,
            (True, category),
        )
        total, unused = rows[0] if rows else (0, 0)
        return int(unused or 0), int(total or 0)

    def pool_generated_at(self, category: str) -> datetime | None:
        rows, _ = self._run(
            "SELECT generated_at FROM trackgen_title_pools WHERE category = ?", (category,)
        )
        return self._dt(rows[0][0]) if rows else None

    def existing_primaries(self, category: str) -> set[str]:
        rows, _ = self._run(
            "SELECT primary_text FROM trackgen_title_entries WHERE category = ?", (category,)
        )
        return {r[0] for r in rows}

    def insert_titles(self, category: str, entries: list[TitleEntry], at: datetime) -> int:
        for entry in entries:
            self._run(
                """
                INSERT INTO trackgen_title_entries
                (category, primary_text, secondary_text, keywords, used, used_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    category, entry.primary, entry.secondary, entry.keywords, bool(entry.used),
                    self._ts(entry.used_at), self._ts(at),
                ),
            )
        self._run(
            """
            INSERT INTO trackgen_title_pools (category, generated_at) VALUES (?, ?)
            ON CONFLICT (category) DO UPDATE SET generated_at = excluded.generated_at
            """,
            (category, self._ts(at)),
        )
        return len(entries)

    def mark_titles_used(self, category: str, identifiers: list[str], at: datetime) -> int:
        if not identifiers:
            return 0
        marks = ", ".join("?" for _ in identifiers)
        _, count = self._run(
            f"""
            UPDATE trackgen_title_entries SET used = ?, used_at = ?
            WHERE category = ? AND used = ?
              AND (primary_text IN ({marks}) OR secondary_text IN ({marks}))
            """,
            (True, self._ts(at), category, False, *identifiers, *identifiers),
        )
        return count

    def reset_titles(self, category: str) -> int:
        _, count = self._run(
            "UPDATE trackgen_title_entries SET used = ?, used_at = NULL WHERE category = ?",
            (False, category),
        )
        return count

    def delete_titles(self, category: str) -> int:
        _, count = self._run(
            "DELETE FROM trackgen_title_entries WHERE category = ?", (category,)
        )
        self._run("DELETE FROM trackgen_title_pools WHERE category = ?", (category,))
        return count

    # -- generation tasks --------------------------------------------------

    def create_task(self, task: GenerationTask) -> GenerationTask:
        if not task.id:
            task.id = new_task_id()
        marks = ", ".join("?" for _ in TASK_COLUMNS)
        self._run(
            f"INSERT INTO trackgen_generation_tasks ({', '.join(TASK_COLUMNS)}) VALUES ({marks})",
            self._task_row(task),
        )
        return task

    def get_task(self, task_id: str) -> GenerationTask | None:
        rows, _ = self._run(
            f"SELECT {', '.join(TASK_COLUMNS)} FROM trackgen_generation_tasks WHERE id = ?",
            (task_id,),
        )
        return self._row_to_task(rows[0]) if rows else None

    def update_task(self, task: GenerationTask) -> None:
        assignments = ", ".join(f"{c} = ?" for c in TASK_COLUMNS[1:])
        row = self._task_row(task)
        self._run(
            f"UPDATE trackgen_generation_tasks SET {assignments} WHERE id = ?",
            row[1:] + (task.id,),
        )

    def list_tasks(
        self, status: TaskStatus | None = None, limit: int = 50, offset: int = 0
    ) -> list[GenerationTask]:
        sql = f"SELECT {', '.join(TASK_COLUMNS)} FROM trackgen_generation_tasks"
        params: list[Any] = []
        if status is not None:
            sql += " WHERE status = ?"
            params.append(TaskStatus(status).value)
        sql += " ORDER BY created_at DESC, id LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        rows, _ = self._run(sql, params)
        return [self._row_to_task(r) for r in rows]

    def count_tasks(self, status: TaskStatus | None = None) -> int:
        if status is None:
            rows, _ = self._run("SELECT COUNT(*) FROM trackgen_generation_tasks")
        else:
            rows, _ = self._run(
                "SELECT COUNT(*) FROM trackgen_generation_tasks WHERE status = ?",
                (TaskStatus(status).value,),
            )
        return int(rows[0][0]) if rows else 0

    def count_tasks_by_status(self) -> dict[str, int]:
        rows, _ = self._run(
            "SELECT status, COUNT(*) FROM trackgen_generation_tasks GROUP BY status"
        )
        return {status: int(n) for status, n in rows}

    def tasks_to_poll(self, limit: int) -> list[GenerationTask]:
        rows, _ = self._run(
            f"""
            SELECT {', '.join(TASK_COLUMNS)} FROM trackgen_generation_tasks
            WHERE status IN (?, ?) ORDER BY created_at, track_index LIMIT ?
            """,
            (TaskStatus.PENDING.value, TaskStatus.GENERATING.value, limit),
        )
        return [self._row_to_task(r) for r in rows]

    def tasks_for_provider_task(self, provider_task_id: str) -> list[GenerationTask]:
        rows, _ = self._run(
            f"""
            SELECT {', '.join(TASK_COLUMNS)} FROM trackgen_generation_tasks
            WHERE provider_task_id = ? ORDER BY track_index
            """,
            (provider_task_id,),
        )
        return [self._row_to_task(r) for r in rows]

    def purge_failed_before(self, cutoff: datetime) -> int:
        _, count = self._run(
            """
            DELETE FROM trackgen_generation_tasks
            WHERE status = ? AND failed_at IS NOT NULL AND failed_at < ?
            """,
            (TaskStatus.FAILED.value, self._ts(cutoff)),
        )
        return count
