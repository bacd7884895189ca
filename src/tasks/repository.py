from __future__ import annotations

import logging
import os
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from .models import LifeArea, Task, TaskType
from .state import build_new_task, coerce_category, merge_changes

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "title",
    "category",
    "type",
    "completed",
    "completed_at",
    "date",
    "start_time",
    "end_time",
    "is_all_day",
    "location",
    "notes",
    "logs_json",
    "is_backlog",
    "created_at",
)

SAMPLE_TASKS: tuple[dict[str, str], ...] = (
    {"title": "Morning prayer and meditation", "category": "faith"},
    {"title": "Review monthly budget", "category": "finance"},
    {"title": "Go for a 30-min run", "category": "fitness"},
    {"title": "Call mom and dad", "category": "family"},
    {"title": "Change car oil", "category": "fortress"},
    {"title": "Read book for 1 hour", "category": "fulfillment"},
    {"title": "Watch funny cat videos", "category": "frivolous"},
)


class TaskRepository:
    """SQLiteベースのタスク/イベント/ノート管理。

    更新は常にレコード全体の置き換え (フィールド単位のマージ後に全カラムを書き込む)。
    """

    def __init__(self, db_path: Optional[Path] = None):
        root = Path(__file__).resolve().parents[2]
        default_path = root / "data" / "life_planner.db"
        env_path = os.getenv("LIFE_PLANNER_DB_PATH")
        if db_path:
            self.db_path = Path(db_path)
        elif env_path:
            self.db_path = Path(env_path)
        else:
            self.db_path = default_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    category TEXT NOT NULL,
                    type TEXT NOT NULL DEFAULT 'task' CHECK (type IN ('task','note')),
                    completed INTEGER NOT NULL DEFAULT 0,
                    completed_at TEXT,
                    date TEXT,
                    start_time TEXT,
                    end_time TEXT,
                    is_all_day INTEGER NOT NULL DEFAULT 0,
                    location TEXT,
                    notes TEXT,
                    logs_json TEXT NOT NULL DEFAULT '[]',
                    is_backlog INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_category ON tasks(category)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_date ON tasks(date)")
            conn.commit()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            category=LifeArea(row["category"]),
            type=TaskType(row["type"]),
            completed=bool(row["completed"]),
            completed_at=row["completed_at"],
            date=row["date"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            is_all_day=bool(row["is_all_day"]),
            location=row["location"],
            notes=row["notes"],
            logs_json=row["logs_json"],
            is_backlog=bool(row["is_backlog"]),
            created_at=row["created_at"],
        )

    @staticmethod
    def _task_to_params(task: Task) -> tuple[Any, ...]:
        return (
            task.id,
            task.title,
            task.category.value,
            task.type.value,
            int(task.completed),
            task.completed_at,
            task.date,
            task.start_time,
            task.end_time,
            int(task.is_all_day),
            task.location,
            task.notes,
            task.logs_json,
            int(task.is_backlog),
            task.created_at,
        )

    def _write(self, task: Task) -> None:
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO tasks ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                self._task_to_params(task),
            )
            conn.commit()

    def create(self, fields: Mapping[str, Any]) -> Task:
        """Validate ``fields`` and store a new record.

        Raises:
            TaskValidationError: title/category missing or malformed fields
        """
        task = build_new_task(str(uuid.uuid4()), self._now(), fields)
        self._write(task)
        logger.info("Created %s %s (%s)", task.type.value, task.id, task.category.value)
        return task

    def get(self, task_id: str) -> Optional[Task]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_task(row) if row else None

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Optional[Task]:
        current = self.get(task_id)
        if current is None:
            return None
        if not changes:
            return current
        updated = merge_changes(current, changes, self._now())
        self._write(updated)
        return updated

    def replace(self, task: Task) -> Task:
        """Write a full snapshot back as-is (used to roll back a mutation)."""
        self._write(task)
        return task

    def delete(self, task_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
            return cursor.rowcount > 0

    def list(
        self,
        *,
        category: Optional[Any] = None,
        date: Optional[str] = None,
        has_date: Optional[bool] = None,
    ) -> list[Task]:
        clauses: list[str] = []
        params: list[object] = []

        if category is not None:
            clauses.append("category = ?")
            params.append(coerce_category(category).value)
        if date is not None:
            clauses.append("date = ?")
            params.append(date)
        if has_date is True:
            clauses.append("date IS NOT NULL")
        elif has_date is False:
            clauses.append("date IS NULL")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM tasks {where}
                ORDER BY
                    COALESCE(date, ''),
                    COALESCE(start_time, ''),
                    created_at,
                    rowid
                """,
                params,
            ).fetchall()
        return [self._row_to_task(row) for row in rows]

    def bulk_create(self, items: Iterable[Mapping[str, Any]]) -> list[Task]:
        """テスト/初期データ投入用のヘルパー。"""
        return [self.create(item) for item in items]
