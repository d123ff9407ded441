"""
SQLite task repository — parameterized SQL over the ``tasks`` table.

Status and priority are stored by enum name (``IN_PROGRESS``), timestamps
as ISO-8601 UTC strings so that text ordering matches time ordering.
"""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime

from app.adapters.database import Database
from app.core.interfaces.task_repository import TaskRepository
from app.core.models.task import Task, TaskPriority, TaskStatus

_COLUMNS = (
    "id, user_id, title, description, status, priority, "
    "created_at, updated_at, completed_at"
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat(timespec="microseconds") if value else None


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=uuid.UUID(row["id"]),
        user_id=uuid.UUID(row["user_id"]),
        title=row["title"],
        description=row["description"],
        status=TaskStatus[row["status"]],
        priority=TaskPriority[row["priority"]],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        completed_at=(
            datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None
        ),
    )


class SqliteTaskRepository(TaskRepository):
    """Task storage backed by a ``Database``."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def __repr__(self) -> str:
        return f"SqliteTaskRepository(path={self._db.path!r})"

    def create(self, task: Task) -> Task:
        with self._db.transaction() as conn:
            conn.execute(
                f"INSERT INTO tasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    str(task.id),
                    str(task.user_id),
                    task.title,
                    task.description,
                    task.status.name,
                    task.priority.name,
                    _iso(task.created_at),
                    _iso(task.updated_at),
                    _iso(task.completed_at),
                ),
            )
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM tasks WHERE id = ?", (str(task.id),)
            ).fetchone()
        return _row_to_task(row)

    def get(self, task_id: uuid.UUID) -> Task | None:
        with self._db.transaction() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM tasks WHERE id = ?", (str(task_id),)
            ).fetchone()
        return _row_to_task(row) if row else None

    def get_by_user(self, user_id: uuid.UUID) -> list[Task]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM tasks WHERE user_id = ? ORDER BY created_at DESC",
                (str(user_id),),
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    def update(self, task: Task) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                "UPDATE tasks SET title = ?, description = ?, status = ?, priority = ?, "
                "updated_at = ?, completed_at = ? WHERE id = ?",
                (
                    task.title,
                    task.description,
                    task.status.name,
                    task.priority.name,
                    _iso(task.updated_at),
                    _iso(task.completed_at),
                    str(task.id),
                ),
            )

    def delete(self, task_id: uuid.UUID) -> None:
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM tasks WHERE id = ?", (str(task_id),))

    def health_check(self) -> None:
        with self._db.transaction() as conn:
            conn.execute("SELECT 1").fetchone()
