"""
Tests for persistence — SQLite database, migrations and the task repository.
"""

import sqlite3
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from app.adapters.database import Database, database_path, run_migrations
from app.adapters.sqlite_repository import SqliteTaskRepository
from app.core.errors import ExternalError
from app.core.models import Task, TaskPriority, TaskStatus


class TestDatabasePath:
    def test_file_path(self):
        assert database_path("sqlite:///data/tasks.db") == "data/tasks.db"

    def test_absolute_path(self):
        assert database_path("sqlite:////var/lib/tasks.db") == "/var/lib/tasks.db"

    def test_memory(self):
        assert database_path("sqlite:///:memory:") == ":memory:"

    def test_unsupported_scheme(self):
        with pytest.raises(ExternalError) as exc:
            database_path("postgres://localhost/tasks")
        assert exc.value.is_database


class TestMigrations:
    def test_applies_once(self, tmp_path: Path):
        db = Database(f"sqlite:///{tmp_path / 'm.db'}")
        try:
            first = run_migrations(db)
            second = run_migrations(db)
        finally:
            db.close()
        assert first == ["0001_create_tasks_table.sql"]
        assert second == []

    def test_creates_directory(self, tmp_path: Path):
        db = Database(f"sqlite:///{tmp_path / 'nested' / 'dir' / 'm.db'}")
        db.close()
        assert (tmp_path / "nested" / "dir").is_dir()

    def test_custom_directory(self, tmp_path: Path):
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "0001_a.sql").write_text("CREATE TABLE a (id INTEGER);")
        (migrations / "0002_b.sql").write_text("CREATE TABLE b (id INTEGER);")
        db = Database("sqlite:///:memory:")
        try:
            assert run_migrations(db, migrations) == ["0001_a.sql", "0002_b.sql"]
        finally:
            db.close()

    def test_missing_directory(self, tmp_path: Path):
        db = Database("sqlite:///:memory:")
        try:
            with pytest.raises(ExternalError):
                run_migrations(db, tmp_path / "absent")
        finally:
            db.close()

    def test_broken_sql_is_database_error(self, tmp_path: Path):
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "0001_bad.sql").write_text("CREATE TABLEX nope;")
        db = Database("sqlite:///:memory:")
        try:
            with pytest.raises(ExternalError) as exc:
                run_migrations(db, migrations)
        finally:
            db.close()
        assert exc.value.is_database

    def test_failed_script_rolled_back(self, tmp_path: Path):
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "0001_half.sql").write_text(
            "CREATE TABLE first_half (id INTEGER);\nCREATE TABLEX second_half;"
        )
        db = Database(f"sqlite:///{tmp_path / 'm.db'}")
        try:
            with pytest.raises(ExternalError):
                run_migrations(db, migrations)
            with db.transaction() as conn:
                tables = {
                    row["name"]
                    for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
                }
                versions = conn.execute("SELECT version FROM schema_migrations").fetchall()
        finally:
            db.close()
        assert "first_half" not in tables
        assert versions == []


class TestSqliteTaskRepository:
    def test_create_and_get(self, repo: SqliteTaskRepository):
        task = Task.create(uuid.uuid4(), "Buy milk", "2 litres", TaskPriority.HIGH)
        created = repo.create(task)
        assert created == task

        fetched = repo.get(task.id)
        assert fetched is not None
        assert fetched.title == "Buy milk"
        assert fetched.priority == TaskPriority.HIGH
        assert fetched.status == TaskStatus.PENDING

    def test_get_missing(self, repo: SqliteTaskRepository):
        assert repo.get(uuid.uuid4()) is None

    def test_get_by_user_newest_first(self, repo: SqliteTaskRepository):
        owner = uuid.uuid4()
        base = datetime(2025, 1, 1, tzinfo=UTC)
        for i in range(3):
            t = Task.create(owner, f"task {i}")
            t = t.model_copy(update={"created_at": base + timedelta(minutes=i)})
            repo.create(t)
        repo.create(Task.create(uuid.uuid4(), "someone else"))

        titles = [t.title for t in repo.get_by_user(owner)]
        assert titles == ["task 2", "task 1", "task 0"]

    def test_update(self, repo: SqliteTaskRepository):
        task = repo.create(Task.create(uuid.uuid4(), "draft"))
        done = task.apply_update(title="final", status=TaskStatus.COMPLETED)
        repo.update(done)

        fetched = repo.get(task.id)
        assert fetched is not None
        assert fetched.title == "final"
        assert fetched.status == TaskStatus.COMPLETED
        assert fetched.completed_at == done.completed_at

    def test_delete(self, repo: SqliteTaskRepository):
        task = repo.create(Task.create(uuid.uuid4(), "temp"))
        repo.delete(task.id)
        assert repo.get(task.id) is None

    def test_duplicate_id_is_database_error(self, repo: SqliteTaskRepository):
        task = repo.create(Task.create(uuid.uuid4(), "once"))
        with pytest.raises(ExternalError) as exc:
            repo.create(task)
        assert exc.value.is_database

    def test_status_stored_by_name(self, repo: SqliteTaskRepository, database: Database):
        task = repo.create(Task.create(uuid.uuid4(), "x"))
        repo.update(task.apply_update(status=TaskStatus.IN_PROGRESS))
        with database.transaction() as conn:
            row = conn.execute("SELECT status FROM tasks WHERE id = ?", (str(task.id),)).fetchone()
        assert row["status"] == "IN_PROGRESS"

    def test_health_check(self, repo: SqliteTaskRepository):
        repo.health_check()

    def test_health_check_closed_database(self, tmp_path: Path):
        db = Database(f"sqlite:///{tmp_path / 'h.db'}")
        repo = SqliteTaskRepository(db)
        db.close()
        with pytest.raises(ExternalError):
            repo.health_check()

    def test_check_constraint(self, database: Database):
        with pytest.raises(ExternalError):
            with database.transaction() as conn:
                conn.execute(
                    "INSERT INTO tasks (id, user_id, title, status, priority, created_at, updated_at) "
                    "VALUES ('a', 'b', 't', 'BOGUS', 'LOW', 'x', 'x')"
                )

    def test_sqlite_error_type_not_leaked(self, database: Database):
        with pytest.raises(ExternalError) as exc:
            with database.transaction() as conn:
                conn.execute("SELECT * FROM missing_table")
        assert isinstance(exc.value.__cause__, sqlite3.Error)
