"""
SQLite database — connection handling and schema migrations.

One connection is shared by the process and guarded by a lock, so the
threaded Flask server can use it safely. Migrations are plain ``.sql``
files applied in name order and recorded in ``schema_migrations``. Each
file runs in its own transaction together with its bookkeeping row, so
migration files must not contain BEGIN or COMMIT themselves.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from app.core.config.settings import DatabaseConfig
from app.core.errors import ExternalError

logger = logging.getLogger(__name__)

SQLITE_SCHEME = "sqlite:///"

# Repository-level migrations directory
DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


def database_path(database_url: str) -> str:
    """Extract the filesystem path (or ``:memory:``) from a sqlite URL."""
    if not database_url.startswith(SQLITE_SCHEME):
        raise ExternalError(
            f"Database error: unsupported database URL '{database_url}' "
            f"(expected {SQLITE_SCHEME}<path>)"
        )
    path = database_url[len(SQLITE_SCHEME):]
    if not path:
        raise ExternalError("Database error: database URL has no path")
    return path


class Database:
    """Thread-safe wrapper around a single sqlite3 connection."""

    def __init__(self, database_url: str, config: DatabaseConfig | None = None) -> None:
        self._config = config or DatabaseConfig()
        self._path = database_path(database_url)
        self._lock = threading.Lock()

        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(
                self._path,
                timeout=self._config.timeout,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            if self._path != ":memory:":
                self._conn.execute(f"PRAGMA journal_mode={self._config.journal_mode};")
        except sqlite3.Error as e:
            raise ExternalError(f"Database error: cannot open {self._path}: {e}") from e

        logger.debug("Database opened at %s", self._path)

    @property
    def path(self) -> str:
        return self._path

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection inside a commit-or-rollback block."""
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as e:
                raise ExternalError(f"Database error: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def run_migrations(db: Database, migrations_dir: Path = DEFAULT_MIGRATIONS_DIR) -> list[str]:
    """Apply pending migrations in name order.

    Returns:
        Names of the migrations applied by this call.
    """
    if not migrations_dir.is_dir():
        raise ExternalError(f"Database error: migrations directory not found: {migrations_dir}")

    with db.transaction() as conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            "version TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        applied = {row["version"] for row in conn.execute("SELECT version FROM schema_migrations")}

    newly_applied: list[str] = []
    for script in sorted(migrations_dir.glob("*.sql")):
        if script.name in applied:
            continue
        sql = script.read_text(encoding="utf-8")
        logger.info("Applying migration %s", script.name)
        with db.transaction() as conn:
            # executescript commits first; an explicit BEGIN keeps the script
            # and its bookkeeping row in one transaction
            conn.executescript(f"BEGIN;\n{sql}")
            conn.execute(
                "INSERT INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                (script.name, datetime.now(UTC).isoformat()),
            )
        newly_applied.append(script.name)

    if newly_applied:
        logger.info("Migrations finished (%d applied)", len(newly_applied))
    return newly_applied
