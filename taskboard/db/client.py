"""SQLite database operations for tasks."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping

from ..errors import ConstraintError, StoreError, TaskNotFound
from ..models import Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

# Columns a caller may change through update(); id and created_at are immutable.
UPDATABLE_COLUMNS = frozenset(
    {"title", "description", "priority", "status", "completed_at"}
)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL CHECK (length(trim(title)) > 0),
        description TEXT NOT NULL,
        priority TEXT NOT NULL
            CHECK (priority IN ('low', 'medium', 'high')),
        status TEXT NOT NULL
            CHECK (status IN ('pending', 'in_progress', 'completed')),
        created_at TEXT NOT NULL
            DEFAULT (strftime('%Y-%m-%dT%H:%M:%f000+00:00', 'now')),
        completed_at TEXT
    )
"""


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize a timestamp as fixed-width ISO-8601 UTC so text order is time order."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored timestamp back into an aware datetime."""
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _to_column(name: str, value: Any) -> Any:
    if name == "completed_at":
        return format_timestamp(value)
    if isinstance(value, (TaskPriority, TaskStatus)):
        return value.value
    return value


class TaskStore:
    """SQLite task store.

    Each operation opens its own connection and runs as one transaction,
    so a single store can be shared across request threads.
    """

    def __init__(self, db_path: str | Path = "tasks.db") -> None:
        self.db_path = Path(db_path)

    def get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def get_db(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """Context manager for a transactional database connection.

        With ``immediate`` the write lock is taken before the first read.
        """
        try:
            conn = self.get_connection()
        except sqlite3.Error as e:
            raise StoreError(f"cannot open database {self.db_path}: {e}") from e
        try:
            if immediate:
                conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ConstraintError(str(e)) from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Initialize the database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.get_db() as conn:
            conn.execute(SCHEMA)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_priority ON tasks(priority)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at)"
            )
        logger.info("TaskStore ready db=%s total=%s", self.db_path, self.count())

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            priority=TaskPriority(row["priority"]),
            status=TaskStatus(row["status"]),
            created_at=parse_timestamp(row["created_at"]),
            completed_at=parse_timestamp(row["completed_at"]),
        )

    @classmethod
    def _fetch(cls, conn: sqlite3.Connection, task_id: str) -> Task:
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        if row is None:
            raise TaskNotFound(task_id)
        return cls._row_to_task(row)

    def count(self) -> int:
        """Count stored tasks."""
        with self.get_db() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def insert(self, task: Task) -> Task:
        """Persist a fully populated task."""
        with self.get_db() as conn:
            conn.execute(
                """
                INSERT INTO tasks
                    (id, title, description, priority, status, created_at, completed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.title,
                    task.description,
                    _to_column("priority", task.priority),
                    _to_column("status", task.status),
                    format_timestamp(task.created_at),
                    format_timestamp(task.completed_at),
                ),
            )
            logger.debug("Task inserted id=%s", task.id)
            return self._fetch(conn, task.id)

    def get_by_id(self, task_id: str) -> Task:
        """Get a task by ID."""
        with self.get_db() as conn:
            return self._fetch(conn, task_id)

    def update(
        self,
        task_id: str,
        fields: Mapping[str, Any],
        derive: Callable[[Task], Mapping[str, Any]] | None = None,
    ) -> Task:
        """Apply only the supplied columns to a task.

        ``derive`` receives the current row, read inside the same write
        transaction, and returns extra columns to write alongside ``fields``.
        """
        with self.get_db(immediate=derive is not None) as conn:
            if derive is not None:
                fields = {**fields, **derive(self._fetch(conn, task_id))}

            unknown = set(fields) - UPDATABLE_COLUMNS
            if unknown:
                raise ValueError(f"not updatable: {', '.join(sorted(unknown))}")

            if fields:
                names = sorted(fields)
                assignments = ", ".join(f"{name} = ?" for name in names)
                params = [_to_column(name, fields[name]) for name in names]
                params.append(task_id)
                cursor = conn.execute(
                    f"UPDATE tasks SET {assignments} WHERE id = ?",
                    params,
                )
                if cursor.rowcount == 0:
                    raise TaskNotFound(task_id)
                logger.debug("Task updated id=%s columns=%s", task_id, names)
            return self._fetch(conn, task_id)

    def delete(self, task_id: str) -> None:
        """Delete a task by ID."""
        with self.get_db() as conn:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            if cursor.rowcount == 0:
                raise TaskNotFound(task_id)
            logger.debug("Task deleted id=%s", task_id)

    def list(
        self,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
    ) -> list[Task]:
        """Get all tasks in creation order, optionally filtered."""
        clauses = []
        params = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if priority is not None:
            clauses.append("priority = ?")
            params.append(priority.value)

        sql = "SELECT * FROM tasks"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at ASC, rowid ASC"

        with self.get_db() as conn:
            return [self._row_to_task(row) for row in conn.execute(sql, params)]
