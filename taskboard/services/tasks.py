"""Task service: validation and lifecycle rules on top of the store."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from ulid import ULID

from ..db import TaskStore
from ..errors import TaskValidationError
from ..models import Task, TaskPriority, TaskStatus
from .lifecycle import resolve_completed_at

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "priority", "status")
READ_ONLY_FIELDS = ("id", "created_at", "completed_at")


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def parse_priority(value: Any, field: str = "priority") -> TaskPriority:
    """Convert a boundary value into a TaskPriority."""
    try:
        return TaskPriority(value)
    except ValueError:
        allowed = ", ".join(p.value for p in TaskPriority)
        raise TaskValidationError(field, f"{field} must be one of: {allowed}") from None


def parse_status(value: Any, field: str = "status") -> TaskStatus:
    """Convert a boundary value into a TaskStatus."""
    try:
        return TaskStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise TaskValidationError(field, f"{field} must be one of: {allowed}") from None


def validate_title(value: Any) -> str:
    """Reject titles that are empty or only whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise TaskValidationError("title", "title must be non-empty text")
    return value


def validate_description(value: Any) -> str:
    """Descriptions may be empty but must be text."""
    if not isinstance(value, str):
        raise TaskValidationError("description", "description must be text")
    return value


class TaskService:
    """Request-level task operations.

    Holds no state between calls besides the store it was given.
    """

    def __init__(
        self, store: TaskStore, clock: Callable[[], datetime] = utcnow
    ) -> None:
        self.store = store
        self.clock = clock

    def create_task(self, title: Any, description: Any, priority: Any) -> Task:
        """Create a pending task with a generated id."""
        title = validate_title(title)
        description = validate_description(description)
        priority = parse_priority(priority)

        now = self.clock()
        status = TaskStatus.PENDING
        task = Task(
            id=str(ULID()),
            title=title,
            description=description,
            priority=priority,
            status=status,
            created_at=now,
            completed_at=resolve_completed_at(None, status, None, now),
        )
        created = self.store.insert(task)
        logger.info("Task created id=%s priority=%s", created.id, created.priority.value)
        return created

    def get_task(self, task_id: str) -> Task:
        """Get a task by ID."""
        return self.store.get_by_id(task_id)

    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        """Apply a partial update.

        When ``status`` is supplied, ``completed_at`` is written alongside it.
        """
        for name in fields:
            if name in READ_ONLY_FIELDS:
                raise TaskValidationError(name, f"{name} is read-only")
            if name not in EDITABLE_FIELDS:
                raise TaskValidationError(name, f"unknown field: {name}")

        changes: dict[str, Any] = {}
        derive = None
        if "title" in fields:
            changes["title"] = validate_title(fields["title"])
        if "description" in fields:
            changes["description"] = validate_description(fields["description"])
        if "priority" in fields:
            changes["priority"] = parse_priority(fields["priority"])
        if "status" in fields:
            new_status = parse_status(fields["status"])
            changes["status"] = new_status

            def derive(current: Task) -> dict[str, Any]:
                completed_at = resolve_completed_at(
                    current.status, new_status, current.completed_at, self.clock()
                )
                return {"completed_at": completed_at}

        task = self.store.update(task_id, changes, derive=derive)
        if changes:
            logger.info(
                "Task updated id=%s fields=%s status=%s",
                task_id,
                ",".join(sorted(changes)),
                task.status.value,
            )
        return task

    def delete_task(self, task_id: str) -> None:
        """Delete a task by ID."""
        self.store.delete(task_id)
        logger.info("Task deleted id=%s", task_id)

    def list_tasks(self, status: Any = None, priority: Any = None) -> list[Task]:
        """List tasks in creation order, optionally filtered by status and priority."""
        status = parse_status(status) if status is not None else None
        priority = parse_priority(priority) if priority is not None else None
        return self.store.list(status=status, priority=priority)
