"""Task error taxonomy."""


class TaskError(Exception):
    """Base class for task errors."""


class TaskValidationError(TaskError):
    """Malformed or out-of-enumeration input for a single field."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class TaskNotFound(TaskError):
    """The id does not resolve to an existing task."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class StoreError(TaskError):
    """Unexpected persistence failure."""


class ConstraintError(StoreError):
    """A row violated a column or key constraint."""
