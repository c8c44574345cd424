"""Services package."""

from .lifecycle import CompletionAction, completion_action, resolve_completed_at
from .tasks import TaskService, parse_priority, parse_status

__all__ = [
    "CompletionAction",
    "completion_action",
    "resolve_completed_at",
    "TaskService",
    "parse_priority",
    "parse_status",
]
