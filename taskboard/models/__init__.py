"""Models package."""

from .task import Task, TaskCreate, TaskPriority, TaskResponse, TaskStatus, TaskUpdate

__all__ = [
    "Task",
    "TaskPriority",
    "TaskStatus",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
]
