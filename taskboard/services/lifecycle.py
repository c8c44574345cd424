"""Completion-timestamp rule for status transitions."""

from datetime import datetime
from enum import Enum

from ..models import TaskStatus


class CompletionAction(str, Enum):
    SET = "set"
    CLEAR = "clear"
    KEEP = "keep"


def completion_action(
    old_status: TaskStatus | None, new_status: TaskStatus
) -> CompletionAction:
    """Decide what happens to ``completed_at`` when a status changes.

    ``old_status`` is None for a task being created. Every transition is
    allowed; only entering or leaving ``completed`` has a side effect.
    """
    was_completed = old_status is TaskStatus.COMPLETED
    is_completed = new_status is TaskStatus.COMPLETED
    if is_completed and not was_completed:
        return CompletionAction.SET
    if was_completed and not is_completed:
        return CompletionAction.CLEAR
    return CompletionAction.KEEP


def resolve_completed_at(
    old_status: TaskStatus | None,
    new_status: TaskStatus,
    current: datetime | None,
    now: datetime,
) -> datetime | None:
    """Return the ``completed_at`` value that goes with ``new_status``."""
    action = completion_action(old_status, new_status)
    if action is CompletionAction.SET:
        return now
    if action is CompletionAction.CLEAR:
        return None
    if new_status is TaskStatus.COMPLETED:
        return current or now
    return None
