"""Database package."""

from .client import TaskStore, format_timestamp, parse_timestamp

__all__ = [
    "TaskStore",
    "format_timestamp",
    "parse_timestamp",
]
