from __future__ import annotations

from .task import (
    MIN_TITLE_LENGTH,
    Priority,
    StatusFilter,
    Task,
    TaskListView,
    TaskStats,
    is_valid_title,
    normalize_title,
)

__all__ = [
    "MIN_TITLE_LENGTH",
    "Priority",
    "StatusFilter",
    "Task",
    "TaskListView",
    "TaskStats",
    "is_valid_title",
    "normalize_title",
]
