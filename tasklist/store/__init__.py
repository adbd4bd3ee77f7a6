from __future__ import annotations

from .ids import make_task_id, now_ms
from .task_store import DEFAULT_STORAGE_KEY, ConfirmFn, TaskStore

__all__ = ["DEFAULT_STORAGE_KEY", "ConfirmFn", "TaskStore", "make_task_id", "now_ms"]
