from __future__ import annotations

import time
import uuid


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def make_task_id(now: int | None = None) -> str:
    """Time component plus random component, e.g. ``1718000000000-9f2c41d0a7b3e5f6``."""
    stamp = now_ms() if now is None else now
    return f"{stamp}-{uuid.uuid4().hex[:16]}"


__all__ = ["make_task_id", "now_ms"]
