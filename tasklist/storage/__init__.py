from __future__ import annotations

from .file_store import FileStorage
from .interface import KeyValueStorage
from .memory import InMemoryStorage

__all__ = ["FileStorage", "InMemoryStorage", "KeyValueStorage"]
