from __future__ import annotations

from typing import Protocol


class KeyValueStorage(Protocol):
    """Minimal string key-value slot store.

    Keep this tiny and stable so the task store can swap backends (file, memory,
    Redis) without changing callers. Backends raise ``PersistenceError`` when the
    underlying medium fails.
    """

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    def set_item(self, key: str, value: str) -> None:
        """Replace the value stored under key."""

    def remove_item(self, key: str) -> None:
        """Delete key. Missing keys are ignored."""


__all__ = ["KeyValueStorage"]
