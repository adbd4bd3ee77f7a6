from __future__ import annotations


class TaskListError(Exception):
    """Base class for errors raised by tasklist components."""


class TitleValidationError(TaskListError, ValueError):
    """Trimmed title is shorter than the minimum length. Nothing was committed."""

    def __init__(self, title: str, min_length: int) -> None:
        self.title = title
        self.min_length = min_length
        super().__init__(f"title must be at least {min_length} characters after trimming")


class PriorityValidationError(TaskListError, ValueError):
    def __init__(self, priority: object) -> None:
        self.priority = priority
        super().__init__(f"priority must be one of low, medium, high (got {priority!r})")


class PersistenceError(TaskListError, RuntimeError):
    """The storage backend failed to read or write a slot."""


class InvalidStorageKeyError(TaskListError, ValueError):
    """Storage key cannot be mapped to a slot by the backend."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"invalid storage key: {key!r}")


__all__ = [
    "TaskListError",
    "TitleValidationError",
    "PriorityValidationError",
    "PersistenceError",
    "InvalidStorageKeyError",
]
