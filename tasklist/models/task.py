from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MIN_TITLE_LENGTH = 3


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class StatusFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    DONE = "done"


def normalize_title(value: str) -> str:
    return value.strip()


def is_valid_title(value: str) -> bool:
    return len(normalize_title(value)) >= MIN_TITLE_LENGTH


class Task(BaseModel):
    """A single to-do record.

    - Mutated in place by the store; assignments are re-validated
    - Serialized with camelCase timestamp keys (``createdAt``/``updatedAt``)
    - Timestamps are integer epoch milliseconds
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str = Field(min_length=1)
    title: str
    priority: Priority = Priority.MEDIUM
    done: bool = False
    created_at: int = Field(alias="createdAt", ge=0)
    updated_at: int = Field(alias="updatedAt", ge=0)

    @field_validator("title")
    @classmethod
    def _title_min_length(cls, value: str) -> str:
        title = normalize_title(value)
        if len(title) < MIN_TITLE_LENGTH:
            raise ValueError(f"title must be at least {MIN_TITLE_LENGTH} characters")
        return title

    @model_validator(mode="after")
    def _timestamps_ordered(self) -> Task:
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not precede createdAt")
        return self

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


class TaskStats(BaseModel):
    total: int = 0
    pending: int = 0
    done: int = 0


class TaskListView(BaseModel):
    """What the presentation layer receives after every action."""

    tasks: list[Task] = Field(default_factory=list)
    stats: TaskStats = Field(default_factory=TaskStats)
    empty: bool = True
    filter: StatusFilter = StatusFilter.ALL
    search: str = ""


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
