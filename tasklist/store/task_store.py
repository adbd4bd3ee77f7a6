from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from typing import Any

from pydantic import ValidationError

from tasklist.errors import PriorityValidationError, TitleValidationError
from tasklist.models.task import MIN_TITLE_LENGTH, Priority, Task, is_valid_title, normalize_title
from tasklist.observability import get_json_logger, get_metrics
from tasklist.storage.interface import KeyValueStorage

from .ids import make_task_id, now_ms

DEFAULT_STORAGE_KEY = "todo_crud_tasks"

ConfirmFn = Callable[[Task], bool]
Clock = Callable[[], int]
IdFactory = Callable[[int], str]


class TaskStore:
    """Authoritative, ordered in-memory task collection with write-through persistence.

    - Newest task first; update/toggle keep relative order and object identity
    - Every successful mutation serializes the whole collection into one storage slot
    - A failed write rolls the in-memory mutation back and re-raises the backend error
    - Unknown ids are silent no-ops
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        confirm: ConfirmFn,
        key: str = DEFAULT_STORAGE_KEY,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._storage = storage
        self._confirm = confirm
        self._key = key
        self._clock: Clock = clock or now_ms
        self._id_factory: IdFactory = id_factory or make_task_id
        self._tasks: list[Task] = []
        self._logger = get_json_logger("tasklist.store")

    # ----------------------------
    # Read access
    # ----------------------------
    @property
    def key(self) -> str:
        return self._key

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(tuple(self._tasks))

    def get(self, task_id: str) -> Task | None:
        index = self._index_of(task_id)
        return self._tasks[index] if index is not None else None

    # ----------------------------
    # Load
    # ----------------------------
    def load(self) -> list[Task]:
        """Replace the in-memory collection with the persisted one.

        A missing slot or an unparseable payload yields an empty collection.
        Entries that fail validation are skipped; duplicate ids keep the first.
        """
        raw = self._storage.get_item(self._key)
        if raw is None:
            self._tasks = []
            return []
        try:
            data: Any = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            # RecursionError: pathologically nested arrays
            self._warn_parse_error(f"payload is not JSON: {exc}")
            self._tasks = []
            return []
        if not isinstance(data, list):
            self._warn_parse_error(f"expected a JSON array, got {type(data).__name__}")
            self._tasks = []
            return []

        loaded: list[Task] = []
        seen: set[str] = set()
        for position, entry in enumerate(data):
            try:
                task = Task.model_validate(entry)
            except ValidationError as exc:
                self._logger.warning(
                    "skipping invalid stored task",
                    extra={
                        "event": "persistence_entry_skipped",
                        "storage_key": self._key,
                        "metadata": {"position": position, "errors": exc.error_count()},
                    },
                )
                continue
            if task.id in seen:
                self._logger.warning(
                    "skipping duplicate stored task id",
                    extra={
                        "event": "persistence_entry_skipped",
                        "storage_key": self._key,
                        "metadata": {"position": position, "task_id": task.id},
                    },
                )
                continue
            seen.add(task.id)
            loaded.append(task)

        self._tasks = loaded
        self._logger.info(
            "tasks loaded",
            extra={
                "event": "tasks_loaded",
                "storage_key": self._key,
                "metadata": {"count": len(loaded)},
            },
        )
        return list(loaded)

    # ----------------------------
    # Mutations
    # ----------------------------
    def create(self, title: str, priority: Priority | str = Priority.MEDIUM) -> Task:
        clean_title = self._validated_title(title)
        prio = self._validated_priority(priority)
        now = self._clock()
        task = Task(
            id=self._new_id(now),
            title=clean_title,
            priority=prio,
            done=False,
            created_at=now,
            updated_at=now,
        )
        self._tasks.insert(0, task)
        self._commit("create", task.id, lambda: self._tasks.pop(0))
        return task

    def update(self, task_id: str, new_title: str, new_priority: Priority | str) -> None:
        task = self.get(task_id)
        if task is None:
            self._log_missing("update", task_id)
            return
        # Validate everything before touching the task: a rejected edit changes nothing
        clean_title = self._validated_title(new_title)
        prio = self._validated_priority(new_priority)

        previous = (task.title, task.priority, task.updated_at)

        def _undo() -> None:
            task.updated_at = previous[2]
            task.priority = previous[1]
            task.title = previous[0]

        task.title = clean_title
        task.priority = prio
        task.updated_at = self._bumped(task)
        self._commit("update", task_id, _undo)

    def toggle_done(self, task_id: str) -> None:
        task = self.get(task_id)
        if task is None:
            self._log_missing("toggle", task_id)
            return
        previous = (task.done, task.updated_at)

        def _undo() -> None:
            task.done = previous[0]
            task.updated_at = previous[1]

        task.done = not task.done
        task.updated_at = self._bumped(task)
        self._commit("toggle", task_id, _undo)

    def remove(self, task_id: str, *, confirm: ConfirmFn | None = None) -> bool:
        """Delete a task after the confirmation collaborator agrees.

        Returns True when a task was removed. Declined confirmation and unknown
        ids both leave the collection untouched and return False. An unknown id
        returns before the collaborator is consulted, so the user is never asked
        about a task that does not exist.
        """
        index = self._index_of(task_id)
        if index is None:
            self._log_missing("remove", task_id)
            return False
        task = self._tasks[index]
        decide = confirm or self._confirm
        if not decide(task):
            self._logger.info(
                "removal declined",
                extra={"event": "task_remove_declined", "metadata": {"task_id": task_id}},
            )
            return False
        del self._tasks[index]
        self._commit("remove", task_id, lambda: self._tasks.insert(index, task))
        return True

    # ----------------------------
    # Internals
    # ----------------------------
    def _index_of(self, task_id: str) -> int | None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None

    def _new_id(self, now: int) -> str:
        existing = {t.id for t in self._tasks}
        while True:
            candidate = self._id_factory(now)
            if candidate not in existing:
                return candidate

    def _bumped(self, task: Task) -> int:
        # Strictly increasing even when the clock has not moved
        return max(self._clock(), task.updated_at + 1)

    @staticmethod
    def _validated_title(title: str) -> str:
        if not isinstance(title, str) or not is_valid_title(title):
            raise TitleValidationError(str(title), MIN_TITLE_LENGTH)
        return normalize_title(title)

    @staticmethod
    def _validated_priority(priority: Priority | str) -> Priority:
        try:
            return Priority(priority)
        except ValueError as exc:
            raise PriorityValidationError(priority) from exc

    def _serialize(self) -> str:
        return json.dumps(
            [t.to_payload() for t in self._tasks], separators=(",", ":"), ensure_ascii=False
        )

    def _commit(self, operation: str, task_id: str, rollback: Callable[[], object]) -> None:
        metrics = get_metrics()
        try:
            self._storage.set_item(self._key, self._serialize())
        except Exception:
            # Any failed write, including a key the backend rejects, undoes the mutation
            rollback()
            self._logger.error(
                "persist failed; mutation rolled back",
                exc_info=True,
                extra={
                    "event": "task_persist_error",
                    "operation": operation,
                    "metadata": {"task_id": task_id},
                },
            )
            metrics.increment("task_persist_errors", {"op": operation})
            raise
        self._logger.info(
            "task mutated",
            extra={
                "event": f"task_{operation}",
                "operation": operation,
                "metadata": {"task_id": task_id, "count": len(self._tasks)},
            },
        )
        metrics.increment("task_mutations", {"op": operation})

    def _log_missing(self, operation: str, task_id: str) -> None:
        self._logger.debug(
            "task not found; ignoring",
            extra={
                "event": "task_not_found",
                "operation": operation,
                "metadata": {"task_id": task_id},
            },
        )

    def _warn_parse_error(self, reason: str) -> None:
        self._logger.warning(
            "stored tasks unreadable; starting empty",
            extra={
                "event": "persistence_parse_error",
                "storage_key": self._key,
                "metadata": {"reason": reason[:200]},
            },
        )
        get_metrics().increment("persistence_parse_errors")


__all__ = ["DEFAULT_STORAGE_KEY", "ConfirmFn", "TaskStore"]
