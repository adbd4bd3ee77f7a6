from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from tasklist.errors import PriorityValidationError
from tasklist.models.task import Priority, StatusFilter, TaskListView, is_valid_title
from tasklist.observability import get_json_logger
from tasklist.store.task_store import ConfirmFn, TaskStore
from tasklist.view.projector import build_view

RenderFn = Callable[[TaskListView], None]


@dataclass(slots=True)
class FormState:
    """Draft state of the create/edit form. Never persisted."""

    title: str = ""
    priority: Priority = Priority.MEDIUM
    editing_id: str | None = None
    title_error: bool = False

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    @property
    def submit_label(self) -> str:
        return "Update" if self.is_editing else "Add"


def _noop_render(view: TaskListView) -> None:
    return None


class TaskListApp:
    """Thin controller between user events and the task store.

    Holds UI state (form draft, filter, search term) and calls ``render`` with a
    fresh TaskListView after every handled event. Swap ``render`` to change the
    presentation without touching the store.
    """

    def __init__(self, store: TaskStore, *, render: RenderFn | None = None) -> None:
        self.store = store
        self.form = FormState()
        self.status_filter: StatusFilter = StatusFilter.ALL
        self.search_term: str = ""
        self._render: RenderFn = render or _noop_render
        self._logger = get_json_logger("tasklist.app")

    def start(self) -> TaskListView:
        self.store.load()
        return self.render()

    def view(self) -> TaskListView:
        return build_view(self.store.tasks, self.status_filter, self.search_term)

    def render(self) -> TaskListView:
        current = self.view()
        self._render(current)
        return current

    # ----------------------------
    # Form
    # ----------------------------
    def submit(self, title: str | None = None, priority: Priority | str | None = None) -> bool:
        """Create or update depending on ``form.editing_id``.

        Returns False (and flags ``form.title_error``) when the title is rejected.
        """
        if title is not None:
            self.form.title = title
        if priority is not None:
            try:
                self.form.priority = Priority(priority)
            except ValueError as exc:
                raise PriorityValidationError(priority) from exc

        if not is_valid_title(self.form.title):
            self.form.title_error = True
            self._logger.info(
                "title rejected",
                extra={"event": "form_rejected", "metadata": {"editing": self.form.is_editing}},
            )
            self.render()
            return False
        self.form.title_error = False

        if self.form.editing_id is not None:
            self.store.update(self.form.editing_id, self.form.title, self.form.priority)
        else:
            self.store.create(self.form.title, self.form.priority)
        self.reset_form()
        self.render()
        return True

    def start_edit(self, task_id: str) -> bool:
        task = self.store.get(task_id)
        if task is None:
            return False
        self.form.title = task.title
        self.form.priority = task.priority
        self.form.editing_id = task.id
        self.form.title_error = False
        self.render()
        return True

    def cancel_edit(self) -> None:
        self.reset_form()
        self.render()

    def reset_form(self) -> None:
        self.form = FormState()

    # ----------------------------
    # Per-task actions
    # ----------------------------
    def toggle(self, task_id: str) -> None:
        self.store.toggle_done(task_id)
        self.render()

    def delete(self, task_id: str, *, confirm: ConfirmFn | None = None) -> bool:
        removed = self.store.remove(task_id, confirm=confirm)
        if removed and self.form.editing_id == task_id:
            self.reset_form()
        self.render()
        return removed

    # ----------------------------
    # Filter / search
    # ----------------------------
    def set_filter(self, status_filter: StatusFilter | str) -> None:
        self.status_filter = StatusFilter(status_filter)
        self.render()

    def set_search(self, term: str) -> None:
        self.search_term = term
        self.render()


__all__ = ["FormState", "RenderFn", "TaskListApp"]
