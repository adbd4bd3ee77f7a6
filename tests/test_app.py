from __future__ import annotations

import pytest

from tasklist.app import TaskListApp
from tasklist.errors import PriorityValidationError
from tasklist.models.task import Priority, StatusFilter, TaskListView
from tasklist.storage.memory import InMemoryStorage
from tasklist.store.task_store import TaskStore
from tests.helpers.storage import ConfirmRecorder, FakeClock


class _Recorder:
    def __init__(self) -> None:
        self.views: list[TaskListView] = []

    def __call__(self, view: TaskListView) -> None:
        self.views.append(view)

    @property
    def last(self) -> TaskListView:
        return self.views[-1]


@pytest.fixture()
def renders() -> _Recorder:
    return _Recorder()


@pytest.fixture()
def app(store: TaskStore, renders: _Recorder) -> TaskListApp:
    a = TaskListApp(store, render=renders)
    a.start()
    return a


def test_start_loads_and_renders_empty_state(app: TaskListApp, renders: _Recorder) -> None:
    assert len(renders.views) == 1
    assert renders.last.empty is True
    assert renders.last.stats.total == 0


def test_submit_creates_and_resets_form(app: TaskListApp, renders: _Recorder) -> None:
    assert app.submit("Buy milk", "low") is True

    assert [t.title for t in renders.last.tasks] == ["Buy milk"]
    assert renders.last.stats.model_dump() == {"total": 1, "pending": 1, "done": 0}
    assert app.form.title == ""
    assert app.form.priority is Priority.MEDIUM
    assert app.form.submit_label == "Add"


def test_submit_short_title_flags_error_without_mutation(
    app: TaskListApp, renders: _Recorder
) -> None:
    assert app.submit("ok", "medium") is False

    assert app.form.title_error is True
    assert app.form.title == "ok"
    assert renders.last.stats.total == 0

    assert app.submit("okay", None) is True
    assert app.form.title_error is False
    assert renders.last.stats.total == 1


def test_submit_rejects_unknown_priority(app: TaskListApp) -> None:
    with pytest.raises(PriorityValidationError):
        app.submit("Valid title", "urgent")


def test_edit_flow_updates_existing_task(app: TaskListApp, renders: _Recorder) -> None:
    app.submit("First draft", "low")
    task = app.store.tasks[0]

    assert app.start_edit(task.id) is True
    assert app.form.editing_id == task.id
    assert app.form.title == "First draft"
    assert app.form.priority is Priority.LOW
    assert app.form.submit_label == "Update"

    assert app.submit("Final version", "high") is True
    assert len(app.store) == 1
    assert app.store.get(task.id) is task
    assert task.title == "Final version"
    assert task.priority is Priority.HIGH
    assert app.form.editing_id is None


def test_rejected_edit_keeps_edit_mode(app: TaskListApp) -> None:
    app.submit("Original", "low")
    task = app.store.tasks[0]
    app.start_edit(task.id)

    assert app.submit("no") is False
    assert app.form.editing_id == task.id
    assert task.title == "Original"


def test_cancel_edit_discards_draft(app: TaskListApp) -> None:
    app.submit("Original", "low")
    task = app.store.tasks[0]
    app.start_edit(task.id)
    app.form.title = "Changed but not submitted"

    app.cancel_edit()

    assert app.form.editing_id is None
    assert app.form.title == ""
    assert task.title == "Original"


def test_start_edit_unknown_id_is_noop(app: TaskListApp) -> None:
    assert app.start_edit("missing") is False
    assert app.form.editing_id is None


def test_toggle_filter_and_search(app: TaskListApp, renders: _Recorder) -> None:
    app.submit("Task A", "low")
    app.submit("Other", "low")
    other = app.store.tasks[0]

    app.toggle(other.id)
    assert renders.last.stats.model_dump() == {"total": 2, "pending": 1, "done": 1}

    app.set_filter("done")
    assert [t.title for t in renders.last.tasks] == ["Other"]
    assert renders.last.filter is StatusFilter.DONE

    app.set_filter(StatusFilter.ALL)
    app.set_search("task")
    assert [t.title for t in renders.last.tasks] == ["Task A"]

    app.set_filter("done")
    assert renders.last.empty is True
    assert renders.last.stats.total == 2


def test_delete_respects_confirmation(clock: FakeClock, renders: _Recorder) -> None:
    confirm = ConfirmRecorder(answer=False)
    app = TaskListApp(TaskStore(InMemoryStorage(), confirm=confirm, clock=clock), render=renders)
    app.submit("Keep or not", "low")
    task = app.store.tasks[0]

    assert app.delete(task.id) is False
    assert renders.last.stats.total == 1

    assert app.delete(task.id, confirm=lambda _t: True) is True
    assert renders.last.empty is True


def test_deleting_task_under_edit_resets_form(app: TaskListApp) -> None:
    app.submit("Editing this", "low")
    task = app.store.tasks[0]
    app.start_edit(task.id)

    assert app.delete(task.id) is True
    assert app.form.editing_id is None
