from __future__ import annotations

import argparse
import datetime as dt
import json
import sys
from collections.abc import Sequence
from dataclasses import asdict
from typing import NoReturn

from tasklist.app import TaskListApp
from tasklist.config import STORAGE_BACKENDS, AppConfig, build_storage, load_config
from tasklist.errors import (
    InvalidStorageKeyError,
    PersistenceError,
    PriorityValidationError,
    TitleValidationError,
)
from tasklist.models.task import MIN_TITLE_LENGTH, Priority, StatusFilter, Task, TaskListView
from tasklist.observability import get_json_logger, set_log_level
from tasklist.store.task_store import TaskStore

EXIT_NOT_FOUND = 1
EXIT_USAGE = 2


def prompt_confirm(task: Task) -> bool:
    """Blocking y/N prompt on stdin. EOF counts as 'no'."""
    try:
        answer = input(f'Delete "{task.title}"? [y/N] ')
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _format_created(ms: int) -> str:
    return dt.datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def format_view(view: TaskListView, positions: dict[str, int]) -> str:
    """Plain-text rendering; ``positions`` maps task id to its 1-based store position."""
    lines: list[str] = []
    if view.empty:
        lines.append("No tasks to show.")
    for task in view.tasks:
        mark = "x" if task.done else " "
        lines.append(
            f"{positions.get(task.id, 0):>3}. [{mark}] {task.title}  "
            f"({task.priority.label})  created {_format_created(task.created_at)}  "
            f"id={task.id}"
        )
    s = view.stats
    lines.append(f"Total: {s.total}  Pending: {s.pending}  Done: {s.done}")
    return "\n".join(lines)


def resolve_task_id(store: TaskStore, raw: str) -> str | None:
    """Accept a 1-based list position, a full id, or a unique id prefix.

    Short digit strings are positions first, so a numeric id prefix needs at
    least 7 characters to be matched as a prefix.
    """
    raw = raw.strip().rstrip(".")
    tasks = store.tasks
    if raw.isdigit() and len(raw) <= 6:
        pos = int(raw)
        return tasks[pos - 1].id if 1 <= pos <= len(tasks) else None
    if store.get(raw) is not None:
        return raw
    matches = [t.id for t in tasks if t.id.startswith(raw)]
    return matches[0] if len(matches) == 1 else None


TASK_HELP = (
    "1-based list position, full id, or unique id prefix; "
    "digit strings of up to 6 characters are read as positions"
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser("tasklist")
    p.add_argument("--storage", choices=list(STORAGE_BACKENDS))
    p.add_argument("--data-dir")
    p.add_argument("--key", help="storage slot holding the task array")
    p.add_argument("--log-level", choices=["debug", "info", "warning", "error"])
    sub = p.add_subparsers(dest="cmd")

    p_add = sub.add_parser("add", help="Create a task (newest first)")
    p_add.add_argument("title", nargs="+")
    p_add.add_argument("--priority", choices=[x.value for x in Priority], default="medium")

    p_list = sub.add_parser("list", help="Show tasks")
    p_list.add_argument("--filter", choices=[x.value for x in StatusFilter], default="all")
    p_list.add_argument("--search", default="")
    p_list.add_argument("--json", action="store_true")

    p_edit = sub.add_parser("edit", help="Change a task's title and/or priority")
    p_edit.add_argument("task", help=TASK_HELP)
    p_edit.add_argument("--title")
    p_edit.add_argument("--priority", choices=[x.value for x in Priority])

    p_toggle = sub.add_parser("toggle", help="Flip a task between pending and done")
    p_toggle.add_argument("task", help=TASK_HELP)

    p_rm = sub.add_parser("rm", help="Delete a task (asks for confirmation)")
    p_rm.add_argument("task", help=TASK_HELP)
    p_rm.add_argument("--yes", "-y", action="store_true", help="skip the confirmation prompt")

    sub.add_parser("stats", help="Show totals")
    return p.parse_args(argv)


def _config_from_args(args: argparse.Namespace) -> AppConfig:
    cfg = load_config()
    if args.storage:
        cfg.storage_backend = args.storage
    if args.data_dir:
        cfg.data_dir = args.data_dir
    if args.key:
        cfg.storage_key = args.key
    return cfg


def _fail(message: str, code: int) -> NoReturn:
    sys.stderr.write(f"error: {message}\n")
    raise SystemExit(code)


def run(args: argparse.Namespace, app: TaskListApp) -> int:
    cmd = str(getattr(args, "cmd", None) or "list")
    store = app.store
    positions = {t.id: i for i, t in enumerate(store.tasks, start=1)}

    if cmd == "add":
        if not app.submit(" ".join(args.title), args.priority):
            _fail(f"title must be at least {MIN_TITLE_LENGTH} characters", EXIT_USAGE)
        created = store.tasks[0]
        print(f"added {created.id}: {created.title} ({created.priority.label})")
        return 0

    if cmd == "list":
        app.status_filter = StatusFilter(getattr(args, "filter", "all"))
        app.search_term = getattr(args, "search", "")
        view = app.render()
        if getattr(args, "json", False):
            print(json.dumps(view.model_dump(mode="json", by_alias=True), indent=2))
        else:
            print(format_view(view, positions))
        return 0

    if cmd == "stats":
        s = app.view().stats
        print(f"Total: {s.total}  Pending: {s.pending}  Done: {s.done}")
        return 0

    task_id = resolve_task_id(store, args.task)
    if task_id is None:
        _fail(f"no task matches {args.task!r}", EXIT_NOT_FOUND)

    if cmd == "edit":
        if args.title is None and args.priority is None:
            _fail("nothing to change; pass --title and/or --priority", EXIT_USAGE)
        app.start_edit(task_id)
        if not app.submit(args.title, args.priority):
            app.cancel_edit()
            _fail(f"title must be at least {MIN_TITLE_LENGTH} characters", EXIT_USAGE)
        print(f"updated {task_id}")
        return 0

    if cmd == "toggle":
        app.toggle(task_id)
        task = store.get(task_id)
        state = "done" if task is not None and task.done else "pending"
        print(f"{task_id} is now {state}")
        return 0

    if cmd == "rm":
        removed = app.delete(task_id, confirm=(lambda _t: True) if args.yes else None)
        print(f"removed {task_id}" if removed else "kept")
        return 0

    _fail(f"unknown command {cmd!r}", EXIT_USAGE)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(list(argv) if argv is not None else None)
    cfg = _config_from_args(args)
    set_log_level(args.log_level or cfg.log_level or "warning")
    get_json_logger("tasklist.cli").debug(
        "config loaded", extra={"event": "config_loaded", "attributes": asdict(cfg)}
    )

    store = TaskStore(build_storage(cfg), confirm=prompt_confirm, key=cfg.storage_key)
    app = TaskListApp(store)
    try:
        app.start()
        code = run(args, app)
    except (TitleValidationError, PriorityValidationError, InvalidStorageKeyError) as exc:
        _fail(str(exc), EXIT_USAGE)
    except PersistenceError as exc:
        _fail(str(exc), 1)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
