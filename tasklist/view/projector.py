from __future__ import annotations

from collections.abc import Iterable, Sequence

from tasklist.models.task import StatusFilter, Task, TaskListView, TaskStats


def _coerce_filter(status_filter: StatusFilter | str) -> StatusFilter:
    try:
        return StatusFilter(status_filter)
    except ValueError as exc:
        raise ValueError(
            f"filter must be one of all, pending, done (got {status_filter!r})"
        ) from exc


def normalize_search(search_term: str | None) -> str:
    return (search_term or "").strip().casefold()


def project(
    tasks: Iterable[Task],
    status_filter: StatusFilter | str = StatusFilter.ALL,
    search_term: str | None = "",
) -> list[Task]:
    """Tasks to display, in input order. The input is never modified."""
    scope = _coerce_filter(status_filter)
    needle = normalize_search(search_term)

    out: list[Task] = []
    for task in tasks:
        if scope is StatusFilter.PENDING and task.done:
            continue
        if scope is StatusFilter.DONE and not task.done:
            continue
        if needle and needle not in task.title.casefold():
            continue
        out.append(task)
    return out


def compute_stats(tasks: Sequence[Task]) -> TaskStats:
    # Always over the full collection, never the projected subset
    total = len(tasks)
    done = sum(1 for t in tasks if t.done)
    return TaskStats(total=total, pending=total - done, done=done)


def build_view(
    tasks: Sequence[Task],
    status_filter: StatusFilter | str = StatusFilter.ALL,
    search_term: str | None = "",
) -> TaskListView:
    visible = project(tasks, status_filter, search_term)
    return TaskListView(
        tasks=visible,
        stats=compute_stats(tasks),
        empty=not visible,
        filter=_coerce_filter(status_filter),
        search=(search_term or "").strip(),
    )


__all__ = ["build_view", "compute_stats", "normalize_search", "project"]
