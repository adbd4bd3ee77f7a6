from __future__ import annotations

import os
import time
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from tasklist.observability import reset_metrics, set_log_level
from tasklist.storage.memory import InMemoryStorage
from tasklist.store.task_store import TaskStore
from tests.helpers.storage import FakeClock

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _isolated_observability() -> Generator[None, None, None]:
    """Fresh metrics per test and no leftover log level override from CLI runs."""
    reset_metrics()
    set_log_level(None)
    yield
    set_log_level(None)


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(start=1_700_000_000_000)


@pytest.fixture()
def store(storage: InMemoryStorage, clock: FakeClock) -> TaskStore:
    return TaskStore(storage, confirm=lambda _task: True, clock=clock)


def _wait_until(timeout_s: float, pause_s: float, check: Callable[[], bool]) -> bool:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        if check():
            return True
        time.sleep(pause_s)
    return False


def _redis_ping(url: str) -> bool:
    try:
        import redis

        r = redis.Redis.from_url(url)
        return bool(r.ping())
    except Exception:
        return False


@pytest.fixture(scope="session")
def redis_url() -> str:
    """Provide a reachable Redis URL or skip.

    Priority:
    1) REDIS_URL env if reachable
    2) localhost:6379
    """
    env_url = os.getenv("REDIS_URL")
    if env_url and _wait_until(3.0, 0.2, lambda: _redis_ping(env_url)):
        return env_url

    local_url = "redis://localhost:6379/0"
    if _wait_until(1.0, 0.2, lambda: _redis_ping(local_url)):
        return local_url

    pytest.skip("Redis not available; set REDIS_URL or start local Redis")
