from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from tasklist.storage.interface import KeyValueStorage
from tasklist.store.task_store import DEFAULT_STORAGE_KEY

STORAGE_BACKENDS = ("file", "memory", "redis")


@dataclass(slots=True)
class AppConfig:
    storage_backend: str
    data_dir: str
    storage_key: str
    redis_url: str
    redis_prefix: str
    log_level: str | None


def _read_backend(raw: str | None) -> str:
    value = (raw or "").strip().lower() or "file"
    if value not in STORAGE_BACKENDS:
        # Unknown values fall back to the local file slot
        return "file"
    return value


def load_config(env: dict[str, str] | None = None) -> AppConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    return AppConfig(
        storage_backend=_read_backend(e.get("TASKLIST_STORAGE")),
        data_dir=os.path.expanduser(e.get("TASKLIST_DATA_DIR") or "~/.tasklist"),
        storage_key=(e.get("TASKLIST_STORAGE_KEY") or "").strip() or DEFAULT_STORAGE_KEY,
        redis_url=e.get("REDIS_URL") or "redis://localhost:6379/0",
        redis_prefix=(e.get("TASKLIST_REDIS_PREFIX") or "").strip() or "tasklist",
        log_level=(e.get("LOG_LEVEL") or "").strip() or None,
    )


def build_storage(config: AppConfig) -> KeyValueStorage:
    if config.storage_backend == "memory":
        from tasklist.storage.memory import InMemoryStorage

        return InMemoryStorage()
    if config.storage_backend == "redis":
        # Defer import so file-only users never connect to Redis
        from tasklist.storage.redis_adapter import RedisStorage

        return RedisStorage(config.redis_url, key_prefix=config.redis_prefix)
    from tasklist.storage.file_store import FileStorage

    return FileStorage(config.data_dir)


__all__ = ["STORAGE_BACKENDS", "AppConfig", "build_storage", "load_config"]
