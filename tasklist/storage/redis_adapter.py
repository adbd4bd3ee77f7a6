from __future__ import annotations

import os
from typing import Any, cast

import redis

from tasklist.errors import PersistenceError

from .interface import KeyValueStorage


class RedisStorage(KeyValueStorage):
    """Redis-backed storage.

    Data structures:
    - One string per slot: key ``{prefix}:{key}`` holding the raw value
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        key_prefix: str = "tasklist",
        client: Any | None = None,
    ) -> None:
        url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        if client is not None:
            self._redis = client
        else:
            # decode_responses=True returns str everywhere for easier JSON handling;
            # invalid UTF-8 is replaced rather than raised on GET
            self._redis = redis.Redis.from_url(
                url, decode_responses=True, encoding_errors="replace"
            )
        self._prefix = key_prefix.rstrip(":")

    def get_client(self) -> Any:
        return self._redis

    def _slot_key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def get_item(self, key: str) -> str | None:
        try:
            raw = cast(str | bytes | None, self._redis.get(self._slot_key(key)))
        except redis.exceptions.RedisError as exc:
            raise PersistenceError(f"redis GET failed: {exc}") from exc
        if raw is None:
            return None
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return raw

    def set_item(self, key: str, value: str) -> None:
        try:
            self._redis.set(self._slot_key(key), value)
        except redis.exceptions.RedisError as exc:
            raise PersistenceError(f"redis SET failed: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            self._redis.delete(self._slot_key(key))
        except redis.exceptions.RedisError as exc:
            raise PersistenceError(f"redis DEL failed: {exc}") from exc


__all__ = ["RedisStorage"]
