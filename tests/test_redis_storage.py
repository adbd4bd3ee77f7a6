from __future__ import annotations

import uuid

import pytest
import redis

from tasklist.errors import PersistenceError
from tasklist.storage.redis_adapter import RedisStorage
from tasklist.store.task_store import TaskStore


@pytest.fixture()
def key_prefix() -> str:
    return f"testtasklist:{uuid.uuid4()}"


def test_slot_round_trip(redis_url: str, key_prefix: str) -> None:
    rs = RedisStorage(redis_url, key_prefix=key_prefix)
    assert rs.get_item("slot") is None

    rs.set_item("slot", '["x"]')
    assert rs.get_item("slot") == '["x"]'
    assert rs.get_client().get(f"{key_prefix}:slot") == '["x"]'

    rs.remove_item("slot")
    assert rs.get_item("slot") is None


def test_store_persists_across_instances(redis_url: str, key_prefix: str) -> None:
    s1 = TaskStore(RedisStorage(redis_url, key_prefix=key_prefix), confirm=lambda _t: True)
    t = s1.create("Write tests", "high")

    # Recreate store to simulate process restart
    s2 = TaskStore(RedisStorage(redis_url, key_prefix=key_prefix), confirm=lambda _t: True)
    loaded = s2.load()
    assert [x.id for x in loaded] == [t.id]
    assert loaded[0].title == "Write tests"


class _BrokenClient:
    def get(self, key: str) -> str | None:
        raise redis.exceptions.ConnectionError("down")

    def set(self, key: str, value: str) -> None:
        raise redis.exceptions.ConnectionError("down")

    def delete(self, key: str) -> int:
        raise redis.exceptions.ConnectionError("down")


def test_redis_errors_become_persistence_errors() -> None:
    rs = RedisStorage(client=_BrokenClient())
    with pytest.raises(PersistenceError):
        rs.get_item("slot")
    with pytest.raises(PersistenceError):
        rs.set_item("slot", "[]")
    with pytest.raises(PersistenceError):
        rs.remove_item("slot")


def test_bytes_values_are_decoded() -> None:
    class _BytesClient:
        def get(self, key: str) -> bytes:
            return b"[]"

    rs = RedisStorage(client=_BytesClient(), key_prefix="p:")
    assert rs.get_item("slot") == "[]"


def test_default_client_replaces_undecodable_bytes() -> None:
    rs = RedisStorage("redis://localhost:6379/0")
    kwargs = rs.get_client().connection_pool.connection_kwargs
    assert kwargs["decode_responses"] is True
    assert kwargs["encoding_errors"] == "replace"


def test_undecodable_slot_loads_empty(redis_url: str, key_prefix: str) -> None:
    rs = RedisStorage(redis_url, key_prefix=key_prefix)
    raw = redis.Redis.from_url(redis_url)
    raw.set(f"{key_prefix}:slot", b'[{"title": "\xff\xfe"}]')
    try:
        assert TaskStore(rs, confirm=lambda _t: True, key="slot").load() == []
    finally:
        raw.delete(f"{key_prefix}:slot")
