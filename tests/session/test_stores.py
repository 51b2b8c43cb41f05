# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for the in-memory and Redis session stores."""

from __future__ import annotations

import json

import pytest

from csrfp.session.adapters.memory import InMemorySessionStore
from csrfp.session.adapters.redis import RedisSessionStore
from csrfp.session.ports.outbound import SessionStore


class FakeRedis:
    """Minimal in-memory stub matching the redis.asyncio.Redis interface."""

    def __init__(self) -> None:
        self._store: dict[str, bytes] = {}
        self.ttls: dict[str, int | None] = {}

    async def get(self, key: str) -> bytes | None:
        return self._store.get(key)

    async def set(self, key: str, value: bytes, ex: int | None = None) -> None:
        self._store[key] = value
        self.ttls[key] = ex

    async def delete(self, *keys: str) -> int:
        count = 0
        for k in keys:
            if k in self._store:
                del self._store[k]
                count += 1
        return count

    async def exists(self, *keys: str) -> int:
        return sum(1 for k in keys if k in self._store)


class TestInMemorySessionStore:
    def test_protocol_compliance(self) -> None:
        assert isinstance(InMemorySessionStore(), SessionStore)

    @pytest.mark.asyncio
    async def test_save_and_load(self) -> None:
        store = InMemorySessionStore()
        await store.save("s1", {"csrfp_token": ["t1", "t2"]}, ttl=60)
        assert await store.load("s1") == {"csrfp_token": ["t1", "t2"]}
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_load_missing(self) -> None:
        store = InMemorySessionStore()
        assert await store.load("nope") is None

    @pytest.mark.asyncio
    async def test_data_is_copied(self) -> None:
        store = InMemorySessionStore()
        data = {"csrfp_token": ["t1"]}
        await store.save("s1", data, ttl=60)

        data["csrfp_token"].append("t2")
        loaded = await store.load("s1")
        loaded["csrfp_token"].append("t3")

        assert await store.load("s1") == {"csrfp_token": ["t1"]}

    @pytest.mark.asyncio
    async def test_expired_entry_is_evicted(self) -> None:
        store = InMemorySessionStore()
        await store.save("s1", {"a": 1}, ttl=-1)
        assert await store.load("s1") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_save_sweeps_expired_entries(self) -> None:
        store = InMemorySessionStore()
        await store.save("old", {}, ttl=-1)
        await store.save("new", {}, ttl=60)
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_discard(self) -> None:
        store = InMemorySessionStore()
        await store.save("s1", {"a": 1}, ttl=60)
        await store.discard("s1")
        await store.discard("s1")
        assert await store.load("s1") is None


class TestRedisSessionStore:
    def test_protocol_compliance(self) -> None:
        assert isinstance(RedisSessionStore(FakeRedis()), SessionStore)

    @pytest.mark.asyncio
    async def test_save_and_load(self) -> None:
        client = FakeRedis()
        store = RedisSessionStore(client)
        await store.save("s1", {"csrfp_token": ["t1"]}, ttl=300)

        assert await store.load("s1") == {"csrfp_token": ["t1"]}
        assert client.ttls["csrfp:session:s1"] == 300

    @pytest.mark.asyncio
    async def test_custom_prefix(self) -> None:
        client = FakeRedis()
        store = RedisSessionStore(client, key_prefix="app:")
        await store.save("s1", {}, ttl=10)
        assert await client.exists("app:s1") == 1

    @pytest.mark.asyncio
    async def test_load_missing(self) -> None:
        assert await RedisSessionStore(FakeRedis()).load("nope") is None

    @pytest.mark.asyncio
    async def test_corrupt_payload_is_missing(self) -> None:
        client = FakeRedis()
        await client.set("csrfp:session:s1", b"{not json")
        assert await RedisSessionStore(client).load("s1") is None

    @pytest.mark.asyncio
    async def test_non_object_payload_is_missing(self) -> None:
        client = FakeRedis()
        await client.set("csrfp:session:s1", json.dumps(["t1"]).encode())
        assert await RedisSessionStore(client).load("s1") is None

    @pytest.mark.asyncio
    async def test_discard(self) -> None:
        client = FakeRedis()
        store = RedisSessionStore(client)
        await store.save("s1", {"a": 1}, ttl=10)
        await store.discard("s1")
        assert await client.exists("csrfp:session:s1") == 0
        assert await store.load("s1") is None
