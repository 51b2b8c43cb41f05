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
"""Redis session store, for deployments with more than one worker."""

from __future__ import annotations

import json
from typing import Any

import structlog

from csrfp.session.session import session_ref

logger = structlog.get_logger("csrfp.session")

DEFAULT_KEY_PREFIX = "csrfp:session:"


class RedisSessionStore:
    """:class:`~csrfp.session.ports.outbound.SessionStore` on ``redis.asyncio``.

    Each session is one JSON string value under ``<prefix><session id>``
    with the session TTL as its expiry, so Redis evicts idle sessions and
    their token sequences on its own.
    """

    def __init__(self, client: Any, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self._client = client
        self._key_prefix = key_prefix

    async def load(self, session_id: str) -> dict[str, Any] | None:
        raw = await self._client.get(self._key_prefix + session_id)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            data = None
        if isinstance(data, dict):
            return data
        # Unreadable entries are abandoned; the caller starts a new session.
        logger.warning("session_payload_unreadable", session=session_ref(session_id))
        return None

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        payload = json.dumps(data, separators=(",", ":"))
        await self._client.set(self._key_prefix + session_id, payload.encode("utf-8"), ex=ttl)

    async def discard(self, session_id: str) -> None:
        await self._client.delete(self._key_prefix + session_id)
