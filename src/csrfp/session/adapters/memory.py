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
"""Process-local session store."""

from __future__ import annotations

import asyncio
import copy
import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class _Entry:
    data: dict[str, Any]
    expires_at: float = field(default=0.0)

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemorySessionStore:
    """Dictionary-backed :class:`~csrfp.session.ports.outbound.SessionStore`.

    Data is deep-copied on the way in and out, so two requests of the same
    session only see each other's token sequence once one has saved.
    Expired entries are dropped lazily on access and swept on every save.
    Only correct for a single worker process.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def load(self, session_id: str) -> dict[str, Any] | None:
        async with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            if entry.expired(time.monotonic()):
                del self._entries[session_id]
                return None
            return copy.deepcopy(entry.data)

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        now = time.monotonic()
        async with self._lock:
            self._sweep(now)
            self._entries[session_id] = _Entry(copy.deepcopy(data), now + ttl)

    async def discard(self, session_id: str) -> None:
        async with self._lock:
            self._entries.pop(session_id, None)

    def _sweep(self, now: float) -> None:
        for session_id in [sid for sid, entry in self._entries.items() if entry.expired(now)]:
            del self._entries[session_id]
