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
"""SessionFilter — binds an HttpSession to each request through a cookie."""

from __future__ import annotations

import asyncio
import secrets
import weakref
from typing import Any

import structlog

from csrfp.session.ports.outbound import SessionStore
from csrfp.session.session import HttpSession
from csrfp.web.filters import OncePerRequestFilter
from csrfp.web.ports.filter import HIGHEST_PRECEDENCE, CallNext, order

logger = structlog.get_logger("csrfp.session")

DEFAULT_COOKIE_NAME = "CSRFP_SESSION"
DEFAULT_TTL = 1800


@order(HIGHEST_PRECEDENCE + 150)
class SessionFilter(OncePerRequestFilter):
    """Puts the caller's session on ``request.state.session``.

    The session id travels in an HttpOnly, ``SameSite=Lax`` cookie.  An
    unknown or expired id is replaced by a fresh session.  After the
    downstream handler returns, a modified session is saved (refreshing its
    TTL) and an invalidated one is discarded together with its cookie.

    Requests of one session run concurrently, each on its own copy.  Saving
    reloads the stored data and replays the request's recorded changes on
    top of it, under a lock per session id, so tokens issued by overlapping
    requests all survive.  The lock is per process; with several workers on
    Redis, overlapping saves of one session can still overwrite each other.

    Ordered ahead of the CSRF filter, which needs the session to hold the
    token sequence.
    """

    def __init__(
        self,
        store: SessionStore,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        ttl: int = DEFAULT_TTL,
        secure: bool = False,
    ) -> None:
        self._store = store
        self._cookie_name = cookie_name
        self._ttl = ttl
        self._secure = secure
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session = await self._open(request.cookies.get(self._cookie_name))
        request.state.session = session
        try:
            response = await call_next(request)
        finally:
            await self._close(session)

        if session.invalidated:
            response.delete_cookie(self._cookie_name)
        elif session.is_new:
            response.set_cookie(
                self._cookie_name,
                session.id,
                max_age=self._ttl,
                secure=self._secure,
                httponly=True,
                samesite="lax",
            )
        return response

    async def _open(self, session_id: str | None) -> HttpSession:
        if session_id:
            attributes = await self._store.load(session_id)
            if attributes is not None:
                return HttpSession(session_id, attributes)
            logger.debug("session_not_found")
        return HttpSession(secrets.token_urlsafe(32), is_new=True)

    async def _close(self, session: HttpSession) -> None:
        if session.invalidated:
            if not session.is_new:
                await self._store.discard(session.id)
            return
        if not session.modified:
            return
        if session.is_new:
            await self._store.save(session.id, session.snapshot(), self._ttl)
            return
        async with self._lock_for(session.id):
            stored = await self._store.load(session.id)
            data = session.replay(stored) if stored is not None else session.snapshot()
            await self._store.save(session.id, data, self._ttl)

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock
