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
"""WebFilterChainMiddleware — runs the WebFilter chain as one ASGI middleware."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from csrfp.web.ports.filter import CallNext, WebFilter, get_order


class _BufferedSend:
    """ASGI ``send`` that records the downstream response instead of sending it."""

    def __init__(self) -> None:
        self.status = 200
        self.headers: list[tuple[bytes, bytes]] = []
        self.body = bytearray()

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
            self.headers = list(message.get("headers", ()))
        elif message["type"] == "http.response.body":
            self.body += message.get("body", b"")

    def to_response(self) -> Response:
        response = Response(bytes(self.body), status_code=self.status)
        response.raw_headers[:] = self.headers
        return response


class WebFilterChainMiddleware:
    """Pure ASGI middleware for an ordered list of :class:`WebFilter` objects.

    Filters are sorted once by :func:`~csrfp.web.ports.filter.get_order`.
    For each HTTP request the chain is built innermost first: the
    downstream application sits at the end, buffered into a Starlette
    ``Response`` so filters can add cookies and headers to it.  The app is
    driven with the scope and ``receive`` of whatever request reaches it,
    so a filter that swaps in a sanitized request is honoured.

    Non-HTTP scopes (lifespan, websocket) bypass the chain.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = sorted(filters, key=get_order)

    @property
    def filters(self) -> list[WebFilter]:
        return list(self._filters)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        call_next: CallNext = self._endpoint
        for web_filter in reversed(self._filters):
            call_next = _link(web_filter, call_next)

        response = await call_next(Request(scope, receive, send))
        await response(scope, receive, send)

    async def _endpoint(self, request: Request) -> Response:
        buffered = _BufferedSend()
        await self.app(request.scope, request.receive, buffered)
        return buffered.to_response()


def _link(web_filter: WebFilter, call_next: CallNext) -> CallNext:
    async def step(request: Any) -> Any:
        if web_filter.should_not_filter(request):
            return await call_next(request)
        return await web_filter.do_filter(request, call_next)

    return step
