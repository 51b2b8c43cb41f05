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
"""Tests for WebFilterChainMiddleware."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from csrfp.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfp.web.filters import OncePerRequestFilter
from csrfp.web.ports.filter import HIGHEST_PRECEDENCE, WebFilter, get_order, order


class _Recording(OncePerRequestFilter):
    """Appends its name to ``X-Chain`` on the way out."""

    name = "?"

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        seen = response.headers.get("X-Chain")
        response.headers["X-Chain"] = f"{seen},{self.name}" if seen else self.name
        return response


@order(HIGHEST_PRECEDENCE + 10)
class Outer(_Recording):
    name = "outer"


@order(HIGHEST_PRECEDENCE + 20)
class Inner(_Recording):
    name = "inner"


@order(5)
class FormsOnly(_Recording):
    name = "forms"
    url_patterns = ["/forms/*"]
    exclude_patterns = ["/forms/webhook"]


@order(10)
class RejectWithoutToken(OncePerRequestFilter):
    async def do_filter(self, request, call_next):
        if "X-Token" not in request.headers:
            return PlainTextResponse("denied", status_code=403)
        return await call_next(request)


class ClearQuery(OncePerRequestFilter):
    async def do_filter(self, request, call_next):
        scope = dict(request.scope)
        scope["query_string"] = b""
        return await call_next(Request(scope, request.receive))


class IssueCookie(OncePerRequestFilter):
    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.set_cookie("csrfp_token", "abc123")
        return response


async def _text(request: Request) -> PlainTextResponse:
    return PlainTextResponse("page")


async def _echo_query(request: Request) -> JSONResponse:
    return JSONResponse(dict(request.query_params))


async def _stream(request: Request) -> StreamingResponse:
    async def parts():
        yield b"<html>"
        yield b"</html>"

    return StreamingResponse(parts(), media_type="text/html", headers={"X-App": "yes"})


def _client(*filters) -> TestClient:
    app = Starlette(
        routes=[
            Route("/page", _text),
            Route("/forms/login", _text),
            Route("/forms/webhook", _text),
            Route("/query", _echo_query),
            Route("/stream", _stream),
        ],
        middleware=[Middleware(WebFilterChainMiddleware, filters=list(filters))],
    )
    return TestClient(app)


class TestOrdering:
    def test_lower_order_wraps_higher(self):
        resp = _client(Inner(), Outer()).get("/page")
        assert resp.text == "page"
        assert resp.headers["X-Chain"] == "inner,outer"

    def test_filters_property_is_sorted(self):
        middleware = WebFilterChainMiddleware(_text, filters=[RejectWithoutToken(), Inner(), Outer()])
        assert [type(f) for f in middleware.filters] == [Outer, Inner, RejectWithoutToken]

    def test_unordered_filter_defaults_to_zero(self):
        assert get_order(ClearQuery) == 0
        assert get_order(Inner()) == HIGHEST_PRECEDENCE + 20

    def test_filters_satisfy_protocol(self):
        assert isinstance(Outer(), WebFilter)


class TestPathSelection:
    @pytest.mark.parametrize(
        ("path", "applied"),
        [("/forms/login", True), ("/page", False), ("/forms/webhook", False)],
    )
    def test_url_and_exclude_patterns(self, path, applied):
        resp = _client(FormsOnly()).get(path)
        assert resp.status_code == 200
        assert ("X-Chain" in resp.headers) is applied


class TestShortCircuit:
    def test_filter_can_answer_without_the_app(self):
        client = _client(Outer(), RejectWithoutToken())
        denied = client.get("/page")
        assert denied.status_code == 403
        assert denied.text == "denied"
        assert denied.headers["X-Chain"] == "outer"

        allowed = client.get("/page", headers={"X-Token": "t"})
        assert allowed.text == "page"


class TestDownstreamResponse:
    def test_app_sees_replacement_request(self):
        resp = _client(ClearQuery()).get("/query?csrfp_token=abc&x=1")
        assert resp.json() == {}

    def test_streamed_body_and_headers_are_kept(self):
        resp = _client(IssueCookie()).get("/stream")
        assert resp.text == "<html></html>"
        assert resp.headers["X-App"] == "yes"
        assert resp.headers["content-type"].startswith("text/html")
        assert resp.cookies["csrfp_token"] == "abc123"

    def test_empty_chain_passes_through(self):
        resp = _client().get("/page")
        assert resp.status_code == 200
        assert resp.text == "page"


class TestNonHttpScopes:
    @pytest.mark.asyncio
    async def test_lifespan_bypasses_filters(self):
        seen = []

        async def app(scope, receive, send):
            seen.append(scope["type"])

        middleware = WebFilterChainMiddleware(app, filters=[RejectWithoutToken()])
        await middleware({"type": "lifespan"}, None, None)
        assert seen == ["lifespan"]
