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
"""CsrfProtectorFilter — session-backed token CSRF protection for Starlette.

The token travels three ways:

* **Session** — the server-side sequence of issued tokens (authoritative).
* **Cookie** ``csrfp_token`` — the latest token, readable by page scripts.
* **Parameter** ``csrfp_token`` — sent back in the form body (POST) or the
  query string (protected GET).

A request is authorized when the parameter value is in the session's
sequence; the cookie alone never authorizes.  The filter translates the
engine's outcome into the HTTP response:

* ``Terminate`` — an HTML response with the configured status and body.
* ``Redirect`` — a ``302`` to the configured error page.
* ``Continue`` — the application runs with an empty query string (GET) or
  an empty body (POST).
* ``Pass`` — the application runs unchanged.

Requires :class:`~csrfp.session.filter.SessionFilter` earlier in the chain.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, cast

from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import HTMLResponse, RedirectResponse, Response
from starlette.types import Message

from csrfp.kernel.exceptions import ConfigurationException
from csrfp.security.actions import Continue, Redirect, Terminate
from csrfp.security.context import POST, RequestContext
from csrfp.security.engine import AuthorizationEngine, ProtectionResult
from csrfp.web.filters import OncePerRequestFilter
from csrfp.web.ports.filter import CallNext, order

_FORM_CONTENT_TYPES = frozenset({"application/x-www-form-urlencoded", "multipart/form-data"})


def _is_form(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() in _FORM_CONTENT_TYPES


def _form_value(value: Any) -> str:
    if isinstance(value, UploadFile):
        return value.filename or ""
    return str(value)


async def build_request_context(request: Request) -> RequestContext:
    """Read a Starlette request into a :class:`RequestContext`.

    Form bodies are read (and cached on *request*) for POST requests only.
    """
    body_params: dict[str, str] = {}
    if request.method.upper() == POST and _is_form(request):
        await request.body()
        form = await request.form()
        body_params = {key: _form_value(value) for key, value in form.items()}
        await form.close()

    query = request.url.query
    return RequestContext(
        method=request.method,
        host=request.headers.get("host") or (request.url.hostname or ""),
        path=request.url.path,
        request_uri=request.url.path + (f"?{query}" if query else ""),
        is_secure=request.url.scheme in ("https", "wss"),
        query_params=dict(request.query_params),
        body_params=body_params,
        cookies=dict(request.cookies),
        headers={key.lower(): value for key, value in request.headers.items()},
    )


def _with_body(request: Request, body: bytes) -> Request:
    """Return a request whose receive channel replays *body* once."""
    sent = False

    async def receive() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return cast(Message, await request.receive())

    return Request(request.scope, receive)


def strip_parameters(request: Request, request_type: str) -> Request:
    """Return a request with the GET or POST parameter set removed."""
    if request_type == POST:
        headers = [(k, v) for k, v in request.scope["headers"] if k.lower() != b"content-length"]
        headers.append((b"content-length", b"0"))
        return _with_body(Request(dict(request.scope, headers=headers), request.receive), b"")
    return Request(dict(request.scope, query_string=b""), request.receive)


@order(-50)
class CsrfProtectorFilter(OncePerRequestFilter):
    """Runs the :class:`AuthorizationEngine` for every request.

    Args:
        engine: The configured engine.
        secure_cookie: Set the ``Secure`` flag on the token cookie.
        exclude_paths: Path globs the protector never sees.
    """

    def __init__(
        self,
        engine: AuthorizationEngine,
        secure_cookie: bool = False,
        exclude_paths: Iterable[str] = (),
    ) -> None:
        self._engine = engine
        self._secure_cookie = secure_cookie
        self.exclude_patterns = list(exclude_paths)

    @property
    def engine(self) -> AuthorizationEngine:
        return self._engine

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session = getattr(request.state, "session", None)
        if session is None:
            raise ConfigurationException(
                "CsrfProtectorFilter requires a session; install SessionFilter before it",
                code="SESSION_MISSING",
            )

        context = await build_request_context(request)
        result = self._engine.protect(context, session)
        outcome = result.outcome

        if isinstance(outcome, Terminate):
            return HTMLResponse(outcome.body, status_code=outcome.status_code)
        if isinstance(outcome, Redirect):
            return RedirectResponse(outcome.location, status_code=302)

        if isinstance(outcome, Continue):
            request = strip_parameters(request, outcome.request_type)
        elif context.request_type == POST and _is_form(request):
            request = _with_body(request, await request.body())

        response = await call_next(request)
        self._apply(result, response)
        return response

    def _apply(self, result: ProtectionResult, response: Response) -> None:
        if result.cookie is not None:
            response.set_cookie(
                key=result.cookie.name,
                value=result.cookie.value,
                max_age=result.cookie.max_age,
                path="/",
                samesite="lax",
                secure=self._secure_cookie,
                httponly=False,  # page scripts read the token
            )
        for name, value in result.headers.items():
            response.headers[name] = value
