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
"""Failure actions — what a request that fails CSRF validation turns into.

The dispatcher never stops request processing itself.  It returns an
:data:`Outcome` value and the web adapter acts on it:

==========================  ================================================
``Pass``                    continue normally
``Terminate(status, body)`` respond with *body* and *status*, stop
``Redirect(location)``      redirect to *location*, stop
``Continue(context, ...)`` continue with the parameters of *context*
==========================  ================================================
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from csrfp.security.context import GET, POST, RequestContext

FORBIDDEN_BODY = "<h2>403 Access Forbidden by CSRFProtector!</h2>"
INTERNAL_ERROR_BODY = "<h2>500 Internal Server Error!</h2>"


class FailedAuthAction(enum.IntEnum):
    """Action codes accepted in ``failed-auth-action``."""

    FORBIDDEN = 0
    STRIP_PARAMETERS = 1
    REDIRECT = 2
    CUSTOM_MESSAGE = 3
    INTERNAL_ERROR = 4


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Pass:
    """The request is authorized."""


@dataclass(frozen=True)
class Terminate:
    """Stop processing and answer with *body*."""

    status_code: int
    body: str


@dataclass(frozen=True)
class Redirect:
    """Stop processing and redirect to *location*."""

    location: str


@dataclass(frozen=True)
class Continue:
    """Keep processing with a sanitized request."""

    context: RequestContext
    request_type: str


Outcome = Union[Pass, Terminate, Redirect, Continue]


def is_terminal(outcome: Outcome) -> bool:
    """Whether *outcome* ends request processing."""
    return isinstance(outcome, (Terminate, Redirect))


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class FailureActionDispatcher:
    """Maps a configured action code to an :data:`Outcome`.

    Args:
        failed_auth_action: Action code per request type (``GET``/``POST``).
            A missing request type means code 0.
        error_redirection_page: Target of action 2.
        custom_error_message: Body of action 3.
    """

    def __init__(
        self,
        failed_auth_action: Mapping[str, Any] | None = None,
        error_redirection_page: str = "",
        custom_error_message: str = "",
    ) -> None:
        self._actions = dict(failed_auth_action or {GET: 0, POST: 0})
        self._error_redirection_page = error_redirection_page
        self._custom_error_message = custom_error_message

    def action_for(self, request_type: str) -> int:
        """Return the action code configured for *request_type*."""
        return action_code(self._actions.get(request_type, FailedAuthAction.FORBIDDEN))

    def dispatch(self, code: int, context: RequestContext, request_type: str) -> Outcome:
        """Turn action *code* into an outcome for a failed *context*.

        Unknown codes strip the parameters, like code 1.  Code 2 redirects
        and stops; it does not also emit the custom message of code 3.
        """
        if code == FailedAuthAction.FORBIDDEN:
            return Terminate(403, FORBIDDEN_BODY)
        if code == FailedAuthAction.REDIRECT:
            return Redirect(self._error_redirection_page)
        if code == FailedAuthAction.CUSTOM_MESSAGE:
            return Terminate(200, self._custom_error_message)
        if code == FailedAuthAction.INTERNAL_ERROR:
            return Terminate(500, INTERNAL_ERROR_BODY)
        return Continue(context.without_parameters(request_type), request_type)

    def dispatch_for(self, context: RequestContext, request_type: str) -> Outcome:
        """Dispatch the action configured for *request_type*."""
        return self.dispatch(self.action_for(request_type), context, request_type)


def action_code(value: Any) -> int:
    """Numeric action code for a configured value.

    Integers, integral floats and digit strings (``"2"``, e.g. from an env
    var) are codes; anything else is -1, handled like STRIP_PARAMETERS.
    """
    if isinstance(value, bool):
        return -1
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return -1
