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
"""Tests for FailureActionDispatcher and outcome values."""

from __future__ import annotations

import pytest

from csrfp.security.actions import (
    FORBIDDEN_BODY,
    INTERNAL_ERROR_BODY,
    Continue,
    FailedAuthAction,
    FailureActionDispatcher,
    action_code,
    Pass,
    Redirect,
    Terminate,
    is_terminal,
)
from csrfp.security.context import RequestContext

_CTX = RequestContext(
    method="POST",
    query_params={"q": "1"},
    body_params={"amount": "100", "csrfp_token": "bad"},
)


def _dispatcher(**kwargs) -> FailureActionDispatcher:
    return FailureActionDispatcher(
        {"GET": 0, "POST": 0},
        error_redirection_page=kwargs.get("page", "/csrf-error"),
        custom_error_message=kwargs.get("message", "<p>Request rejected</p>"),
    )


class TestDispatch:
    def test_code_0_forbidden(self) -> None:
        outcome = _dispatcher().dispatch(0, _CTX, "POST")
        assert outcome == Terminate(403, FORBIDDEN_BODY)

    def test_code_1_post_clears_body_only(self) -> None:
        outcome = _dispatcher().dispatch(1, _CTX, "POST")
        assert isinstance(outcome, Continue)
        assert outcome.request_type == "POST"
        assert outcome.context.body_params == {}
        assert outcome.context.query_params == {"q": "1"}

    def test_code_1_get_clears_query_only(self) -> None:
        outcome = _dispatcher().dispatch(1, _CTX, "GET")
        assert isinstance(outcome, Continue)
        assert outcome.context.query_params == {}
        assert outcome.context.body_params == _CTX.body_params

    def test_code_2_redirects_and_stops(self) -> None:
        outcome = _dispatcher(page="/oops").dispatch(2, _CTX, "POST")
        assert outcome == Redirect("/oops")
        assert is_terminal(outcome)

    def test_code_3_custom_message(self) -> None:
        outcome = _dispatcher(message="go away").dispatch(3, _CTX, "GET")
        assert outcome == Terminate(200, "go away")

    def test_code_4_internal_error(self) -> None:
        outcome = _dispatcher().dispatch(4, _CTX, "GET")
        assert outcome == Terminate(500, INTERNAL_ERROR_BODY)

    @pytest.mark.parametrize("code", [5, 42, -1])
    def test_unknown_codes_behave_like_1(self, code: int) -> None:
        outcome = _dispatcher().dispatch(code, _CTX, "POST")
        assert isinstance(outcome, Continue)
        assert outcome.context.body_params == {}


class TestActionFor:
    def test_configured_codes(self) -> None:
        dispatcher = FailureActionDispatcher({"GET": 1, "POST": 4})
        assert dispatcher.action_for("GET") == 1
        assert dispatcher.action_for("POST") == 4

    def test_unset_request_type_defaults_to_0(self) -> None:
        dispatcher = FailureActionDispatcher({"POST": 2})
        assert dispatcher.action_for("GET") == FailedAuthAction.FORBIDDEN

    def test_non_numeric_code_is_unknown(self) -> None:
        dispatcher = FailureActionDispatcher({"GET": "x"})  # type: ignore[dict-item]
        outcome = dispatcher.dispatch_for(_CTX, "GET")
        assert isinstance(outcome, Continue)

    @pytest.mark.parametrize(
        ("value", "code"),
        [(2, 2), ("3", 3), (" 4 ", 4), (0.0, 0), (1.5, -1), (True, -1), ("strip", -1), (None, -1), ([2], -1)],
    )
    def test_action_code(self, value, code) -> None:
        assert action_code(value) == code

    def test_dispatch_for_uses_configured_code(self) -> None:
        dispatcher = FailureActionDispatcher({"GET": 4, "POST": 0})
        assert dispatcher.dispatch_for(_CTX, "GET") == Terminate(500, INTERNAL_ERROR_BODY)


class TestTerminal:
    def test_terminal_outcomes(self) -> None:
        assert is_terminal(Terminate(403, "x"))
        assert is_terminal(Redirect("/"))
        assert not is_terminal(Pass())
        assert not is_terminal(Continue(_CTX, "GET"))
