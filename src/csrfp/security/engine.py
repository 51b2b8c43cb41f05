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
"""AuthorizationEngine — the per-request CSRF decision.

For every request the engine:

1. decides whether a token is required (always for POST; for GET only when
   the URL matches the ``verify-get-for`` allowlist);
2. validates the token found in the body (POST) or query (GET) parameters
   against the session's token sequence, pruning older tokens on success;
3. on success issues a fresh token; on failure records the attack and asks
   the :class:`FailureActionDispatcher` for the outcome;
4. unless the outcome stops the request, makes sure the response carries a
   token cookie that the session knows, plus the protection header.

The engine holds no per-request state.  The request and the session are
passed into every call, and the result is a value the web adapter acts on.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from csrfp.security.actions import (
    FailureActionDispatcher,
    Outcome,
    Pass,
    is_terminal,
)
from csrfp.security.allowlist import UrlAllowlist, current_url
from csrfp.security.attack_log import AttackLogger, FileLogSink
from csrfp.security.context import POST, RequestContext
from csrfp.security.csrf import (
    CSRF_TOKEN_NAME,
    PROTECTION_HEADER_NAME,
    PROTECTION_HEADER_VALUE,
    TokenGenerator,
)
from csrfp.security.properties import CsrfpProperties
from csrfp.security.token_store import TokenStore
from csrfp.session.session import HttpSession, session_ref

logger = structlog.get_logger("csrfp.security")


@dataclass(frozen=True)
class TokenCookie:
    """Instruction to set the token cookie on the response."""

    name: str
    value: str
    max_age: int


@dataclass(frozen=True)
class ProtectionResult:
    """Everything the web adapter must apply for one request."""

    outcome: Outcome
    cookie: TokenCookie | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def terminated(self) -> bool:
        return is_terminal(self.outcome)


class AuthorizationEngine:
    """Validates requests against their session's token sequence.

    Args:
        generator: Token source.
        store: Session token sequence access.
        allowlist: GET URLs requiring a token.
        attack_logger: Records failures before they are dispatched.
        dispatcher: Maps failures to outcomes.
        cookie_expiry_time: Max-age of the token cookie, in seconds.
        upstream_protected: Skip all checks and bookkeeping; a lower layer
            already protects the request.
    """

    def __init__(
        self,
        generator: TokenGenerator,
        store: TokenStore,
        allowlist: UrlAllowlist,
        attack_logger: AttackLogger,
        dispatcher: FailureActionDispatcher,
        cookie_expiry_time: int = 1800,
        upstream_protected: bool = False,
        token_name: str = CSRF_TOKEN_NAME,
    ) -> None:
        self._generator = generator
        self._store = store
        self._allowlist = allowlist
        self._attack_logger = attack_logger
        self._dispatcher = dispatcher
        self._cookie_expiry_time = cookie_expiry_time
        self._upstream_protected = upstream_protected
        self._token_name = token_name

    @classmethod
    def from_properties(cls, props: CsrfpProperties) -> AuthorizationEngine:
        return cls(
            generator=TokenGenerator(props.token_length),
            store=TokenStore(),
            allowlist=UrlAllowlist(props.verify_get_for),
            attack_logger=AttackLogger(FileLogSink(props.log_directory)),
            dispatcher=FailureActionDispatcher(
                props.failed_auth_action,
                error_redirection_page=props.error_redirection_page,
                custom_error_message=props.custom_error_message,
            ),
            cookie_expiry_time=props.cookie_expiry_time,
            upstream_protected=props.upstream_protected,
        )

    @property
    def token_name(self) -> str:
        return self._token_name

    @property
    def store(self) -> TokenStore:
        return self._store

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def requires_validation(self, context: RequestContext) -> bool:
        if context.request_type == POST:
            return True
        return self._allowlist.requires_get_validation(current_url(context))

    def authorize(self, context: RequestContext, session: HttpSession) -> tuple[Outcome, TokenCookie | None]:
        """Decide on *context*; returns the outcome and the refresh cookie, if any.

        Raises:
            LogDestinationUnavailableException: Validation failed and the
                attack could not be logged.
        """
        request_type = context.request_type
        if not self.requires_validation(context):
            return Pass(), None

        presented = context.parameters(request_type).get(self._token_name)
        if self._store.validate_and_consume(session, presented):
            return Pass(), self.refresh(session)

        self._attack_logger.record(context, request_type)
        outcome = self._dispatcher.dispatch_for(context, request_type)
        logger.info(
            "csrf_validation_failed",
            request_type=request_type,
            path=context.path,
            outcome=type(outcome).__name__,
        )
        return outcome, None

    def refresh(self, session: HttpSession) -> TokenCookie:
        """Issue a new token to *session* and return the cookie to set."""
        token = self._generator.generate()
        self._store.issue(session, token)
        logger.debug("csrf_token_refreshed", session=session_ref(session.id))
        return TokenCookie(self._token_name, token, self._cookie_expiry_time)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def protect(self, context: RequestContext, session: HttpSession) -> ProtectionResult:
        """Run the full protection pass for one request."""
        if self._upstream_protected:
            return ProtectionResult(Pass())

        outcome, cookie = self.authorize(context, session)
        if is_terminal(outcome):
            return ProtectionResult(outcome)

        if cookie is None and not self._store.contains(session, context.cookies.get(self._token_name)):
            cookie = self.refresh(session)

        return ProtectionResult(
            outcome,
            cookie=cookie,
            headers={PROTECTION_HEADER_NAME: PROTECTION_HEADER_VALUE},
        )
