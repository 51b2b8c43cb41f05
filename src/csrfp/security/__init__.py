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
"""csrfp Security — session token CSRF validation core.

Import the wiring helpers from :mod:`csrfp.security.auto_configuration`.
"""

from csrfp.security.actions import (
    Continue,
    FailedAuthAction,
    FailureActionDispatcher,
    Outcome,
    Pass,
    Redirect,
    Terminate,
)
from csrfp.security.allowlist import UrlAllowlist, current_url, requires_get_validation
from csrfp.security.attack_log import AttackLogger, AttackRecord, FileLogSink, LogSink
from csrfp.security.context import RequestContext
from csrfp.security.csrf import CSRF_TOKEN_NAME, TokenGenerator, generate_auth_token
from csrfp.security.engine import AuthorizationEngine, ProtectionResult, TokenCookie
from csrfp.security.properties import CsrfpProperties
from csrfp.security.token_store import TokenStore

__all__ = [
    "CSRF_TOKEN_NAME",
    "AttackLogger",
    "AttackRecord",
    "AuthorizationEngine",
    "Continue",
    "CsrfpProperties",
    "FailedAuthAction",
    "FailureActionDispatcher",
    "FileLogSink",
    "LogSink",
    "Outcome",
    "Pass",
    "ProtectionResult",
    "Redirect",
    "RequestContext",
    "Terminate",
    "TokenCookie",
    "TokenGenerator",
    "TokenStore",
    "UrlAllowlist",
    "current_url",
    "generate_auth_token",
    "requires_get_validation",
]
