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
"""Wiring — builds the session store, filters and middleware from Config.

Usage::

    config = Config.from_file("csrfp.yaml")
    configure_logging(config)
    app = Starlette(routes=routes, middleware=[csrfp_middleware(config)])
"""

from __future__ import annotations

import importlib.util

import structlog
from starlette.middleware import Middleware

from csrfp.core.config import Config
from csrfp.kernel.exceptions import ConfigurationException
from csrfp.logging.port import LoggingPort
from csrfp.logging.structlog_adapter import StructlogAdapter
from csrfp.security.engine import AuthorizationEngine
from csrfp.security.properties import CsrfpProperties
from csrfp.session.adapters.memory import InMemorySessionStore
from csrfp.session.filter import DEFAULT_COOKIE_NAME, DEFAULT_TTL, SessionFilter
from csrfp.session.ports.outbound import SessionStore
from csrfp.web.adapters.starlette.csrf_filter import CsrfProtectorFilter
from csrfp.web.adapters.starlette.filter_chain import WebFilterChainMiddleware

logger = structlog.get_logger("csrfp.config")


def configure_logging(config: Config) -> LoggingPort:
    """Configure structlog from the ``csrfp.logging`` section."""
    adapter = StructlogAdapter()
    adapter.configure(config)
    return adapter


def session_store(config: Config) -> SessionStore:
    """Create the session store named by ``csrfp.session.store``."""
    store_type = str(config.get("csrfp.session.store", "memory")).lower()

    if store_type == "redis":
        if importlib.util.find_spec("redis") is None:
            raise ConfigurationException(
                "csrfp.session.store is 'redis' but the redis package is not installed",
                code="SESSION_STORE_UNAVAILABLE",
            )
        import redis.asyncio as aioredis

        from csrfp.session.adapters.redis import RedisSessionStore

        url = str(config.get("csrfp.session.redis.url", "redis://localhost:6379/0"))
        client = aioredis.from_url(url)  # type: ignore[no-untyped-call,unused-ignore]
        return RedisSessionStore(client=client)

    if store_type != "memory":
        raise ConfigurationException(
            f"Unknown csrfp.session.store '{store_type}'",
            code="SESSION_STORE_UNKNOWN",
        )
    return InMemorySessionStore()


def session_filter(config: Config, store: SessionStore | None = None) -> SessionFilter:
    return SessionFilter(
        store=store if store is not None else session_store(config),
        cookie_name=str(config.get("csrfp.session.cookie-name", DEFAULT_COOKIE_NAME)),
        ttl=int(config.get("csrfp.session.ttl", DEFAULT_TTL)),
        secure=_as_bool(config.get("csrfp.session.secure", False)),
    )


def csrf_protector_filter(config: Config) -> CsrfProtectorFilter:
    """Bind :class:`CsrfpProperties` and build the CSRF filter.

    Raises:
        ConfigurationException: The ``csrfp`` section is invalid or
            incomplete.
    """
    props = CsrfpProperties.from_config(config)
    logger.info(
        "csrfp_configured",
        token_length=props.token_length,
        failed_auth_action=props.failed_auth_action,
        verify_get_for=props.verify_get_for,
        upstream_protected=props.upstream_protected,
    )
    return CsrfProtectorFilter(
        AuthorizationEngine.from_properties(props),
        secure_cookie=_as_bool(config.get("csrfp.secure-cookie", False)),
        exclude_paths=_as_list(config.get("csrfp.exclude-paths")),
    )


def csrfp_middleware(config: Config, store: SessionStore | None = None) -> Middleware:
    """Return a Starlette ``Middleware`` running sessions and CSRF protection."""
    return Middleware(
        WebFilterChainMiddleware,
        filters=[session_filter(config, store), csrf_protector_filter(config)],
    )


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes")
    return bool(value)


def _as_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part) for part in value]  # type: ignore[attr-defined]
