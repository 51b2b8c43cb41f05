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
"""Tests for building stores, filters and middleware from Config."""

from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

from csrfp.core.config import Config
from csrfp.kernel.exceptions import ConfigurationException
from csrfp.security.auto_configuration import (
    csrf_protector_filter,
    csrfp_middleware,
    session_filter,
    session_store,
)
from csrfp.session.adapters.memory import InMemorySessionStore
from csrfp.session.filter import SessionFilter
from csrfp.web.adapters.starlette.csrf_filter import CsrfProtectorFilter
from csrfp.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfp.web.ports.filter import get_order


class TestSessionStore:
    def test_memory_by_default(self) -> None:
        assert isinstance(session_store(Config({})), InMemorySessionStore)

    def test_unknown_store(self) -> None:
        with pytest.raises(ConfigurationException) as exc_info:
            session_store(Config({"csrfp": {"session": {"store": "memcached"}}}))
        assert exc_info.value.code == "SESSION_STORE_UNKNOWN"

    def test_redis_without_package(self, monkeypatch) -> None:
        monkeypatch.setattr(importlib.util, "find_spec", lambda name: None)
        with pytest.raises(ConfigurationException) as exc_info:
            session_store(Config({"csrfp": {"session": {"store": "redis"}}}))
        assert exc_info.value.code == "SESSION_STORE_UNAVAILABLE"

    def test_redis_store(self) -> None:
        pytest.importorskip("redis")
        from csrfp.session.adapters.redis import RedisSessionStore

        store = session_store(Config({"csrfp": {"session": {"store": "REDIS"}}}))
        assert isinstance(store, RedisSessionStore)


class TestFilters:
    def test_session_filter_settings(self) -> None:
        config = Config({"csrfp": {"session": {"cookie-name": "SID", "ttl": "60", "secure": "true"}}})
        store = InMemorySessionStore()
        f = session_filter(config, store)
        assert isinstance(f, SessionFilter)
        assert f._store is store
        assert f._cookie_name == "SID"
        assert f._ttl == 60
        assert f._secure is True

    def test_csrf_filter_binds_properties(self, tmp_path: Path) -> None:
        config = Config({"csrfp": {"log-directory": str(tmp_path), "secure-cookie": True}})
        f = csrf_protector_filter(config)
        assert isinstance(f, CsrfProtectorFilter)
        assert f._secure_cookie is True
        assert f.engine.token_name == "csrfp_token"

    def test_exclude_paths_from_list_or_env(self, tmp_path: Path, monkeypatch) -> None:
        config = Config({"csrfp": {"log-directory": str(tmp_path), "exclude-paths": ["/hooks/*"]}})
        assert csrf_protector_filter(config).exclude_patterns == ["/hooks/*"]

        monkeypatch.setenv("CSRFP_EXCLUDE_PATHS", "/hooks/*, /health")
        assert csrf_protector_filter(config).exclude_patterns == ["/hooks/*", "/health"]

    def test_csrf_filter_rejects_incomplete_config(self) -> None:
        config = Config({"csrfp": {"failed-auth-action": {"GET": 2, "POST": 0}}})
        with pytest.raises(ConfigurationException):
            csrf_protector_filter(config)

    def test_session_runs_before_csrf(self) -> None:
        assert get_order(SessionFilter) < get_order(CsrfProtectorFilter)


class TestMiddleware:
    def test_middleware_wraps_both_filters(self, tmp_path: Path) -> None:
        middleware = csrfp_middleware(Config({"csrfp": {"log-directory": str(tmp_path)}}))
        assert middleware.cls is WebFilterChainMiddleware
        filters = middleware.kwargs["filters"]
        assert [type(f) for f in filters] == [SessionFilter, CsrfProtectorFilter]
