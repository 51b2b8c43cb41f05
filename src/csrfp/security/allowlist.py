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
"""UrlAllowlist — glob patterns naming URLs whose GET requests need a token.

GET is unprotected unless its URL matches one of the configured patterns.
Patterns are matched against ``scheme://host/path`` anywhere in the URL, so
``/admin/*`` matches ``https://example.com/admin/delete``.  Only ``*`` is
special (any substring); every other character is literal.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

_FORWARDED_PROTO_HEADER = "x-forwarded-proto"


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a ``*`` glob into an unanchored regular expression."""
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")))


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == name:
                return candidate
    return value


def current_url(context: Any) -> str:
    """Build ``scheme://host/path`` for a request context.

    The scheme comes from ``X-Forwarded-Proto`` when present, else from the
    TLS flag, else defaults to ``http``.
    """
    forwarded = _header(context.headers, _FORWARDED_PROTO_HEADER)
    if forwarded:
        scheme = forwarded.split(",")[0].strip().lower()
    elif context.is_secure:
        scheme = "https"
    else:
        scheme = "http"
    return f"{scheme}://{context.host}{context.path}"


class UrlAllowlist:
    """Pre-compiled set of GET-protection patterns.

    Args:
        patterns: Glob patterns; order does not affect the result.
    """

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self._patterns = tuple(patterns)
        self._compiled = tuple(compile_glob(p) for p in self._patterns)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def requires_get_validation(self, url: str) -> bool:
        """Return ``True`` if *url* matches any pattern."""
        return any(regex.search(url) for regex in self._compiled)


def requires_get_validation(url: str, patterns: Iterable[str]) -> bool:
    """Stateless form of :meth:`UrlAllowlist.requires_get_validation`."""
    return UrlAllowlist(patterns).requires_get_validation(url)
