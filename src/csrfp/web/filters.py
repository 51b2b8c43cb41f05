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
"""OncePerRequestFilter — WebFilter base with path include/exclude globs."""

from __future__ import annotations

import abc
from collections.abc import Iterable
from fnmatch import fnmatchcase
from typing import Any

from csrfp.web.ports.filter import CallNext


def _matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(fnmatchcase(path, pattern) for pattern in patterns)


class OncePerRequestFilter(abc.ABC):
    """Base class for filters that only see some request paths.

    ``url_patterns`` and ``exclude_patterns`` are ``fnmatch`` globs matched
    against the whole request path.  An empty ``url_patterns`` selects every
    path; ``exclude_patterns`` then removes paths from that selection, e.g.
    a webhook endpoint that authenticates its callers another way.
    """

    url_patterns: list[str] = []
    exclude_patterns: list[str] = []

    def applies_to(self, path: str) -> bool:
        if self.url_patterns and not _matches_any(path, self.url_patterns):
            return False
        return not _matches_any(path, self.exclude_patterns)

    def should_not_filter(self, request: Any) -> bool:
        return not self.applies_to(request.url.path)

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Handle *request*; call ``await call_next(request)`` to continue the chain."""
        ...
