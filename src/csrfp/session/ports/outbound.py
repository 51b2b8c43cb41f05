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
"""SessionStore — where session dictionaries live between requests."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """Persistence for session dictionaries keyed by session id.

    The dictionary holds the CSRF token sequence under the token name.  A
    store returns a copy on :meth:`load`; changes only become visible to
    other requests after :meth:`save`.
    """

    async def load(self, session_id: str) -> dict[str, Any] | None:
        """Return the session's data, or ``None`` when unknown or expired."""
        ...

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None: ...

    async def discard(self, session_id: str) -> None: ...
