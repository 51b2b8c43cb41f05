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
"""HttpSession — the per-request view of one session's attributes."""

from __future__ import annotations

import copy
import hashlib
from collections.abc import Callable
from typing import Any

#: Maps an attribute's current value (``None`` if unset) to its new value.
Change = Callable[[Any], Any]


def session_ref(session_id: str) -> str:
    """Short digest identifying a session in logs without revealing its id."""
    return hashlib.sha256(session_id.encode()).hexdigest()[:12]


class HttpSession:
    """Attribute bag for one session, with a journal of this request's changes.

    Each request works on its own copy of the stored data.  Changes go
    through :meth:`update_attribute` (or :meth:`set_attribute`) and are
    recorded, so they can be replayed with :meth:`replay` onto whatever
    another request of the same session saved in the meantime.  Mutating a
    value taken from :meth:`get_attribute` in place is not recorded.
    """

    __slots__ = ("id", "is_new", "_attributes", "_changes", "_modified", "_invalidated")

    def __init__(
        self,
        session_id: str,
        attributes: dict[str, Any] | None = None,
        *,
        is_new: bool = False,
    ) -> None:
        self.id = session_id
        self.is_new = is_new
        self._attributes: dict[str, Any] = attributes if attributes is not None else {}
        self._changes: list[tuple[str, Change]] = []
        # A new session has to reach the store even if nothing is set on it.
        self._modified = is_new
        self._invalidated = False

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def invalidated(self) -> bool:
        return self._invalidated

    def get_attribute(self, name: str) -> Any | None:
        return self._attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self.update_attribute(name, lambda _current: value)

    def update_attribute(self, name: str, change: Change) -> None:
        """Apply *change* to attribute *name* now and record it for :meth:`replay`.

        *change* must not mutate its argument.
        """
        self._attributes[name] = change(self._attributes.get(name))
        self._changes.append((name, change))
        self._modified = True

    def replay(self, attributes: dict[str, Any]) -> dict[str, Any]:
        """This request's changes, in order, applied to a copy of *attributes*."""
        merged = copy.deepcopy(attributes)
        for name, change in self._changes:
            merged[name] = change(merged.get(name))
        return merged

    def invalidate(self) -> None:
        """Drop the session; the store entry and cookie go at response time."""
        self._invalidated = True

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the attributes as this request sees them."""
        return copy.deepcopy(self._attributes)

    def __contains__(self, name: object) -> bool:
        return name in self._attributes

    def __repr__(self) -> str:
        flags = "new" if self.is_new else "loaded"
        if self._invalidated:
            flags += ",invalidated"
        return f"<HttpSession {self.id} {flags} {sorted(self._attributes)}>"
