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
"""WebFilter — the contract shared by the session and CSRF filters.

Requests and responses are typed ``Any`` here; only the Starlette adapter
knows their concrete types.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

_C = TypeVar("_C", bound=type)

#: ``await call_next(request)`` runs the rest of the chain and returns its response.
CallNext = Callable[[Any], Awaitable[Any]]

HIGHEST_PRECEDENCE = -(2**31)

_ORDER_ATTR = "__csrfp_order__"


@runtime_checkable
class WebFilter(Protocol):
    """A step in the request chain.

    A filter may answer the request itself (the CSRF filter's 403 or
    redirect), or pass it on with ``call_next``, possibly as a different
    request object whose query string or body has been cleared.
    """

    async def do_filter(self, request: Any, call_next: CallNext) -> Any: ...

    def should_not_filter(self, request: Any) -> bool:
        """``True`` makes the chain skip straight past this filter."""
        ...


def order(value: int) -> Callable[[_C], _C]:
    """Class decorator placing a filter in the chain; lower values run first."""

    def apply(cls: _C) -> _C:
        setattr(cls, _ORDER_ATTR, value)
        return cls

    return apply


def get_order(obj: Any) -> int:
    """Position of a filter class or instance; unordered filters sit at 0."""
    return int(getattr(obj, _ORDER_ATTR, 0))
