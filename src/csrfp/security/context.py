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
"""Request context consumed by the CSRF engine."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

GET = "GET"
POST = "POST"


@dataclass(frozen=True)
class RequestContext:
    """Read-only view of one HTTP request.

    Built by the web adapter from the framework request and passed
    explicitly into every engine call.  Header names are lowercase.
    """

    method: str = GET
    host: str = ""
    path: str = "/"
    request_uri: str = "/"
    is_secure: bool = False
    query_params: dict[str, str] = field(default_factory=dict)
    body_params: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def request_type(self) -> str:
        """``POST`` for POST requests, ``GET`` for every other method."""
        return POST if self.method.upper() == POST else GET

    def parameters(self, request_type: str) -> dict[str, str]:
        """Return the parameter set a token is read from for *request_type*."""
        return self.body_params if request_type == POST else self.query_params

    def without_parameters(self, request_type: str) -> RequestContext:
        """Return a copy whose parameter set for *request_type* is empty."""
        if request_type == POST:
            return dataclasses.replace(self, body_params={})
        return dataclasses.replace(self, query_params={})
