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
"""csrfp exception hierarchy.

Everything csrfp raises derives from :class:`CsrfpException` and carries a
machine-readable ``code`` (``CONFIG_INVALID``, ``LOG_DIRECTORY_NOT_FOUND``
...) plus a ``context`` dict for whoever logs it.  Configuration errors
surface at startup; infrastructure errors at request time.
"""

from __future__ import annotations

from typing import Any


class CsrfpException(Exception):
    def __init__(self, message: str, code: str | None = None, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict[str, Any] = dict(context) if context else {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, code={self.code!r})"


class ConfigurationException(CsrfpException):
    """Configuration is missing, malformed or fails validation."""


class IncompleteConfigurationException(ConfigurationException):
    """A failure action needs a setting (e.g. the redirect page) that is unset."""


class InfrastructureException(CsrfpException):
    """A collaborator outside csrfp failed: log sink, session store, filesystem."""


class LogDestinationUnavailableException(InfrastructureException):
    """An attack has to be recorded but the log directory is unusable."""
