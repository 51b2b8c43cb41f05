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
"""CSRF token constants and generation.

Tokens are opaque strings cut from a 128-character high-entropy raw value.
The raw value is the SHA-512 hex digest of CSPRNG bytes; when SHA-512 is not
available a legacy path builds it from random ``[a-z0-9]`` characters.
Both paths draw from :mod:`secrets`.
"""

from __future__ import annotations

import hashlib
import secrets
import string
from typing import Any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CSRF_TOKEN_NAME: str = "csrfp_token"
"""Session key, request parameter and cookie name carrying the token."""

PROTECTION_HEADER_NAME: str = "X-CSRF-Protection"
"""Response header marking a response as protected."""

PROTECTION_HEADER_VALUE: str = "OWASP CSRFP 1.0.0"

DEFAULT_TOKEN_LENGTH: int = 10

FALLBACK_TOKEN_LENGTH: int = 32
"""Effective length when the configured length resolves to 0 or less."""

MAX_TOKEN_LENGTH: int = 128
"""Length of the raw value tokens are truncated from."""

_LEGACY_ALPHABET = string.ascii_lowercase + string.digits


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------
def resolve_token_length(value: Any) -> int:
    """Resolve a configured token length to an effective one.

    Non-numeric values count as 0.  Values of 0 or less become
    :data:`FALLBACK_TOKEN_LENGTH`; values above :data:`MAX_TOKEN_LENGTH`
    are clamped to it.
    """
    try:
        length = int(value)
    except (TypeError, ValueError):
        length = 0

    if length <= 0:
        return FALLBACK_TOKEN_LENGTH
    return min(length, MAX_TOKEN_LENGTH)


def _sha512_available() -> bool:
    return "sha512" in hashlib.algorithms_available


def _raw_token() -> str:
    if _sha512_available():
        return hashlib.sha512(secrets.token_bytes(64)).hexdigest()
    return _legacy_raw_token()


def _legacy_raw_token() -> str:
    """Build a raw value without a hash primitive (compatibility path)."""
    return "".join(secrets.choice(_LEGACY_ALPHABET) for _ in range(MAX_TOKEN_LENGTH))


def generate_auth_token(length: Any = DEFAULT_TOKEN_LENGTH) -> str:
    """Generate a CSRF token of the effective length for *length*.

    Returns:
        A lowercase alphanumeric string of ``resolve_token_length(length)``
        characters.
    """
    return _raw_token()[: resolve_token_length(length)]


class TokenGenerator:
    """Produces tokens of a fixed effective length.

    Args:
        length: The configured token length; resolved once with
            :func:`resolve_token_length`.
    """

    def __init__(self, length: Any = DEFAULT_TOKEN_LENGTH) -> None:
        self._length = resolve_token_length(length)

    @property
    def length(self) -> int:
        return self._length

    def generate(self) -> str:
        return generate_auth_token(self._length)
