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
"""TokenStore — the ordered per-session sequence of issued tokens.

Several pages of the same session may be open at once, each holding a
different token.  Every token in the sequence stays valid until a *newer*
one is consumed: a successful match drops everything issued before the
matched token and keeps the match and everything after it.

The sequence is only changed through :meth:`HttpSession.update_attribute`,
so concurrent requests of one session can replay their appends and prunes
onto each other's saved state.
"""

from __future__ import annotations

import secrets
from typing import Any

from csrfp.security.csrf import CSRF_TOKEN_NAME
from csrfp.session.session import Change, HttpSession


def _as_sequence(stored: Any) -> list[str]:
    return list(stored) if isinstance(stored, list) else []


def _appending(token: str) -> Change:
    return lambda stored: [*_as_sequence(stored), token]


def _pruning_before(token: str) -> Change:
    def prune(stored: Any) -> list[str]:
        sequence = _as_sequence(stored)
        # Already pruned past by a request that consumed a newer token.
        if token not in sequence:
            return sequence
        return sequence[sequence.index(token):]

    return prune


class TokenStore:
    """Issues, validates and prunes tokens held in an :class:`HttpSession`.

    Args:
        key: Session attribute holding the sequence.
    """

    def __init__(self, key: str = CSRF_TOKEN_NAME) -> None:
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def tokens(self, session: HttpSession) -> list[str]:
        """Return a copy of the session's sequence, oldest first."""
        return _as_sequence(session.get_attribute(self._key))

    def issue(self, session: HttpSession, token: str) -> None:
        """Append *token* to the session's sequence, creating it if needed."""
        session.update_attribute(self._key, _appending(token))

    def contains(self, session: HttpSession, token: Any) -> bool:
        """Return ``True`` if *token* is in the sequence.  Never prunes."""
        return self._index_of(self.tokens(session), token) is not None

    def validate_and_consume(self, session: HttpSession, token: Any) -> bool:
        """Validate *token* and prune every token issued before it.

        Absent or non-list session state, and non-string tokens, are a
        plain mismatch.  On a mismatch the sequence is left untouched.
        """
        sequence = self.tokens(session)
        index = self._index_of(sequence, token)
        if index is None:
            return False
        if index:
            session.update_attribute(self._key, _pruning_before(sequence[index]))
        return True

    @staticmethod
    def _index_of(sequence: list[str], token: Any) -> int | None:
        if not isinstance(token, str) or not token:
            return None
        presented = token.encode()
        for index, candidate in enumerate(sequence):
            # bytes, since compare_digest rejects non-ASCII str
            if isinstance(candidate, str) and secrets.compare_digest(candidate.encode(), presented):
                return index
        return None
