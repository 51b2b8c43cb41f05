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
"""Attack logging — one append-only record per failed validation.

A detected attack is never dropped silently: if the sink cannot be used,
:class:`~csrfp.kernel.exceptions.LogDestinationUnavailableException`
propagates and the request is aborted.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog

from csrfp.kernel.exceptions import LogDestinationUnavailableException
from csrfp.security.context import RequestContext

logger = structlog.get_logger("csrfp.security.attack")


@dataclass(frozen=True)
class AttackRecord:
    """Structured detail of one failed validation."""

    timestamp: int
    host: str
    request_uri: str
    request_type: str
    parameters: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_context(cls, context: RequestContext, request_type: str) -> AttackRecord:
        return cls(
            timestamp=int(time.time()),
            host=context.host,
            request_uri=context.request_uri,
            request_type=request_type,
            parameters=dict(context.parameters(request_type)),
            cookies=dict(context.cookies),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)


@runtime_checkable
class LogSink(Protocol):
    """Destination for attack records."""

    def ensure_available(self) -> None:
        """Raise ``LogDestinationUnavailableException`` if unusable."""
        ...

    def write(self, record: AttackRecord) -> None: ...


class FileLogSink:
    """Appends JSON lines to ``<directory>/csrfp-<YYYY-MM-DD>.log``.

    The directory must already exist; it is never created on demand.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, record: AttackRecord) -> Path:
        day = datetime.fromtimestamp(record.timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
        return self._directory / f"csrfp-{day}.log"

    def ensure_available(self) -> None:
        if not self._directory.is_dir():
            raise LogDestinationUnavailableException(
                f"CSRF attack log directory not found: {self._directory}",
                code="LOG_DIRECTORY_NOT_FOUND",
                context={"directory": str(self._directory)},
            )

    def write(self, record: AttackRecord) -> None:
        path = self.path_for(record)
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(record.to_json() + "\n")
        except OSError as exc:
            raise LogDestinationUnavailableException(
                f"Unable to write CSRF attack log: {path}",
                code="LOG_WRITE_FAILED",
                context={"path": str(path)},
            ) from exc


class AttackLogger:
    """Records failed validations to a :class:`LogSink`."""

    def __init__(self, sink: LogSink) -> None:
        self._sink = sink

    @property
    def sink(self) -> LogSink:
        return self._sink

    def record(self, context: RequestContext, request_type: str) -> AttackRecord:
        """Write one record for a failed *context*.

        Raises:
            LogDestinationUnavailableException: The sink is missing or the
                write failed.
        """
        self._sink.ensure_available()
        record = AttackRecord.from_context(context, request_type)
        self._sink.write(record)
        logger.warning(
            "csrf_attack_detected",
            host=record.host,
            request_uri=record.request_uri,
            request_type=record.request_type,
        )
        return record
