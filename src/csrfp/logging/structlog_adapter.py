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
"""StructlogAdapter — LoggingPort backed by structlog over stdlib logging.

csrfp emits events rather than sentences (``csrf_attack_detected``,
``csrf_validation_failed``, ``csrf_token_refreshed`` ...), with the request
details as key/value pairs.  ``csrfp.logging.format: json`` turns each event
into one JSON line for log shippers; ``console`` is for development.

Configuration::

    csrfp:
      logging:
        format: json          # or console
        stream: stderr        # or stdout
        level:
          root: INFO
          csrfp.security: DEBUG
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from csrfp.core.config import Config
from csrfp.kernel.exceptions import ConfigurationException

_STREAMS = ("stdout", "stderr")


def _renderer(fmt: str) -> list[structlog.types.Processor]:
    if fmt == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    if fmt == "console":
        return [structlog.dev.ConsoleRenderer()]
    raise ConfigurationException(
        f"Unknown csrfp.logging.format '{fmt}' (expected 'json' or 'console')",
        code="LOGGING_FORMAT_UNKNOWN",
    )


def _level(name: str) -> int:
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else logging.INFO


class StructlogAdapter:
    """Default :class:`~csrfp.logging.port.LoggingPort`."""

    def __init__(self) -> None:
        self._root_level = "INFO"
        self._format = "console"
        self._stream = "stdout"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        """Read ``csrfp.logging`` and (re)configure structlog and the root logger.

        Raises:
            ConfigurationException: Unknown format or stream.
        """
        levels = {key: str(value).upper() for key, value in config.get_section("csrfp.logging.level").items()}
        self._root_level = levels.pop("root", "INFO")
        self._module_levels = levels
        self._format = str(config.get("csrfp.logging.format", "console")).lower()
        self._stream = str(config.get("csrfp.logging.stream", "stdout")).lower()
        if self._stream not in _STREAMS:
            raise ConfigurationException(
                f"Unknown csrfp.logging.stream '{self._stream}' (expected 'stdout' or 'stderr')",
                code="LOGGING_STREAM_UNKNOWN",
            )

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.UnicodeDecoder(),
                *_renderer(self._format),
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=getattr(sys, self._stream),
            level=_level(self._root_level),
            force=True,
        )
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_level(level))
