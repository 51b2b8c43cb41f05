"""csrfp Logging — hexagonal logging port and structlog adapter."""

from csrfp.logging.port import LoggingPort
from csrfp.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
