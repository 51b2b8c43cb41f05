"""csrfp — CSRF protection for server-rendered Starlette applications.

Tokens are issued per session, kept server-side as an ordered sequence and
mirrored in a cookie; forms post them back as ``csrfp_token``.
"""

from csrfp.core.config import Config
from csrfp.kernel.exceptions import (
    ConfigurationException,
    CsrfpException,
    LogDestinationUnavailableException,
)
from csrfp.security.auto_configuration import configure_logging, csrfp_middleware
from csrfp.security.engine import AuthorizationEngine
from csrfp.security.properties import CsrfpProperties
from csrfp.web.adapters.starlette import CsrfProtectorFilter, WebFilterChainMiddleware

__version__ = "1.0.0"

__all__ = [
    "AuthorizationEngine",
    "Config",
    "ConfigurationException",
    "CsrfProtectorFilter",
    "CsrfpException",
    "CsrfpProperties",
    "LogDestinationUnavailableException",
    "WebFilterChainMiddleware",
    "configure_logging",
    "csrfp_middleware",
]
