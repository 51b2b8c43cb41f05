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
"""CsrfpProperties — validated, read-only protector configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from csrfp.core.config import Config, config_properties
from csrfp.kernel.exceptions import IncompleteConfigurationException
from csrfp.security.actions import FailedAuthAction, action_code
from csrfp.security.context import GET, POST
from csrfp.security.csrf import DEFAULT_TOKEN_LENGTH


def _default_actions() -> dict[str, int]:
    return {GET: int(FailedAuthAction.FORBIDDEN), POST: int(FailedAuthAction.FORBIDDEN)}


@config_properties(prefix="csrfp")
class CsrfpProperties(BaseModel):
    """Bound from the ``csrfp`` section; keys use kebab-case in YAML.

    ``token_length`` is kept as given and resolved by the token generator,
    so ``0`` or a non-numeric value means 32 characters.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    token_length: int | str = Field(default=DEFAULT_TOKEN_LENGTH, alias="token-length")
    failed_auth_action: dict[str, Any] = Field(default_factory=_default_actions, alias="failed-auth-action")
    verify_get_for: list[str] = Field(default_factory=list, alias="verify-get-for")
    cookie_expiry_time: int = Field(default=1800, ge=0, alias="cookie-expiry-time")
    log_directory: str = Field(default="logs", min_length=1, alias="log-directory")
    error_redirection_page: str = Field(default="", alias="error-redirection-page")
    custom_error_message: str = Field(default="", alias="custom-error-message")
    upstream_protected: bool = Field(default=False, alias="upstream-protected")

    @field_validator("failed_auth_action", mode="before")
    @classmethod
    def _upper_request_types(cls, value: object) -> object:
        if isinstance(value, dict):
            return {str(k).upper(): v for k, v in value.items()}
        return value

    @field_validator("verify_get_for", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return [] if value is None else value

    def validate_complete(self) -> CsrfpProperties:
        """Check cross-field requirements of the configured actions.

        Raises:
            IncompleteConfigurationException: A request type has no action,
                or an action needs a page/message that is not set.
        """
        missing = [t for t in (GET, POST) if t not in self.failed_auth_action]
        if missing:
            raise IncompleteConfigurationException(
                f"failed-auth-action is missing request types: {', '.join(missing)}",
                code="CONFIG_INCOMPLETE",
                context={"missing": missing},
            )

        codes = {action_code(value) for value in self.failed_auth_action.values()}
        if FailedAuthAction.REDIRECT in codes and not self.error_redirection_page:
            raise IncompleteConfigurationException(
                "error-redirection-page is required when a failed-auth-action is 2",
                code="CONFIG_INCOMPLETE",
                context={"field": "error-redirection-page"},
            )
        if FailedAuthAction.CUSTOM_MESSAGE in codes and not self.custom_error_message:
            raise IncompleteConfigurationException(
                "custom-error-message is required when a failed-auth-action is 3",
                code="CONFIG_INCOMPLETE",
                context={"field": "custom-error-message"},
            )
        return self

    @classmethod
    def from_config(cls, config: Config) -> CsrfpProperties:
        """Bind, apply the upstream-protection env override and validate.

        ``CSRFP_UPSTREAM_PROTECTED`` marks requests as already protected by
        a lower layer (e.g. a web-server module).
        """
        props = config.bind(cls)
        upstream = config.get("csrfp.upstream-protected")
        if isinstance(upstream, str):
            props = props.model_copy(update={"upstream_protected": upstream.lower() in ("true", "1", "yes")})
        return props.validate_complete()
