# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Error types for audience enforcement.

``ConfigurationError`` is not a ``ValueError``, so pydantic lets it propagate
out of field validators unwrapped.
"""

from typing import Any


class AudienceError(Exception):
    """Base exception for audience enforcement."""

    def __init__(
        self,
        message: str = "audience error",
        code: str = "audience_error",
        http_status: int = 403,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(AudienceError):
    """Raised when the audience policy is misconfigured."""

    def __init__(self, message: str = "invalid audience configuration", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="configuration_error", http_status=500, details=details)


class InsufficientAudienceError(AudienceError):
    """Raised by route dependencies when the token audience is not acceptable."""

    def __init__(self, message: str = "insufficient audience", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="insufficient_audience", http_status=403, details=details)
