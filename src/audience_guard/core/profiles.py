# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Audience enforcement profile definitions."""

from enum import Enum
from typing import Any

from beartype import beartype

from .errors import ConfigurationError


class AudienceProfile(str, Enum):
    """Named enforcement strategies selecting which predicate governs acceptance."""

    STRICT_SINGLE = "strict_single"
    ALLOW_ACCOUNT = "allow_account"
    ANY_MATCH = "any_match"
    RESOURCE_OR_AUDIENCE = "resource_or_aud"

    def __str__(self) -> str:
        return self.value

    @classmethod
    @beartype
    def coerce(cls, value: Any) -> "AudienceProfile":
        """Resolve a profile from an enum member, value or name.

        Args:
            value: Profile candidate. ``None`` selects the strict default.

        Returns:
            The matching profile.

        Raises:
            ConfigurationError: If the value names no known profile.
        """
        if value is None:
            return cls.STRICT_SINGLE
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            candidate = value.strip().lstrip(":").lower()
            for profile in cls:
                if candidate in (profile.value, profile.name.lower()):
                    return profile

        raise ConfigurationError(
            f"unknown audience profile {value!r}",
            details={"allowed": [profile.value for profile in cls]},
        )
