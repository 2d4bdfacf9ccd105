# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Read-only accessor over verified token claims.

All defensive coercion of the upstream claims payload happens here. Callers
get a plain ``dict`` (possibly empty) and typed getters; nothing in this
module raises on malformed input.
"""

from collections.abc import Mapping
from typing import Any

from beartype import beartype

from .logging_utils import get_logger

AUDIENCE_CLAIM = "aud"
RESOURCE_ACCESS_CLAIM = "resource_access"
ROLES_KEY = "roles"

logger = get_logger(__name__)


class ClaimsView:
    """Typed view over a normalized claims mapping."""

    __slots__ = ("_claims",)

    def __init__(self, claims: dict[str, Any]) -> None:
        self._claims = claims

    @classmethod
    @beartype
    def of(cls, raw: Any) -> "ClaimsView":
        """Build a view from any upstream payload."""
        return cls(cls.normalize(raw))

    @staticmethod
    @beartype
    def normalize(raw: Any) -> dict[str, Any]:
        """Coerce an upstream claims payload into a dict.

        ``None``, strings, sequences and anything else that is not map-like
        become ``{}``. Coercion errors are logged at debug level and absorbed.
        """
        if raw is None:
            return {}
        if isinstance(raw, dict):
            return raw

        try:
            if isinstance(raw, Mapping):
                return dict(raw)
            if hasattr(raw, "keys") and hasattr(raw, "__getitem__"):
                coerced = dict(raw)
                if isinstance(coerced, dict):
                    return coerced
        except Exception as exc:
            logger.debug(
                "Discarding uncoercible claims payload of type %s: %s",
                type(raw).__name__,
                exc,
            )
        return {}

    @property
    def claims(self) -> dict[str, Any]:
        """The normalized claims mapping."""
        return self._claims

    @property
    @beartype
    def audiences(self) -> list[str]:
        """The ``aud`` claim as a list of strings."""
        value = self._claims.get(AUDIENCE_CLAIM)
        if value is None:
            return []
        if isinstance(value, (list, tuple, set, frozenset)):
            return [str(item) for item in value]
        return [str(value)]

    @beartype
    def roles_for(self, client: str | None) -> list[str]:
        """Return ``resource_access[client].roles`` or ``[]`` when absent."""
        if not client:
            return []

        access = self._claims.get(RESOURCE_ACCESS_CLAIM)
        if not isinstance(access, Mapping):
            return []
        grant = access.get(client)
        if not isinstance(grant, Mapping):
            return []
        roles = grant.get(ROLES_KEY)
        if not isinstance(roles, (list, tuple)):
            return []
        return [str(role) for role in roles]
