# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Audience profile predicates."""

from collections import Counter
from typing import Any

from beartype import beartype

from .claims import ClaimsView
from .config import PolicyConfiguration, coerce_audiences
from .profiles import AudienceProfile

ACCOUNT_AUDIENCE = "account"


class AudienceChecker:
    """Decide whether claims satisfy an audience profile.

    All methods are pure and safe to call concurrently.
    """

    @staticmethod
    @beartype
    def normalize(claims: Any) -> dict[str, Any]:
        """Coerce a claims payload into a dict, ``{}`` when unusable."""
        return ClaimsView.normalize(claims)

    @staticmethod
    @beartype
    def audiences_of(claims: Any) -> list[str]:
        """Return the ``aud`` claim as a list of strings."""
        return ClaimsView.of(claims).audiences

    @staticmethod
    @beartype
    def strict_single(claims: Any, required: list[str]) -> bool:
        """Audiences must equal the required list exactly, ignoring order."""
        if not required:
            return False
        audiences = AudienceChecker.audiences_of(claims)
        return Counter(audiences) == Counter(required)

    @staticmethod
    @beartype
    def allow_account(claims: Any, required: list[str]) -> bool:
        """Like strict_single, but tolerate an extra ``account`` audience."""
        if not required:
            return False
        audiences = AudienceChecker.audiences_of(claims)
        extras = [aud for aud in audiences if aud not in required and aud != ACCOUNT_AUDIENCE]
        missing = [aud for aud in required if aud not in audiences]
        return not extras and not missing

    @staticmethod
    @beartype
    def any_match(claims: Any, required: list[str]) -> bool:
        """At least one required audience must be present."""
        if not required:
            return False
        audiences = AudienceChecker.audiences_of(claims)
        return not set(audiences).isdisjoint(required)

    @staticmethod
    @beartype
    def resource_or_audience(claims: Any, client: str | None, required: list[str]) -> bool:
        """Pass on client roles, otherwise fall back to allow_account."""
        if ClaimsView.of(claims).roles_for(client):
            return True
        return AudienceChecker.allow_account(claims, required)

    @staticmethod
    @beartype
    def evaluate(claims: Any, config: PolicyConfiguration) -> bool:
        """Return whether the claims satisfy the configured profile.

        Args:
            claims: Verified claims payload (anything non map-like counts as empty)
            config: Policy configuration

        Returns:
            True if the request should be admitted

        Raises:
            ConfigurationError: If ``config.profile`` is not a known profile
        """
        profile = AudienceProfile.coerce(config.profile)
        normalized = ClaimsView.normalize(claims)
        required = coerce_audiences(config.required_audiences)

        if profile is AudienceProfile.STRICT_SINGLE:
            return AudienceChecker.strict_single(normalized, required)
        if profile is AudienceProfile.ALLOW_ACCOUNT:
            return AudienceChecker.allow_account(normalized, required)
        if profile is AudienceProfile.ANY_MATCH:
            return AudienceChecker.any_match(normalized, required)
        return AudienceChecker.resource_or_audience(
            normalized, _client_of(config), required
        )

    @staticmethod
    @beartype
    def suggest(claims: Any, config: PolicyConfiguration) -> AudienceProfile:
        """Name the first profile that would have admitted these claims.

        Diagnostic only; checked in the order strict_single, allow_account,
        any_match, resource_or_aud, defaulting to strict_single.
        """
        normalized = ClaimsView.normalize(claims)
        required = coerce_audiences(config.required_audiences)

        if AudienceChecker.strict_single(normalized, required):
            return AudienceProfile.STRICT_SINGLE
        if AudienceChecker.allow_account(normalized, required):
            return AudienceProfile.ALLOW_ACCOUNT
        if AudienceChecker.any_match(normalized, required):
            return AudienceProfile.ANY_MATCH
        if AudienceChecker.resource_or_audience(normalized, _client_of(config), required):
            return AudienceProfile.RESOURCE_OR_AUDIENCE
        return AudienceProfile.STRICT_SINGLE


def _client_of(config: PolicyConfiguration) -> str | None:
    client = config.resource_client
    return None if client is None else str(client)
