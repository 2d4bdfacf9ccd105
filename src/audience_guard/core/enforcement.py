# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Request-time audience decision flow.

``AudienceEnforcer`` owns a private, validated copy of the policy and turns a
request context into an ``AudienceDecision``. It knows nothing about ASGI;
the Starlette middleware and the FastAPI dependency are thin adapters on top.
"""

from collections.abc import Mapping
from typing import Any, Final

from attrs import frozen
from beartype import beartype

from .checker import AudienceChecker
from .claims import ClaimsView
from .config import PolicyConfiguration, get_config, validation_deferred
from .logging_utils import get_logger
from .profiles import AudienceProfile

INSUFFICIENT_AUDIENCE: Final = "insufficient_audience"
DENIAL_STATUS: Final = 403
LOGGER_CONTEXT_KEYS: Final = ("verikloak.logger", "audience_guard.logger", "logger")

fallback_logger = get_logger("enforcement")


@frozen
class AudienceDecision:
    """Outcome of evaluating one request."""

    allowed: bool
    profile: AudienceProfile
    audiences: tuple[str, ...]
    suggestion: AudienceProfile | None = None

    @property
    def message(self) -> str:
        """Human-readable denial message."""
        return f"Audience not acceptable for profile {self.profile.value}"

    @beartype
    def to_error_payload(self) -> dict[str, str]:
        """Body of the structured denial."""
        return {"error": INSUFFICIENT_AUDIENCE, "message": self.message}


class AudienceEnforcer:
    """Evaluate requests against a private copy of the audience policy."""

    def __init__(
        self,
        config: PolicyConfiguration | None = None,
        *,
        overrides: Mapping[str, Any] | None = None,
        validate: bool | None = None,
    ) -> None:
        """Initialize the enforcer.

        Args:
            config: Base policy; the process-wide default when omitted. It is
                copied, never held by reference.
            overrides: Field overrides applied to the copy
            validate: Force validation on or off. By default validation runs
                unless a bootstrap phase has deferred it.

        Raises:
            ConfigurationError: On unknown override keys or an invalid policy
        """
        policy = get_config() if config is None else config.copy()
        policy.apply_overrides(overrides or {})

        should_validate = (not validation_deferred()) if validate is None else validate
        if should_validate:
            policy.validate()

        self._config = policy

    @property
    def config(self) -> PolicyConfiguration:
        """A copy of the policy this enforcer applies."""
        return self._config.copy()

    @beartype
    def is_bypassed(self, path: str) -> bool:
        """Check whether the path skips enforcement entirely."""
        return self._config.matches_bypass(path)

    @beartype
    def extract_claims(self, context: Mapping[str, Any], state: Any = None) -> dict[str, Any]:
        """Read claims from the request context.

        The context mapping is consulted first, then the attribute of the same
        name on ``state``. Missing or non map-like values yield ``{}``.
        """
        key = self._config.claims_context_key
        raw = context.get(key)
        if raw is None and state is not None:
            raw = getattr(state, key, None)
        return ClaimsView.normalize(raw)

    @beartype
    def decide(self, claims: Any) -> AudienceDecision:
        """Evaluate claims and, on denial, attach a suggested profile."""
        config = self._config
        view = ClaimsView.of(claims)
        allowed = AudienceChecker.evaluate(view.claims, config)

        suggestion = None
        if not allowed and config.suggest_on_failure:
            suggestion = AudienceChecker.suggest(view.claims, config)

        return AudienceDecision(
            allowed=allowed,
            profile=AudienceProfile.coerce(config.profile),
            audiences=tuple(view.audiences),
            suggestion=suggestion,
        )

    @staticmethod
    @beartype
    def resolve_logger(context: Mapping[str, Any], state: Any = None) -> Any:
        """Find a request-scoped logger in the context or on ``state``."""
        for key in LOGGER_CONTEXT_KEYS:
            candidate = context.get(key)
            if candidate is None and state is not None:
                candidate = getattr(state, key, None)
            if candidate is not None:
                return candidate
        return None

    @beartype
    def log_denial(self, decision: AudienceDecision, logger: Any = None) -> None:
        """Emit the diagnostic line for a denied request.

        Does nothing unless the decision carries a suggestion.
        """
        if decision.suggestion is None:
            return

        message = (
            f"[audience_guard] {INSUFFICIENT_AUDIENCE}; "
            f"suggestion profile={decision.suggestion.value} "
            f"aud={list(decision.audiences)!r}"
        )
        writer = getattr(logger, "warning", None) or getattr(logger, "warn", None)
        if callable(writer):
            writer(message)
        else:
            fallback_logger.warning(message)
