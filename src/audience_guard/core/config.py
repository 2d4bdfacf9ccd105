# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Audience policy configuration.

Two layers live here:

* ``PolicyConfiguration`` - the validated policy value each enforcer owns a
  private copy of.
* ``AudienceSettings`` plus the process-wide default - environment-driven
  defaults that ``configure()`` replaces copy-on-write and ``get_config()``
  hands out as independent copies.
"""

import json
import re
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Annotated, Any, Final

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigurationError
from .logging_utils import get_logger
from .profiles import AudienceProfile

DEFAULT_RESOURCE_CLIENT: Final = "rails-api"
DEFAULT_CLAIMS_CONTEXT_KEY: Final = "verikloak.user"

logger = get_logger(__name__)


@beartype
def stringify(value: Any) -> str:
    """Render a single audience-like value as a string."""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@beartype
def coerce_audiences(value: Any) -> list[str]:
    """Canonicalize scalar or collection audience input into a string list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [stringify(item) for item in value]
    return [stringify(value)]


class PolicyConfiguration(BaseModel):
    """Audience policy parameters.

    Every attribute assignment is validated, so a blank ``claims_context_key``
    or an unknown ``profile`` is rejected at the point it is set.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        validate_default=True,
        extra="forbid",
    )

    profile: AudienceProfile = Field(
        default=AudienceProfile.STRICT_SINGLE,
        description="Enforcement profile",
    )
    required_audiences: list[str] = Field(
        default_factory=list,
        description="Audiences a token must carry (semantically a set)",
    )
    resource_client: str | None = Field(
        default=DEFAULT_RESOURCE_CLIENT,
        description="Client id used for resource_access role lookups",
    )
    claims_context_key: str = Field(
        default=DEFAULT_CLAIMS_CONTEXT_KEY,
        description="Request context slot holding verified claims",
    )
    suggest_on_failure: bool = Field(
        default=True,
        description="Log a suggested profile when a request is denied",
    )
    bypass_paths: list[str | re.Pattern[str]] = Field(
        default_factory=list,
        description="Literal paths or regex patterns exempt from enforcement",
    )

    @field_validator("profile", mode="before")
    @classmethod
    def coerce_profile(cls: type["PolicyConfiguration"], v: Any) -> AudienceProfile:
        """Accept enum members, values and names; reject anything else."""
        return AudienceProfile.coerce(v)

    @field_validator("required_audiences", mode="before")
    @classmethod
    def coerce_required_audiences(cls: type["PolicyConfiguration"], v: Any) -> list[str]:
        """Accept a scalar or a collection of audiences."""
        return coerce_audiences(v)

    @field_validator("resource_client", mode="before")
    @classmethod
    def coerce_resource_client(cls: type["PolicyConfiguration"], v: Any) -> str | None:
        """Normalize enum and scalar client ids to strings."""
        if v is None:
            return None
        return stringify(v)

    @field_validator("claims_context_key", mode="before")
    @classmethod
    def validate_claims_context_key(cls: type["PolicyConfiguration"], v: Any) -> str:
        """Reject blank context keys immediately."""
        key = "" if v is None else stringify(v)
        if not key.strip():
            raise ConfigurationError("claims_context_key must be a non-empty string")
        return key

    @beartype
    def required_audience_list(self) -> list[str]:
        """Return the required audiences as a fresh list of strings."""
        return coerce_audiences(self.required_audiences)

    @beartype
    def copy(self) -> "PolicyConfiguration":  # type: ignore[override]
        """Return an independent copy; list fields are not shared."""
        return self.model_copy(deep=True)

    @beartype
    def validate(self) -> "PolicyConfiguration":  # type: ignore[override]
        """Check cross-field invariants.

        Under ``resource_or_aud`` a blank or default ``resource_client`` is
        replaced in place by the sole required audience when exactly one is
        configured.

        Returns:
            This configuration, possibly with ``resource_client`` adjusted.

        Raises:
            ConfigurationError: If no audience is required, or the resource
                client cannot be reconciled with the required audiences.
        """
        audiences = self.required_audience_list()
        if not audiences:
            raise ConfigurationError(
                "required_audiences must include at least one audience"
            )

        if AudienceProfile.coerce(self.profile) is AudienceProfile.RESOURCE_OR_AUDIENCE:
            self._reconcile_resource_client(audiences)
        return self

    def _reconcile_resource_client(self, audiences: list[str]) -> None:
        client = (self.resource_client or "").strip()
        if client and client in audiences:
            return

        if (not client or client == DEFAULT_RESOURCE_CLIENT) and len(audiences) == 1:
            logger.debug("Inferred resource_client %r from required_audiences", audiences[0])
            self.resource_client = audiences[0]
            return

        raise ConfigurationError(
            "resource_client must match one of required_audiences "
            f"(resource_client={self.resource_client!r}, required_audiences={audiences!r})",
            details={"resource_client": self.resource_client, "required_audiences": audiences},
        )

    @beartype
    def apply_overrides(self, overrides: Mapping[str, Any]) -> "PolicyConfiguration":
        """Apply named overrides in place.

        Args:
            overrides: Field name to value mapping.

        Returns:
            This configuration.

        Raises:
            ConfigurationError: On unknown field names or invalid values.
        """
        known = type(self).model_fields
        unknown = sorted(str(key) for key in overrides if key not in known)
        if unknown:
            raise ConfigurationError(
                f"unknown middleware option(s): {', '.join(unknown)}",
                details={"unknown": unknown, "allowed": sorted(known)},
            )

        for name, value in overrides.items():
            try:
                setattr(self, name, value)
            except ValidationError as exc:
                raise ConfigurationError(f"invalid value for {name}: {exc}") from exc
        return self

    @beartype
    def matches_bypass(self, path: str) -> bool:
        """Check whether a request path is exempt from enforcement.

        Patterns match via ``search``. Strings match exactly, except that a
        trailing ``/*`` matches the prefix and everything beneath it.
        """
        for matcher in self.bypass_paths:
            if isinstance(matcher, re.Pattern):
                if matcher.search(path):
                    return True
            elif matcher.endswith("/*"):
                prefix = matcher[:-2]
                if path == prefix or path.startswith(f"{prefix}/"):
                    return True
            elif path == matcher:
                return True
        return False


class AudienceSettings(BaseSettings):
    """Environment-driven defaults (``AUDIENCE_*`` variables)."""

    model_config = SettingsConfigDict(
        env_prefix="AUDIENCE_",
        env_file=None,
        frozen=True,
        validate_default=True,
        extra="ignore",
    )

    profile: AudienceProfile = Field(
        default=AudienceProfile.STRICT_SINGLE,
        description="Default enforcement profile",
    )
    required_audiences: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma separated or JSON list of required audiences",
    )
    resource_client: str = Field(
        default=DEFAULT_RESOURCE_CLIENT,
        description="Client id for resource_access lookups",
    )
    claims_context_key: str = Field(
        default=DEFAULT_CLAIMS_CONTEXT_KEY,
        min_length=1,
        description="Request context slot holding verified claims",
    )
    suggest_on_failure: bool = Field(
        default=True,
        description="Log profile suggestions on denial",
    )
    bypass_paths: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma separated or JSON list of literal bypass paths",
    )

    @field_validator("profile", mode="before")
    @classmethod
    def coerce_profile(cls: type["AudienceSettings"], v: Any) -> AudienceProfile:
        """Resolve the profile from its configured name."""
        return AudienceProfile.coerce(v)

    @field_validator("required_audiences", "bypass_paths", mode="before")
    @classmethod
    def split_list(cls: type["AudienceSettings"], v: Any) -> Any:
        """Accept JSON lists or comma separated strings from the environment."""
        if not isinstance(v, str):
            return v
        text = v.strip()
        if text.startswith("["):
            return json.loads(text)
        return [item.strip() for item in text.split(",") if item.strip()]

    @beartype
    def to_configuration(self) -> PolicyConfiguration:
        """Build a policy configuration from these settings."""
        return PolicyConfiguration(
            profile=self.profile,
            required_audiences=list(self.required_audiences),
            resource_client=self.resource_client,
            claims_context_key=self.claims_context_key,
            suggest_on_failure=self.suggest_on_failure,
            bypass_paths=list(self.bypass_paths),
        )


_settings: AudienceSettings | None = None


@beartype
def get_settings() -> AudienceSettings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = AudienceSettings()
    return _settings


@beartype
def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    global _settings
    _settings = None


# Process-wide default. Replaced wholesale by configure() and only ever read
# through copies, always under the lock.
_default_config: PolicyConfiguration | None = None
_default_lock = threading.Lock()


def _current_default() -> PolicyConfiguration:
    global _default_config
    if _default_config is None:
        _default_config = get_settings().to_configuration()
    return _default_config


@beartype
def get_config() -> PolicyConfiguration:
    """Return an independent copy of the process-wide default configuration."""
    with _default_lock:
        return _current_default().copy()


@beartype
def configure(
    mutator: Callable[[PolicyConfiguration], Any] | None = None,
    **options: Any,
) -> PolicyConfiguration:
    """Replace the process-wide default configuration.

    The current default is copied, ``options`` are applied to the copy, then
    ``mutator`` (if given) receives it for further edits. The copy becomes
    the new default only once every step has succeeded.

    The lock is not held while ``options`` and ``mutator`` run, so a mutator
    may call ``get_config()``. Concurrent ``configure`` calls each start from
    the default they observed; the last swap wins.

    Returns:
        A copy of the new default.
    """
    global _default_config
    updated = get_config().apply_overrides(options)
    if mutator is not None:
        mutator(updated)
    with _default_lock:
        _default_config = updated
        return updated.copy()


@beartype
def reset_config() -> None:
    """Drop the default so the next read rebuilds it from settings."""
    global _default_config
    with _default_lock:
        _default_config = None


_validation_deferred: ContextVar[bool] = ContextVar(
    "audience_guard_validation_deferred", default=False
)


@contextmanager
def deferred_validation() -> Iterator[None]:
    """Signal that configuration is not final yet.

    Enforcers built inside this block skip ``validate()``. Meant for
    application bootstrap code that builds guards before settings load.

    ``app.add_middleware`` only records the middleware class; Starlette
    instantiates it when the stack is built on the first request or at
    lifespan start. Wrapping ``add_middleware`` therefore has no effect. Wrap
    the stack build instead::

        with deferred_validation():
            app.middleware_stack = app.build_middleware_stack()

    ``AudienceGuard`` and ``AudienceEnforcer`` are built eagerly, so wrapping
    their construction is enough.
    """
    token = _validation_deferred.set(True)
    try:
        yield
    finally:
        _validation_deferred.reset(token)


@beartype
def validation_deferred() -> bool:
    """Return whether enforcer construction should skip validation."""
    return _validation_deferred.get()
