# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""AudienceGuard - audience claim policy enforcement for ASGI applications."""

__version__ = "0.1.0"

from .api.dependencies import AudienceGuard, install_exception_handler
from .api.middleware import AudienceMiddleware
from .core.checker import AudienceChecker
from .core.claims import ClaimsView
from .core.config import (
    DEFAULT_CLAIMS_CONTEXT_KEY,
    DEFAULT_RESOURCE_CLIENT,
    PolicyConfiguration,
    configure,
    deferred_validation,
    get_config,
    reset_config,
)
from .core.enforcement import AudienceDecision, AudienceEnforcer
from .core.errors import AudienceError, ConfigurationError, InsufficientAudienceError
from .core.logging_utils import configure_logging
from .core.profiles import AudienceProfile

__all__ = [
    "DEFAULT_CLAIMS_CONTEXT_KEY",
    "DEFAULT_RESOURCE_CLIENT",
    "AudienceChecker",
    "AudienceDecision",
    "AudienceEnforcer",
    "AudienceError",
    "AudienceGuard",
    "AudienceMiddleware",
    "AudienceProfile",
    "ClaimsView",
    "ConfigurationError",
    "InsufficientAudienceError",
    "PolicyConfiguration",
    "configure",
    "configure_logging",
    "deferred_validation",
    "get_config",
    "install_exception_handler",
    "reset_config",
]
