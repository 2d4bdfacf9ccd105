# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Framework-independent audience policy components."""

from .checker import AudienceChecker
from .config import PolicyConfiguration, configure, get_config, reset_config
from .enforcement import AudienceDecision, AudienceEnforcer
from .errors import ConfigurationError
from .profiles import AudienceProfile

__all__ = [
    "AudienceChecker",
    "AudienceDecision",
    "AudienceEnforcer",
    "AudienceProfile",
    "ConfigurationError",
    "PolicyConfiguration",
    "configure",
    "get_config",
    "reset_config",
]
