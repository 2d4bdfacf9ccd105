# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""ASGI middleware."""

from .audience_middleware import AudienceMiddleware

__all__ = ["AudienceMiddleware"]
