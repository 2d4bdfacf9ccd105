# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""FastAPI dependencies for per-route audience enforcement.

Use these when only some routes need an audience policy, or when a route
needs a stricter policy than the application-wide middleware:

    admin_audience = AudienceGuard(required_audiences=["admin-api"])

    @router.get("/admin", dependencies=[Depends(admin_audience)])
    async def admin() -> dict[str, str]: ...

Call ``install_exception_handler(app)`` once so denials render as the same
403 JSON body the middleware returns.
"""

from typing import Any

from beartype import beartype
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.config import PolicyConfiguration
from ..core.enforcement import AudienceEnforcer
from ..core.errors import InsufficientAudienceError
from .response_patterns import AudienceErrorResponse


class AudienceGuard:
    """Callable dependency enforcing an audience policy on a single route."""

    def __init__(self, config: PolicyConfiguration | None = None, **overrides: Any) -> None:
        self.enforcer = AudienceEnforcer(config, overrides=overrides)

    async def __call__(self, request: Request) -> dict[str, Any]:
        """Return the verified claims, or raise when the audience is rejected."""
        claims = self.enforcer.extract_claims(request.scope, request.state)
        if self.enforcer.is_bypassed(request.url.path):
            return claims

        decision = self.enforcer.decide(claims)
        if decision.allowed:
            return claims

        self.enforcer.log_denial(
            decision, self.enforcer.resolve_logger(request.scope, request.state)
        )
        raise InsufficientAudienceError(
            decision.message,
            details={"profile": decision.profile.value, "aud": list(decision.audiences)},
        )


async def audience_error_handler(request: Request, exc: InsufficientAudienceError) -> JSONResponse:
    """Render ``InsufficientAudienceError`` as a structured JSON denial."""
    body = AudienceErrorResponse(error=exc.code, message=exc.message)
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


@beartype
def install_exception_handler(app: FastAPI) -> None:
    """Register the denial handler on a FastAPI application."""
    app.add_exception_handler(InsufficientAudienceError, audience_error_handler)  # type: ignore[arg-type]
