# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Audience enforcement middleware.

Place it inside (after) the token verification middleware so verified claims
are already present in the request scope when it runs. HTTP requests are
denied with a 403 JSON body; WebSocket handshakes are closed with code 1008
before the endpoint accepts them.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from beartype import beartype
from fastapi import Request, Response
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocket

from ...core.config import PolicyConfiguration
from ...core.enforcement import AudienceDecision, AudienceEnforcer
from ..response_patterns import denial_response


class AudienceMiddleware(BaseHTTPMiddleware):
    """Reject requests whose token audience does not satisfy the policy."""

    def __init__(self, app: ASGIApp, **overrides: Any) -> None:
        """Initialize audience middleware.

        Args:
            app: Next ASGI application
            **overrides: Policy fields overriding the process-wide default
                (profile, required_audiences, resource_client,
                claims_context_key, suggest_on_failure, bypass_paths)

        Raises:
            ConfigurationError: On unknown options or an invalid policy
        """
        super().__init__(app)
        self.enforcer = AudienceEnforcer(overrides=overrides)

    @property
    def config(self) -> PolicyConfiguration:
        """A copy of the policy this middleware enforces."""
        return self.enforcer.config

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # BaseHTTPMiddleware forwards websocket scopes untouched
        if scope["type"] == "websocket":
            websocket = WebSocket(scope, receive, send)
            if self.denial_for(websocket) is not None:
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return
        await super().__call__(scope, receive, send)

    def denial_for(self, connection: HTTPConnection) -> AudienceDecision | None:
        """Evaluate a connection, logging and returning the decision if denied."""
        if self.enforcer.is_bypassed(connection.url.path):
            return None

        claims = self.enforcer.extract_claims(connection.scope, connection.state)
        decision = self.enforcer.decide(claims)
        if decision.allowed:
            return None

        self.enforcer.log_denial(
            decision, self.enforcer.resolve_logger(connection.scope, connection.state)
        )
        return decision

    @beartype
    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Process request through audience validation.

        Args:
            request: Incoming request
            call_next: Next middleware or endpoint

        Returns:
            Response from the endpoint, or a 403 JSON denial
        """
        decision = self.denial_for(request)
        if decision is None:
            return await call_next(request)
        return denial_response(decision)
