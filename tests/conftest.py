"""Shared pytest fixtures for AudienceGuard.

Every test starts from pristine process-wide defaults: ``AUDIENCE_*``
environment variables are cleared and both the settings cache and the
default policy are reset before and after each test.
"""

import json
import os
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi import FastAPI, WebSocket
from fastapi.responses import PlainTextResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from audience_guard import AudienceMiddleware, PolicyConfiguration, reset_config
from audience_guard.core.config import clear_settings_cache

CLAIMS_HEADER = b"x-test-claims"


class RecordingLogger:
    """Request-scoped logger double that records warnings."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def warning(self, message: str) -> None:
        self.messages.append(message)


class ClaimsInjector:
    """Stand-in for the upstream token verification stage.

    Copies the JSON in the ``X-Test-Claims`` header into the request scope
    (or ``scope["state"]``) under ``context_key``.
    """

    def __init__(
        self,
        app: ASGIApp,
        context_key: str = "claims",
        logger: Any = None,
        use_state: bool = False,
    ) -> None:
        self.app = app
        self.context_key = context_key
        self.logger = logger
        self.use_state = use_state

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] in ("http", "websocket"):
            raw = dict(scope["headers"]).get(CLAIMS_HEADER)
            if raw is not None:
                claims = json.loads(raw)
                if self.use_state:
                    scope.setdefault("state", {})[self.context_key] = claims
                else:
                    scope[self.context_key] = claims
            if self.logger is not None:
                scope["verikloak.logger"] = self.logger
        await self.app(scope, receive, send)


@pytest.fixture(autouse=True)
def pristine_defaults(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Reset environment-driven and process-wide defaults around each test."""
    for name in list(os.environ):
        if name.startswith("AUDIENCE_"):
            monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    reset_config()
    yield
    clear_settings_cache()
    reset_config()


@pytest.fixture
def policy() -> PolicyConfiguration:
    """Minimal valid policy requiring the ``rails-api`` audience."""
    return PolicyConfiguration(required_audiences=["rails-api"])


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Fresh request-scoped logger double."""
    return RecordingLogger()


@pytest.fixture
def claims_header() -> Callable[[Any], dict[str, str]]:
    """Encode claims into the header understood by ``ClaimsInjector``."""

    def _encode(claims: Any) -> dict[str, str]:
        return {CLAIMS_HEADER.decode(): json.dumps(claims)}

    return _encode


@pytest.fixture
def build_app() -> Callable[..., FastAPI]:
    """Factory for a FastAPI app guarded by ``AudienceMiddleware``."""

    def _build(
        *,
        context_key: str = "claims",
        logger: Any = None,
        use_state: bool = False,
        **overrides: Any,
    ) -> FastAPI:
        app = FastAPI()

        @app.get("/", response_class=PlainTextResponse)
        async def index() -> str:
            return "ok"

        @app.get("/health", response_class=PlainTextResponse)
        async def health() -> str:
            return "healthy"

        @app.get("/internal/metrics", response_class=PlainTextResponse)
        async def metrics() -> str:
            return "metrics"

        @app.websocket("/ws")
        async def stream(websocket: WebSocket) -> None:
            await websocket.accept()
            await websocket.send_text("connected")
            await websocket.close()

        @app.websocket("/health/ws")
        async def health_stream(websocket: WebSocket) -> None:
            await websocket.accept()
            await websocket.send_text("healthy")
            await websocket.close()

        app.add_middleware(AudienceMiddleware, claims_context_key=context_key, **overrides)
        app.add_middleware(
            ClaimsInjector, context_key=context_key, logger=logger, use_state=use_state
        )
        return app

    return _build


@pytest.fixture
def claims_injector() -> type[ClaimsInjector]:
    """The upstream claims stage, for tests assembling their own apps."""
    return ClaimsInjector
