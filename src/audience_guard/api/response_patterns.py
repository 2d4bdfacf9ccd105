# AudienceGuard - Audience Policy Enforcement
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Structured denial responses."""

from beartype import beartype
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..core.enforcement import DENIAL_STATUS, INSUFFICIENT_AUDIENCE, AudienceDecision


class AudienceErrorResponse(BaseModel):
    """Body returned when a request's audience is rejected."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
    )

    error: str = Field(default=INSUFFICIENT_AUDIENCE, description="Machine-readable error code")
    message: str = Field(..., min_length=1, description="Human-readable error message")


@beartype
def denial_response(decision: AudienceDecision) -> JSONResponse:
    """Render a denied decision as a 403 JSON response."""
    body = AudienceErrorResponse(**decision.to_error_payload())
    return JSONResponse(status_code=DENIAL_STATUS, content=body.model_dump())
