# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Response envelope models.

Success:
    {"status": "ok", "code": 200, "data": {...}}

Error:
    {"status": "error", "code": 404, "message": "Not found"}
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class SuccessEnvelope(BaseModel):
    """Body of every successful route response."""

    status: Literal["ok"] = "ok"
    code: int = Field(200, description="HTTP status code")
    data: Any = Field(..., description="Serialized page, collection or handler data")


class ErrorEnvelope(BaseModel):
    """Body of every failed route response."""

    status: Literal["error"] = "error"
    code: int = Field(500, description="HTTP status code")
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Not found", "Unauthorized"],
    )
