"""Standardized API response helpers.

Every mutation returns the same envelope:
    {"success": <bool>, "error": <str>?, "data": <record>?}

Callers must check ``success`` before reading ``data``. The pending
requests list returns {"items": [...], "total": <int>}.
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel


class MutationResult(BaseModel):
    """Outcome of a single persistence operation."""

    success: bool
    error: Optional[str] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, data: Any = None) -> "MutationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "MutationResult":
        return cls(success=False, error=error)


def mutation_response(result: MutationResult) -> JSONResponse:
    """Render a MutationResult: 200 on success, 400 with the same shape on failure."""
    return JSONResponse(
        status_code=200 if result.success else 400,
        content=jsonable_encoder(result, exclude_none=True),
    )


def error_message(exc: Exception) -> str:
    """Human-readable message for a failed database write."""
    orig = getattr(exc, "orig", None)
    return str(orig or exc).splitlines()[0]
