"""
Standard API response helpers for consistent response formatting.

All endpoints use these helpers so the frontend sees one envelope shape:
- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error:   { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }
"""
from typing import Any
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error detail structure."""
    code: str = Field(..., description="Error code (e.g., 'not_found', 'validation')")
    message: str = Field(..., description="Human-readable error message")
    details: Any | None = Field(default=None, description="Additional error context")


class StandardErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: ErrorDetail


class PaginationMeta(BaseModel):
    limit: int
    offset: int
    total: int
    has_more: bool = Field(..., alias="hasMore")


def error_payload(code: str, message: str, details: Any = None) -> dict[str, Any]:
    return StandardErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details)
    ).model_dump()


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        meta: Optional metadata (pagination, counts, etc.)
    """
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def paginated_response(
    items: list[Any],
    limit: int,
    offset: int = 0,
    total: int | None = None,
    extra_meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a standardized paginated response.

    ``total`` is the count of all matching rows, not just this page; when omitted
    the page length is used.
    """
    if total is None:
        total = len(items)

    meta = PaginationMeta(
        limit=limit,
        offset=offset,
        total=total,
        hasMore=(offset + limit) < total,
    ).model_dump(by_alias=True)
    if extra_meta:
        meta.update(extra_meta)

    return success_response(data=items, meta=meta)
