"""
Error response schemas for API documentation.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error")
    message: str = Field(..., description="Human-readable error message")
    type: Optional[str] = Field(None, description="Error type identifier")


class ErrorBody(BaseModel):
    """Schema for the error payload."""

    code: str = Field(..., description="Error code identifier", examples=["NOT_FOUND"])
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Error timestamp in ISO format")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
    details: Optional[List[ErrorDetail]] = Field(None, description="Field level errors")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorBody


def error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """Build the OpenAPI `responses` mapping for the given status codes."""
    descriptions = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        422: "Validation Error",
        503: "Storage Unavailable",
    }
    return {
        code: {"model": APIErrorResponse, "description": descriptions.get(code, "Error")}
        for code in status_codes
    }
