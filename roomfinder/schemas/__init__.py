"""
Pydantic schemas for request/response validation.
"""

from .auth import SignInRequest, SignUpRequest, SessionResponse, UserResponse
from .listing import (
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    ListingListResponse,
    ListingOptionsResponse,
    ImageRemoveRequest,
)
from .error import APIErrorResponse, error_responses

__all__ = [
    "SignInRequest",
    "SignUpRequest",
    "SessionResponse",
    "UserResponse",
    "ListingCreate",
    "ListingUpdate",
    "ListingResponse",
    "ListingListResponse",
    "ListingOptionsResponse",
    "ImageRemoveRequest",
    "APIErrorResponse",
    "error_responses",
]
