"""
Utility modules for the RoomFinder API.
"""

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    BadRequestError,
    StorageUnavailableError,
    UploadError,
    InvalidCredentialsError,
    TokenExpiredError,
    InvalidTokenError,
    InactiveUserError,
)
from .filters import ListingCriteria, filter_listings, without_listing

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "BadRequestError",
    "StorageUnavailableError",
    "UploadError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "InvalidTokenError",
    "InactiveUserError",
    "ListingCriteria",
    "filter_listings",
    "without_listing",
]
