"""
Custom exception classes for the RoomFinder API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def __str__(self) -> str:
        return str(self.detail)


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None
    ):
        if detail is None:
            detail = f"{resource} not found"
            if resource_id:
                detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Authentication required exception."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="BAD_REQUEST"
        )


class StorageUnavailableError(APIException):
    """The backing store could not be reached."""

    def __init__(self, detail: str = "Storage is temporarily unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="STORAGE_UNAVAILABLE"
        )


class UploadError(APIException):
    """Image upload rejected or failed."""

    def __init__(self, detail: str, file_name: Optional[str] = None):
        message = f"{file_name}: {detail}" if file_name else detail
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message,
            error_code="UPLOAD_ERROR"
        )
        self.file_name = file_name


# Authentication specific exceptions
class InvalidCredentialsError(UnauthorizedError):
    """Invalid login credentials exception."""

    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    """JWT token expired exception."""

    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    """Invalid JWT token exception."""

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class InactiveUserError(ForbiddenError):
    """Inactive user account exception."""

    def __init__(self, detail: str = "User account is inactive"):
        super().__init__(detail)


# Listing specific exceptions
class ListingNotFoundError(NotFoundError):
    """Listing not found exception."""

    def __init__(self, listing_id: str):
        super().__init__("Listing", listing_id)


class ListingOwnershipError(ForbiddenError):
    """Raised when someone other than the owner modifies a listing."""

    def __init__(self, action: str = "modify"):
        super().__init__(f"Only the owner can {action} this listing")


class ImmutableFieldError(ValidationError):
    """Raised when an update tries to change a field fixed at creation."""

    def __init__(self, fields: List[str]):
        joined = ", ".join(sorted(fields))
        super().__init__(
            f"Fields cannot be changed after creation: {joined}",
            field_errors=[{"field": name, "message": "Field is immutable"} for name in sorted(fields)]
        )
