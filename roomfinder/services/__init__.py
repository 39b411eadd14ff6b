"""
Service layer for business logic implementation.
Contains services for authentication, listings, image uploads and error handling.
"""

from .auth import AuthService
from .listing import ListingService
from .image import ImageUploader, ImageFile
from .storage import LocalObjectStore
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "ListingService",
    "ImageUploader",
    "ImageFile",
    "LocalObjectStore",
    "ErrorHandlerService",
]
