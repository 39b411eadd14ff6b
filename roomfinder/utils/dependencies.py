"""
FastAPI dependency injection utilities for authentication and services.
The caller's identity is always passed to handlers as an explicit dependency.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from roomfinder.database import get_db
from roomfinder.models import User
from roomfinder.services.auth import AuthService
from roomfinder.services.image import ImageUploader
from roomfinder.services.listing import ListingService
from roomfinder.services.storage import LocalObjectStore, get_object_store
from roomfinder.session import Session
from roomfinder.utils.exceptions import UnauthorizedError


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session

    Returns:
        AuthService instance
    """
    return AuthService(db)


async def get_listing_service(
    db: AsyncSession = Depends(get_db),
    store: LocalObjectStore = Depends(get_object_store)
) -> ListingService:
    """
    Get listing service instance.

    Args:
        db: Database session
        store: Object store for uploaded images

    Returns:
        ListingService instance
    """
    return ListingService(db, uploader=ImageUploader(store))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(credentials.credentials)


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Session]:
    """
    Get the session for the presented token, or None when there is none.
    Used by public endpoints that only report on the caller.
    """
    if not credentials:
        return None
    return await auth_service.get_current_session(credentials.credentials)


async def require_session(
    session: Optional[Session] = Depends(get_current_session)
) -> Session:
    """
    Get the caller's session.

    Raises:
        UnauthorizedError: If there is no valid session
    """
    if session is None:
        raise UnauthorizedError("Authentication token required")
    return session
