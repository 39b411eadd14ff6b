"""
API route handlers for the RoomFinder API.
"""

from .auth import router as auth_router
from .listings import router as listings_router
from .storage import router as storage_router

__all__ = ["auth_router", "listings_router", "storage_router"]
