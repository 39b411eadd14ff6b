"""
Middleware package for the RoomFinder API.
"""

from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
