"""
Repository layer for data access operations.
"""

from roomfinder.repositories.base import BaseRepository
from roomfinder.repositories.listing import ListingRepository, ListingQuery
from roomfinder.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "ListingRepository",
    "ListingQuery",
    "UserRepository",
]
