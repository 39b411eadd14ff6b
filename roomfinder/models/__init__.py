"""
Database models for the RoomFinder API.
Includes User and Listing models with relationships and validation.
"""

from roomfinder.models.user import User
from roomfinder.models.listing import Listing, PropertyType, TenantPreference

__all__ = [
    "User",
    "Listing",
    "PropertyType",
    "TenantPreference",
]
