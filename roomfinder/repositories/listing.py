"""
Listing repository for room listings.
Provides newest-first listing queries with owner and location filters.
"""

from dataclasses import dataclass
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from roomfinder.repositories.base import BaseRepository
from roomfinder.models import Listing
from typing import Optional, List, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingQuery:
    """Server-side filters applied when fetching listings."""

    owner_id: Optional[uuid.UUID] = None
    location: Optional[str] = None


class ListingRepository(BaseRepository[Listing]):
    """
    Repository for listing persistence.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def create_listing(self, listing_data: Dict[str, Any]) -> Listing:
        """
        Create a new listing with validation.

        Args:
            listing_data: Dictionary containing listing fields and owner_id

        Returns:
            Created listing instance

        Raises:
            ValueError: If validation fails
            Exception: If database operation fails
        """
        try:
            listing_data = {"images": [], **listing_data}
            Listing(**listing_data).validate_all()

            created_listing = await self.create(listing_data)
            logger.info(f"Created listing: {created_listing.title} (ID: {created_listing.id})")
            return created_listing
        except ValueError as e:
            logger.error(f"Listing validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create listing: {e}")
            raise

    async def list_listings(self, filters: Optional[ListingQuery] = None) -> List[Listing]:
        """
        Get listings ordered newest first.

        Args:
            filters: Optional owner and location filters. Location matches
                     any listing whose location contains the text, ignoring case.

        Returns:
            List of listings
        """
        filters = filters or ListingQuery()
        try:
            query = select(Listing)

            if filters.owner_id is not None:
                query = query.where(Listing.owner_id == filters.owner_id)

            if filters.location:
                query = query.where(Listing.location.icontains(filters.location, autoescape=True))

            query = query.order_by(desc(Listing.created_at), desc(Listing.id))

            result = await self.db.execute(query)
            listings = list(result.scalars().all())

            logger.debug(f"Listing query returned {len(listings)} results")
            return listings
        except Exception as e:
            logger.error(f"Failed to list listings: {e}")
            raise
