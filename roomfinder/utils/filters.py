"""
In-memory listing search.

These helpers never touch the database; they work on any sequence of
listing-like objects (ORM rows or response models) and always return a new
list in the input order.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, TypeVar, Union

from roomfinder.models.listing import PropertyType, TenantPreference

ListingLike = TypeVar("ListingLike")

Price = Union[Decimal, float, int]


@dataclass(frozen=True)
class ListingCriteria:
    """Optional exact and range constraints applied alongside the text query."""

    property_type: Optional[PropertyType] = None
    tenant_preference: Optional[TenantPreference] = None
    min_price: Optional[Price] = None
    max_price: Optional[Price] = None

    @property
    def is_empty(self) -> bool:
        """True when no constraint is set."""
        return (
            self.property_type is None
            and self.tenant_preference is None
            and self.min_price is None
            and self.max_price is None
        )


def _normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().lower()


def matches_query(listing: Any, query: Optional[str]) -> bool:
    """
    Check whether a listing matches a free-text query.

    The query is a case-insensitive substring of the title, location or
    description. A blank query matches everything.
    """
    needle = _normalize_query(query)
    if not needle:
        return True

    for field in ("title", "location", "description"):
        value = getattr(listing, field, None)
        if value and needle in value.lower():
            return True
    return False


def matches_criteria(listing: Any, criteria: Optional[ListingCriteria]) -> bool:
    """Check a listing against every supplied criterion. Bounds are inclusive."""
    if criteria is None:
        return True

    if criteria.property_type is not None and listing.property_type != criteria.property_type:
        return False
    if criteria.tenant_preference is not None and listing.tenant_preference != criteria.tenant_preference:
        return False

    rent = Decimal(str(listing.rent))
    if criteria.min_price is not None and rent < Decimal(str(criteria.min_price)):
        return False
    if criteria.max_price is not None and rent > Decimal(str(criteria.max_price)):
        return False

    return True


def filter_listings(
    listings: Iterable[ListingLike],
    query: Optional[str] = "",
    criteria: Optional[ListingCriteria] = None,
) -> List[ListingLike]:
    """
    Filter listings by text query and criteria.

    Args:
        listings: Listings to search, in display order
        query: Free-text query matched against title, location and description
        criteria: Optional property type, tenant preference and price bounds

    Returns:
        Listings satisfying the query and all criteria, in input order
    """
    return [
        listing for listing in listings
        if matches_query(listing, query) and matches_criteria(listing, criteria)
    ]


def is_filtered(query: Optional[str], criteria: Optional[ListingCriteria]) -> bool:
    """Whether a query or any criterion is active."""
    return bool(_normalize_query(query)) or not (criteria is None or criteria.is_empty)


def without_listing(listings: Sequence[ListingLike], listing_id: Any) -> List[ListingLike]:
    """Return a copy of listings without the one whose id matches listing_id."""
    target = str(listing_id)
    return [listing for listing in listings if str(listing.id) != target]
