"""
Listing API endpoints for browsing, searching and managing room listings.
Reads are public; every change requires the listing owner's token.
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from typing import List, Optional
from decimal import Decimal
from uuid import UUID

from roomfinder.config import settings
from roomfinder.models import Listing, User, PropertyType, TenantPreference
from roomfinder.services.image import ImageFile
from roomfinder.services.listing import ListingService
from roomfinder.schemas.listing import (
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    ListingListResponse,
    ListingOptionsResponse,
    ImageRemoveRequest,
)
from roomfinder.schemas.error import error_responses
from roomfinder.utils.dependencies import get_current_user, get_listing_service
from roomfinder.utils.exceptions import ValidationError
from roomfinder.utils.filters import ListingCriteria, filter_listings, is_filtered


router = APIRouter(prefix="/listings", tags=["Listings"])


def _to_response(listing: Listing) -> ListingResponse:
    return ListingResponse.model_validate(listing.to_dict())


def _to_list_response(listings: List[Listing], filtered: bool = False) -> ListingListResponse:
    return ListingListResponse(
        listings=[_to_response(listing) for listing in listings],
        total=len(listings),
        filtered=filtered
    )


@router.get(
    "",
    response_model=ListingListResponse,
    status_code=status.HTTP_200_OK,
    summary="Browse and search listings",
    description="Get all listings newest first, optionally narrowed by a text query and criteria",
    responses=error_responses(422, 503)
)
async def list_listings(
    q: Optional[str] = Query(None, max_length=200, description="Text matched against title, location and description"),
    location: Optional[str] = Query(None, max_length=255, description="Location substring"),
    property_type: Optional[PropertyType] = Query(None, description="Exact property type"),
    tenant_preference: Optional[TenantPreference] = Query(None, description="Exact tenant preference"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum monthly rent (inclusive)"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum monthly rent (inclusive)"),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingListResponse:
    """
    Browse listings.

    The location filter runs in the database; the text query and criteria
    are applied to that result in memory, keeping newest-first order.

    Raises:
        ValidationError: If min_price is greater than max_price
        StorageUnavailableError: If the database cannot be reached
    """
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError(
            "min_price cannot be greater than max_price",
            field_errors=[{"field": "min_price", "message": "must not exceed max_price", "type": "value_error"}]
        )

    criteria = ListingCriteria(
        property_type=property_type,
        tenant_preference=tenant_preference,
        min_price=min_price,
        max_price=max_price
    )

    listings = await listing_service.list_listings(location=location)
    matches = filter_listings(listings, q, criteria)

    return _to_list_response(matches, filtered=is_filtered(q, criteria))


@router.get(
    "/mine",
    response_model=ListingListResponse,
    status_code=status.HTTP_200_OK,
    summary="My listings",
    description="Get the listings posted by the current user, newest first",
    responses=error_responses(401, 503)
)
async def list_my_listings(
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingListResponse:
    """Get the current user's listings."""
    listings = await listing_service.list_owner_listings(current_user)
    return _to_list_response(listings)


@router.get(
    "/options",
    response_model=ListingOptionsResponse,
    status_code=status.HTTP_200_OK,
    summary="Listing form options",
    description="Allowed property types and tenant preferences"
)
async def get_listing_options() -> ListingOptionsResponse:
    return ListingOptionsResponse(
        property_types=[item.value for item in PropertyType],
        tenant_preferences=[item.value for item in TenantPreference]
    )


@router.get(
    "/{listing_id}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Get listing",
    description="Get a single listing by ID",
    responses=error_responses(404, 503)
)
async def get_listing(
    listing_id: UUID,
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """
    Get listing details.

    Raises:
        NotFoundError: If the listing doesn't exist
    """
    listing = await listing_service.get_listing(listing_id)
    return _to_response(listing)


@router.post(
    "",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create listing",
    description="Post a new room listing owned by the current user",
    responses=error_responses(401, 422, 503)
)
async def create_listing(
    listing_data: ListingCreate,
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """
    Create a listing.

    Args:
        listing_data: Listing fields; the owner comes from the token
        current_user: Current authenticated user
        listing_service: Listing service instance

    Returns:
        Created listing

    Raises:
        ValidationError: If listing data is invalid
    """
    listing = await listing_service.create_listing(listing_data, current_user)
    return _to_response(listing)


@router.patch(
    "/{listing_id}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Update listing",
    description="Change some fields of a listing. Only the owner can update it and the owner cannot change.",
    responses=error_responses(401, 403, 404, 422, 503)
)
async def update_listing(
    listing_id: UUID,
    changes: ListingUpdate,
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """
    Partially update a listing.

    Raises:
        NotFoundError: If the listing doesn't exist
        ForbiddenError: If the user is not the owner
        ValidationError: If changes are invalid or touch fixed fields
    """
    listing = await listing_service.update_listing(listing_id, changes, current_user)
    return _to_response(listing)


@router.delete(
    "/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete listing",
    description="Delete a listing. Only the owner can delete it.",
    responses=error_responses(401, 403, 404, 503)
)
async def delete_listing(
    listing_id: UUID,
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> None:
    """
    Delete a listing.

    Raises:
        NotFoundError: If the listing doesn't exist
        ForbiddenError: If the user is not the owner
    """
    await listing_service.delete_listing(listing_id, current_user)


@router.post(
    "/{listing_id}/images",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload listing images",
    description="Upload one or more images and append them to the listing in the order sent",
    responses=error_responses(400, 401, 403, 404, 422)
)
async def upload_listing_images(
    listing_id: UUID,
    files: List[UploadFile] = File(..., description="Image files (JPEG, PNG, WebP, GIF)"),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """
    Upload images for a listing.

    Images are stored one by one. If one fails, none of this request's
    images are attached.

    Raises:
        UploadError: If any file is not a valid image or cannot be stored
        ValidationError: If too many files are sent
    """
    if len(files) > settings.max_images_per_upload:
        raise ValidationError(f"Maximum {settings.max_images_per_upload} files allowed per upload")

    images = []
    for upload in files:
        content = await upload.read()
        images.append(ImageFile(
            content=content,
            file_name=upload.filename or "upload",
            content_type=upload.content_type
        ))

    listing = await listing_service.attach_images(listing_id, images, current_user)
    return _to_response(listing)


@router.delete(
    "/{listing_id}/images",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Remove listing image",
    description="Detach an image URL from the listing. The stored file is kept.",
    responses=error_responses(401, 403, 404)
)
async def remove_listing_image(
    listing_id: UUID,
    request: ImageRemoveRequest,
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """Remove one image URL from a listing."""
    listing = await listing_service.remove_image(listing_id, request.url, current_user)
    return _to_response(listing)
