"""
Listing service for room listings.
Handles listing CRUD with ownership rules, immutable fields and the image upload workflow.
"""

from typing import Optional, List, Dict, Any, Sequence, Union
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import AsyncSession
from roomfinder.repositories.listing import ListingRepository, ListingQuery
from roomfinder.models import Listing, User
from roomfinder.schemas.listing import ListingCreate, ListingUpdate
from roomfinder.services.image import ImageFile, ImageUploader
from roomfinder.utils.exceptions import (
    APIException,
    BadRequestError,
    ImmutableFieldError,
    ListingNotFoundError,
    ListingOwnershipError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

# Errors meaning the database could not be reached at all
STORAGE_ERRORS = (OperationalError, InterfaceError)

IMMUTABLE_FIELDS = frozenset({"id", "owner_id", "created_at", "updated_at"})


def _field_errors(error: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(loc) for loc in err["loc"]) or None,
            "message": err["msg"],
            "type": err["type"],
        }
        for err in error.errors()
    ]


class ListingService:
    """
    Listing operations for the current user.

    Reads are public. Every mutation takes the caller explicitly and is
    only allowed for the listing's owner.
    """

    def __init__(self, db_session: AsyncSession, uploader: Optional[ImageUploader] = None):
        self.db = db_session
        self.listing_repo = ListingRepository(db_session)
        self.uploader = uploader or ImageUploader()

    async def list_listings(
        self,
        owner_id: Optional[uuid.UUID] = None,
        location: Optional[str] = None
    ) -> List[Listing]:
        """
        Get listings newest first.

        Args:
            owner_id: Only listings posted by this user
            location: Only listings whose location contains this text (case-insensitive)

        Returns:
            Matching listings

        Raises:
            StorageUnavailableError: If the database cannot be reached
        """
        try:
            listings = await self.listing_repo.list_listings(ListingQuery(owner_id=owner_id, location=location))
            logger.debug(f"Listed {len(listings)} listings (owner={owner_id}, location={location!r})")
            return listings
        except STORAGE_ERRORS as e:
            logger.error(f"Storage unavailable while listing: {e}")
            raise StorageUnavailableError()
        except Exception as e:
            logger.error(f"Failed to list listings: {e}")
            raise BadRequestError(f"Failed to list listings: {str(e)}")

    async def list_owner_listings(self, current_user: User) -> List[Listing]:
        """Listings posted by the current user, newest first."""
        return await self.list_listings(owner_id=current_user.id)

    async def get_listing(self, listing_id: uuid.UUID) -> Listing:
        """
        Get a listing by ID.

        Raises:
            NotFoundError: If the listing doesn't exist
            StorageUnavailableError: If the database cannot be reached
        """
        try:
            listing = await self.listing_repo.get_by_id(listing_id)
            if not listing:
                raise ListingNotFoundError(str(listing_id))

            logger.debug(f"Retrieved listing: {listing_id}")
            return listing
        except NotFoundError:
            raise
        except STORAGE_ERRORS as e:
            logger.error(f"Storage unavailable while reading listing {listing_id}: {e}")
            raise StorageUnavailableError()
        except Exception as e:
            logger.error(f"Failed to get listing {listing_id}: {e}")
            raise BadRequestError(f"Failed to retrieve listing: {str(e)}")

    async def create_listing(
        self,
        listing_data: Union[ListingCreate, Dict[str, Any]],
        current_user: User
    ) -> Listing:
        """
        Create a listing owned by the current user.

        Args:
            listing_data: Listing fields; owner, id and timestamps are assigned here
            current_user: User posting the listing

        Returns:
            Created listing

        Raises:
            ValidationError: If listing data is invalid
            StorageUnavailableError: If the database cannot be reached
        """
        try:
            if isinstance(listing_data, dict):
                immutable = IMMUTABLE_FIELDS.intersection(listing_data)
                if immutable:
                    raise ImmutableFieldError(list(immutable))
                listing_data = ListingCreate.model_validate(listing_data)

            create_data = listing_data.model_dump()
            create_data["owner_id"] = current_user.id

            listing = await self.listing_repo.create_listing(create_data)

            logger.info(f"Listing created by user {current_user.email}: {listing.title} (ID: {listing.id})")
            return listing

        except PydanticValidationError as e:
            raise ValidationError("Invalid listing data", field_errors=_field_errors(e))
        except ValueError as e:
            raise ValidationError(str(e))
        except APIException:
            raise
        except STORAGE_ERRORS as e:
            logger.error(f"Storage unavailable while creating listing: {e}")
            raise StorageUnavailableError()
        except Exception as e:
            logger.error(f"Failed to create listing for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create listing: {str(e)}")

    async def update_listing(
        self,
        listing_id: uuid.UUID,
        changes: Union[ListingUpdate, Dict[str, Any]],
        current_user: User
    ) -> Listing:
        """
        Apply a partial update to a listing.

        Args:
            listing_id: Listing to update
            changes: Fields to change; only keys present are written
            current_user: User making the change

        Returns:
            Updated listing

        Raises:
            NotFoundError: If the listing doesn't exist
            ForbiddenError: If the user is not the owner
            ValidationError: If changes touch owner_id or other fixed fields, or are invalid
        """
        try:
            if isinstance(changes, dict):
                immutable = IMMUTABLE_FIELDS.intersection(changes)
                if immutable:
                    raise ImmutableFieldError(list(immutable))
                changes = ListingUpdate.model_validate(changes)

            update_data = changes.model_dump(exclude_unset=True)

            listing = await self._get_owned_listing(listing_id, current_user, "update")

            if not update_data:
                raise ValidationError("No fields provided for update")

            updated = await self.listing_repo.update(listing.id, update_data)
            if not updated:
                raise ListingNotFoundError(str(listing_id))

            logger.info(f"Listing updated by user {current_user.email}: {listing_id} ({', '.join(sorted(update_data))})")
            return updated

        except PydanticValidationError as e:
            raise ValidationError("Invalid listing update", field_errors=_field_errors(e))
        except ValueError as e:
            raise ValidationError(str(e))
        except APIException:
            raise
        except STORAGE_ERRORS as e:
            logger.error(f"Storage unavailable while updating listing {listing_id}: {e}")
            raise StorageUnavailableError()
        except Exception as e:
            logger.error(f"Failed to update listing {listing_id}: {e}")
            raise BadRequestError(f"Failed to update listing: {str(e)}")

    async def delete_listing(self, listing_id: uuid.UUID, current_user: User) -> None:
        """
        Delete a listing. Stored images are left in the object store.

        Raises:
            NotFoundError: If the listing doesn't exist
            ForbiddenError: If the user is not the owner
        """
        try:
            listing = await self._get_owned_listing(listing_id, current_user, "delete")

            deleted = await self.listing_repo.delete(listing.id)
            if not deleted:
                raise ListingNotFoundError(str(listing_id))

            logger.info(f"Listing deleted by user {current_user.email}: {listing_id}")

        except APIException:
            raise
        except STORAGE_ERRORS as e:
            logger.error(f"Storage unavailable while deleting listing {listing_id}: {e}")
            raise StorageUnavailableError()
        except Exception as e:
            logger.error(f"Failed to delete listing {listing_id}: {e}")
            raise BadRequestError(f"Failed to delete listing: {str(e)}")

    async def attach_images(
        self,
        listing_id: uuid.UUID,
        files: Sequence[ImageFile],
        current_user: User
    ) -> Listing:
        """
        Upload images and append their URLs to a listing.

        Files are uploaded one at a time. If any upload fails the listing's
        image list is left exactly as it was; files already stored stay in
        the object store but are not attached.

        Args:
            listing_id: Listing to add images to
            files: Images in display order
            current_user: User making the change

        Returns:
            Listing with the new image URLs appended

        Raises:
            NotFoundError: If the listing doesn't exist
            ForbiddenError: If the user is not the owner
            UploadError: If any image fails validation or storage
        """
        if not files:
            raise ValidationError("No files provided")

        listing = await self._get_owned_listing(listing_id, current_user, "add images to")
        existing = list(listing.images or [])

        urls = await self.uploader.upload_many(files, listing.id)

        logger.info(f"Attaching {len(urls)} image(s) to listing {listing_id}")
        return await self.update_listing(listing.id, {"images": existing + urls}, current_user)

    async def remove_image(self, listing_id: uuid.UUID, image_url: str, current_user: User) -> Listing:
        """
        Detach an image URL from a listing. The stored object is kept.

        Raises:
            NotFoundError: If the listing doesn't exist or the URL is not attached
            ForbiddenError: If the user is not the owner
        """
        listing = await self._get_owned_listing(listing_id, current_user, "remove images from")
        images = list(listing.images or [])

        if image_url not in images:
            raise NotFoundError(detail=f"Image is not attached to listing {listing_id}")

        images.remove(image_url)
        return await self.update_listing(listing.id, {"images": images}, current_user)

    async def _get_owned_listing(self, listing_id: uuid.UUID, current_user: User, action: str) -> Listing:
        """
        Fetch a listing and check the current user owns it.

        Raises:
            NotFoundError: If the listing doesn't exist
            ForbiddenError: If the user is not the owner
        """
        listing = await self.get_listing(listing_id)

        if not self._can_manage_listing(listing, current_user):
            logger.warning(f"User {current_user.email} tried to {action} listing {listing_id} they do not own")
            raise ListingOwnershipError(action)

        return listing

    @staticmethod
    def _can_manage_listing(listing: Listing, user: User) -> bool:
        return user is not None and user.is_active and user.owns(listing.owner_id)
