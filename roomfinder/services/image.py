"""
Image upload service for listing photos.
Validates image files, stores them under collision-resistant keys and returns public URLs.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union
import logging
import time
import uuid

from roomfinder.services.storage import LocalObjectStore
from roomfinder.utils.exceptions import UploadError
from roomfinder.utils.file_utils import FileValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageFile:
    """An image waiting to be uploaded."""

    content: bytes
    file_name: str
    content_type: Optional[str] = None


class ImageUploader:
    """
    Uploads listing images to the object store.

    Uploading never changes the listing itself; callers attach the
    returned URLs through a listing update.
    """

    def __init__(self, store: Optional[LocalObjectStore] = None):
        self.store = store or LocalObjectStore()

    @staticmethod
    def build_object_key(listing_id: Union[uuid.UUID, str], extension: str) -> str:
        """
        Build a storage key for an image.

        The key combines the listing id, the upload time in milliseconds and a
        random suffix, so two uploads for the same listing never share a key.

        Args:
            listing_id: Listing the image belongs to
            extension: File extension including the dot

        Returns:
            Object key such as ``<listing-id>-1712345678901-9f2c4a1b.jpg``
        """
        timestamp = int(time.time() * 1000)
        return f"{listing_id}-{timestamp}-{uuid.uuid4().hex[:8]}{extension.lower()}"

    async def upload(
        self,
        file_bytes: bytes,
        file_name: str,
        listing_id: Union[uuid.UUID, str],
        content_type: Optional[str] = None
    ) -> str:
        """
        Validate and store one image.

        Args:
            file_bytes: Raw image bytes
            file_name: Original file name
            listing_id: Listing the image belongs to
            content_type: Declared MIME type, if known

        Returns:
            Public URL of the stored image

        Raises:
            UploadError: If validation or storage fails
        """
        extension = FileValidator.validate_image(file_bytes, file_name, content_type)
        key = self.build_object_key(listing_id, extension)

        await self.store.put_object(key, file_bytes)

        url = self.store.get_public_url(key)
        logger.info(f"Uploaded image {file_name} for listing {listing_id} as {key}")
        return url

    async def upload_many(
        self,
        files: Sequence[ImageFile],
        listing_id: Union[uuid.UUID, str]
    ) -> List[str]:
        """
        Upload images one after another.

        Stops at the first failure. Images stored before the failure stay in
        the object store; their URLs are not returned.

        Args:
            files: Images to upload, in display order
            listing_id: Listing the images belong to

        Returns:
            Public URLs in the same order as files

        Raises:
            UploadError: If any upload fails
        """
        urls: List[str] = []
        for image in files:
            try:
                urls.append(await self.upload(image.content, image.file_name, listing_id, image.content_type))
            except UploadError:
                if urls:
                    logger.warning(
                        f"Upload for listing {listing_id} stopped at {image.file_name}; "
                        f"{len(urls)} stored image(s) left unattached"
                    )
                raise
        return urls
