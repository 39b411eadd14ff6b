"""
Object storage for uploaded listing images.
Objects live in a bucket directory on local disk and are served back over HTTP.
"""

from pathlib import Path
from typing import Optional
import logging
import re

import aiofiles

from roomfinder.config import get_settings
from roomfinder.utils.exceptions import UploadError

logger = logging.getLogger(__name__)
settings = get_settings()

# Keys are flat names: no separators, no leading dot
OBJECT_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class LocalObjectStore:
    """
    Write-once object store backed by a directory.

    Objects are never overwritten; writing an existing key fails.
    """

    def __init__(
        self,
        root: Optional[Path] = None,
        bucket: Optional[str] = None,
        public_base_url: Optional[str] = None
    ):
        self.root = Path(root or settings.storage_dir)
        self.bucket = bucket or settings.storage_bucket
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        self.bucket_dir.mkdir(parents=True, exist_ok=True)

    @property
    def bucket_dir(self) -> Path:
        return self.root / self.bucket

    @staticmethod
    def is_valid_key(key: str) -> bool:
        return bool(key) and bool(OBJECT_KEY_PATTERN.match(key))

    def object_path(self, key: str) -> Path:
        """
        Resolve the on-disk path for a key.

        Raises:
            ValueError: If the key is not a flat object name
        """
        if not self.is_valid_key(key):
            raise ValueError(f"Invalid object key: {key!r}")
        return self.bucket_dir / key

    def exists(self, key: str) -> bool:
        return self.is_valid_key(key) and self.object_path(key).is_file()

    async def put_object(self, key: str, content: bytes) -> None:
        """
        Store bytes under a new key.

        Args:
            key: Object key, must not already exist
            content: Object bytes

        Raises:
            UploadError: If the key is invalid, already taken, or the write fails
        """
        try:
            path = self.object_path(key)
        except ValueError as e:
            raise UploadError(str(e))

        try:
            async with aiofiles.open(path, "xb") as f:
                await f.write(content)
        except FileExistsError:
            raise UploadError(f"Object '{key}' already exists")
        except OSError as e:
            # Remove the partial file, the key was ours
            if path.exists():
                path.unlink()
            logger.error(f"Failed to write object {key}: {e}")
            raise UploadError(f"Failed to store object: {str(e)}")

        logger.info(f"Stored object {self.bucket}/{key} ({len(content)} bytes)")

    def get_public_url(self, key: str) -> str:
        """Public URL under which a stored object is served."""
        return f"{self.public_base_url}/storage/{self.bucket}/{key}"


def get_object_store() -> LocalObjectStore:
    """Dependency returning the configured object store."""
    return LocalObjectStore()
