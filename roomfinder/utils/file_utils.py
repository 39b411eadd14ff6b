"""
File validation utilities for listing image uploads.
"""

import io
from pathlib import Path
from typing import Optional
from PIL import Image, UnidentifiedImageError

from roomfinder.config import get_settings
from roomfinder.utils.exceptions import UploadError

settings = get_settings()


class FileValidator:
    """Utility class for file validation operations."""

    # Supported image formats and their MIME types
    SUPPORTED_FORMATS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp'],
        'image/gif': ['.gif'],
    }

    # Pillow format names per extension
    PIL_FORMATS = {
        '.jpg': 'JPEG',
        '.jpeg': 'JPEG',
        '.png': 'PNG',
        '.webp': 'WEBP',
        '.gif': 'GIF',
    }

    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000

    @classmethod
    def validate_file_extension(cls, filename: str) -> str:
        """
        Validate file extension.

        Args:
            filename: Name of the file

        Returns:
            Lowercase file extension including the dot

        Raises:
            UploadError: If extension is missing or not supported
        """
        if not filename:
            raise UploadError("Filename is required")

        extension = Path(filename).suffix.lower()
        if not extension:
            raise UploadError("File must have an extension", filename)

        if extension not in cls.PIL_FORMATS:
            raise UploadError(
                f"File extension '{extension}' not supported. "
                f"Supported extensions: {', '.join(cls.PIL_FORMATS)}",
                filename
            )

        return extension

    @classmethod
    def validate_mime_type(cls, mime_type: str, extension: str, filename: str) -> str:
        """
        Validate a declared MIME type against the allowed types and the extension.

        Raises:
            UploadError: If the type is not allowed or disagrees with the extension
        """
        if mime_type not in settings.allowed_file_types or mime_type not in cls.SUPPORTED_FORMATS:
            raise UploadError(
                f"File type '{mime_type}' not allowed. "
                f"Allowed types: {', '.join(settings.allowed_file_types)}",
                filename
            )

        if extension not in cls.SUPPORTED_FORMATS[mime_type]:
            raise UploadError(
                f"File extension '{extension}' doesn't match MIME type '{mime_type}'",
                filename
            )

        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, filename: str, max_size: Optional[int] = None) -> int:
        """
        Validate file size.

        Raises:
            UploadError: If the file is empty or too large
        """
        if file_size <= 0:
            raise UploadError("File is empty", filename)

        max_allowed = max_size or settings.max_file_size
        if file_size > max_allowed:
            max_mb = max_allowed / (1024 * 1024)
            actual_mb = file_size / (1024 * 1024)
            raise UploadError(
                f"File size ({actual_mb:.1f}MB) exceeds maximum allowed size ({max_mb:.1f}MB)",
                filename
            )

        return file_size

    @classmethod
    def validate_image(
        cls,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        max_size: Optional[int] = None
    ) -> str:
        """
        Comprehensive validation of an image payload.

        Args:
            content: Raw file bytes
            filename: Original file name, used for the extension
            content_type: Declared MIME type, if the client sent one
            max_size: Size limit in bytes, defaults to the configured limit

        Returns:
            Lowercase file extension including the dot

        Raises:
            UploadError: If any validation fails
        """
        extension = cls.validate_file_extension(filename)

        # Generic types carry no information, so only the content is checked
        if content_type and content_type != "application/octet-stream":
            cls.validate_mime_type(content_type, extension, filename)

        cls.validate_file_size(len(content), filename, max_size)

        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                pil_format = (img.format or "").upper()
        except Image.DecompressionBombError:
            raise UploadError(
                f"Image dimensions exceed maximum {cls.MAX_WIDTH}x{cls.MAX_HEIGHT}px",
                filename
            )
        except (UnidentifiedImageError, OSError) as e:
            raise UploadError(f"Invalid image file: {str(e)}", filename)

        if width > cls.MAX_WIDTH or height > cls.MAX_HEIGHT:
            raise UploadError(
                f"Image dimensions {width}x{height}px exceed maximum {cls.MAX_WIDTH}x{cls.MAX_HEIGHT}px",
                filename
            )

        if pil_format != cls.PIL_FORMATS[extension]:
            raise UploadError(
                f"Image content '{pil_format.lower()}' doesn't match extension '{extension}'",
                filename
            )

        return extension
