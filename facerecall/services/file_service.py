"""Service for reading photo files from local storage."""
import asyncio
from pathlib import Path
from typing import List, Optional, Union

from facerecall.core.config import settings
from facerecall.core.exceptions import InvalidImageError
from facerecall.core.logging import get_logger

logger = get_logger(__name__)


class FileService:
    """Service for handling photo file operations."""

    def __init__(self, allowed_extensions: Optional[List[str]] = None):
        """Initialize the file service.

        Args:
            allowed_extensions: Accepted suffixes, defaults to the configured list
        """
        self.allowed_extensions = allowed_extensions or settings.image_extensions

    def resolve(self, path: Union[str, Path]) -> Path:
        """Expand and validate a photo path.

        Raises:
            InvalidImageError: If the file is missing or has an unsupported type
        """
        photo = Path(path).expanduser()
        if photo.suffix.lower() not in self.allowed_extensions:
            raise InvalidImageError(
                f"Unsupported image type '{photo.suffix}'. "
                f"Allowed: {', '.join(self.allowed_extensions)}"
            )
        if not photo.is_file():
            raise InvalidImageError(f"Image file not found: {photo}")
        return photo

    async def get_file_bytes(self, path: Union[str, Path]) -> bytes:
        """Read a photo file.

        Args:
            path: Local file path

        Returns:
            File bytes

        Raises:
            InvalidImageError: If the file cannot be read
        """
        photo = self.resolve(path)
        try:
            return await asyncio.to_thread(photo.read_bytes)
        except OSError as e:
            logger.error("Failed to read image file", path=str(photo), error=str(e))
            raise InvalidImageError(f"Failed to read image file {photo}: {e}") from e
