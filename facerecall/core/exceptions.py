"""Custom exceptions for the face recall application."""
from typing import Optional


class FaceRecallError(Exception):
    """Base exception for face recall operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face recall error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(FaceRecallError):
    """Raised when user input is invalid (empty name, no usable photo, bad import file)."""
    pass


class NotFoundError(FaceRecallError):
    """Raised when an operation references an unknown person identifier."""
    pass


class NotReadyError(FaceRecallError):
    """Raised when models or the store are used before they are initialized."""
    pass


class ModelLoadError(NotReadyError):
    """Raised when the face recognition model fails to load."""
    pass


class ExtractionError(FaceRecallError):
    """Raised when the face detector fails or returns ambiguous results."""
    pass


class InvalidImageError(ExtractionError):
    """Raised when the provided image is invalid or cannot be processed."""
    pass


class NoFaceDetectedError(ExtractionError):
    """Raised when no face is detected in the image."""
    pass


class MultipleFacesError(ExtractionError):
    """Raised when multiple faces are found in an image that expects only one face."""
    pass


class StorageError(FaceRecallError):
    """Raised when reading or writing the people database fails."""
    pass


class CameraError(FaceRecallError):
    """Raised when no camera is available or a frame cannot be captured."""
    pass


class ConfirmationRequiredError(FaceRecallError):
    """Raised when a destructive operation is requested without explicit confirmation."""
    pass
