"""Enrollment value objects."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class EnrollmentState(str, Enum):
    """States of an enrollment session."""
    IDLE = "idle"
    PHOTOS_SELECTED = "photos_selected"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    SAVED = "saved"


class PhotoResult(BaseModel):
    """Validation outcome of one selected photo, kept for preview."""
    path: str = Field(..., description="File reference of the photo")
    valid: bool = Field(..., description="Whether exactly one face was found")
    error: Optional[str] = Field(None, description="Why the photo was rejected")
    embedding: Optional[List[float]] = Field(None, description="Descriptor of the detected face", repr=False)
