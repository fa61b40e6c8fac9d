"""API specific person and recognition models."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from facerecall.domain.entities.face import BoundingBox
from facerecall.domain.entities.person import Person
from facerecall.domain.value_objects.enrollment import PhotoResult
from facerecall.domain.value_objects.recognition import RecognitionResult, RecognitionState


class PersonResponse(BaseModel):
    """API model for an enrolled person. The embedding is never exposed."""
    id: str = Field(..., description="Person identifier")
    name: str = Field(..., description="Display name")
    relationship: Optional[str] = Field(None, description="How the user knows the person")
    notes: Optional[str] = Field(None, description="Free text notes")
    images: List[str] = Field(default_factory=list, description="Photo file references")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    last_recognized: Optional[datetime] = Field(None, description="Last successful recognition")

    @classmethod
    def from_person(cls, person: Person) -> "PersonResponse":
        """Create an API model from the domain entity."""
        return cls(
            id=person.id,
            name=person.name,
            relationship=person.relationship,
            notes=person.notes,
            images=person.images,
            created_at=person.created_at,
            last_recognized=person.last_recognized,
        )


class PhotoStatus(BaseModel):
    """Validation status of one submitted photo."""
    path: str = Field(..., description="Photo file reference")
    valid: bool = Field(..., description="Whether exactly one face was detected")
    error: Optional[str] = Field(None, description="Why the photo was rejected")

    @classmethod
    def from_result(cls, result: PhotoResult) -> "PhotoStatus":
        return cls(path=result.path, valid=result.valid, error=result.error)


class EnrollPersonRequest(BaseModel):
    """Request model for enrolling a person from local photos."""
    name: str = Field(..., description="Display name", min_length=1, max_length=255)
    relationship: Optional[str] = Field(None, description="How the user knows the person", max_length=255)
    notes: Optional[str] = Field(None, description="Free text notes")
    photo_paths: List[str] = Field(..., description="Local photo files", min_length=1)


class UpdatePersonRequest(BaseModel):
    """Request model for editing a person. Omitted fields are kept."""
    name: Optional[str] = Field(None, description="Display name", min_length=1, max_length=255)
    relationship: Optional[str] = Field(None, description="How the user knows the person", max_length=255)
    notes: Optional[str] = Field(None, description="Free text notes")
    photo_paths: Optional[List[str]] = Field(None, description="Replacement photos")


class EnrollPersonResponse(BaseModel):
    """Response model for enrollment and edits."""
    person: PersonResponse = Field(..., description="Saved person")
    photos: List[PhotoStatus] = Field(default_factory=list, description="Per-photo validation results")


class RecognitionRequest(BaseModel):
    """Request model for the /recognition endpoint."""
    image_path: Optional[str] = Field(
        None, description="Local image to analyze; the active camera is used when omitted"
    )


class RecognitionResponse(BaseModel):
    """Response model for the /recognition endpoint."""
    recognized: bool = Field(..., description="Whether a person was matched")
    state: RecognitionState = Field(..., description="Terminal state of the attempt")
    person: Optional[PersonResponse] = Field(None, description="Matched person")
    distance: Optional[float] = Field(None, description="Distance to the closest enrolled face")
    bounding_box: Optional[BoundingBox] = Field(None, description="Detected face location")
    reason: Optional[str] = Field(None, description="Why nothing was recognized")
    timestamp: datetime = Field(..., description="When the attempt finished")

    @classmethod
    def from_result(cls, result: RecognitionResult) -> "RecognitionResponse":
        """Convert the service result to the API response model."""
        return cls(
            recognized=result.recognized,
            state=result.state,
            person=PersonResponse.from_person(result.person) if result.person else None,
            distance=result.distance,
            bounding_box=result.bounding_box,
            reason=result.reason,
            timestamp=result.timestamp,
        )


class CameraStatus(BaseModel):
    """Camera state."""
    active: bool = Field(..., description="Whether the camera is currently held")
