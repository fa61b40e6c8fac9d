"""Face recognition value objects."""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from facerecall.domain.entities.face import BoundingBox, Face
from facerecall.domain.entities.person import Person, utcnow


class DetectionResult(BaseModel):
    """Result of face detection operation."""
    faces: List[Face] = Field(..., description="List of detected faces, most prominent first")


class MatchResult(BaseModel):
    """Outcome of matching one probe embedding against the gallery."""
    person_id: Optional[str] = Field(None, description="Matched person identifier, None when no match")
    distance: Optional[float] = Field(None, description="Distance to the closest gallery entry")
    threshold: float = Field(..., description="Maximum distance accepted as a match")

    @property
    def matched(self) -> bool:
        return self.person_id is not None


class RecognitionState(str, Enum):
    """States of a recognition attempt."""
    IDLE = "idle"
    CAPTURING = "capturing"
    EXTRACTING = "extracting"
    MATCHING = "matching"
    RECOGNIZED = "recognized"
    NOT_RECOGNIZED = "not_recognized"


class AnnouncementMode(str, Enum):
    """What is spoken when a person is recognized."""
    NONE = "none"
    NAME = "name"
    FULL = "full"


class RecognitionResult(BaseModel):
    """Result of a single recognition attempt. Never persisted."""
    recognized: bool = Field(..., description="Whether a person was matched")
    state: RecognitionState = Field(..., description="Terminal state of the attempt")
    person: Optional[Person] = Field(None, description="Matched person")
    distance: Optional[float] = Field(None, description="Distance to the closest gallery entry")
    bounding_box: Optional[BoundingBox] = Field(None, description="Box of the matched detection")
    expressions: Optional[Dict[str, float]] = Field(None, description="Expression scores of the detection")
    reason: Optional[str] = Field(None, description="Why nothing was recognized")
    timestamp: datetime = Field(default_factory=utcnow, description="When the attempt finished")
