"""Value objects package."""
from .enrollment import EnrollmentState, PhotoResult
from .recognition import (
    AnnouncementMode,
    DetectionResult,
    MatchResult,
    RecognitionResult,
    RecognitionState,
)

__all__ = [
    "AnnouncementMode",
    "DetectionResult",
    "EnrollmentState",
    "MatchResult",
    "PhotoResult",
    "RecognitionResult",
    "RecognitionState",
]
