"""Enrolled person entity."""
from datetime import datetime, timezone
from typing import List, Optional, Union

import numpy as np
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def coerce_embedding(value: Optional[Union[np.ndarray, list, dict]]) -> List[float]:
    """Normalise an embedding given as array, list or index-keyed mapping to a float list."""
    if value is None:
        return []
    if isinstance(value, np.ndarray):
        return [float(x) for x in value.ravel()]
    if isinstance(value, dict):
        # Float32Array serialised by JSON.stringify: {"0": .., "1": ..}
        return [float(value[k]) for k in sorted(value, key=int)]
    return [float(x) for x in value]


class PersonDetails(BaseModel):
    """Descriptive fields a user enters for a person."""
    name: str = Field(..., description="Display name of the person")
    relationship: Optional[str] = Field(None, description="How the user knows the person")
    notes: Optional[str] = Field(None, description="Free text notes shown on recognition")

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator('relationship', 'notes')
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class Person(PersonDetails):
    """A person enrolled in the local gallery.

    The reference embedding and the image list are updated independently:
    editing text fields never requires re-deriving the embedding. Legacy
    camelCase keys (``faceDescriptor``, ``createdAt``, ``lastRecognized``) are
    accepted so older backups can be imported.
    """
    id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("id", "_id"),
        description="Identifier assigned by the store"
    )
    reference_embedding: List[float] = Field(
        default_factory=list,
        validation_alias=AliasChoices("reference_embedding", "faceDescriptor"),
        description="Reference face embedding used for matching"
    )
    images: List[str] = Field(default_factory=list, description="Photo references in selection order")
    created_at: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("created_at", "createdAt"),
        description="Creation timestamp, set once by the store"
    )
    last_recognized: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("last_recognized", "lastRecognized"),
        description="Timestamp of the last successful recognition"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('reference_embedding', mode='before')
    @classmethod
    def validate_embedding(cls, v: Optional[Union[np.ndarray, list, dict]]) -> list:
        """Accept numpy arrays and index-keyed mappings as well as plain lists."""
        return coerce_embedding(v)

    @property
    def embedding_array(self) -> np.ndarray:
        """Reference embedding as a float32 vector."""
        return np.asarray(self.reference_embedding, dtype=np.float32)
