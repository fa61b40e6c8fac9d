"""Face detection entities."""
from typing import Dict, Optional, Sequence, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator, ConfigDict


class BoundingBox(BaseModel):
    """Face location relative to the image size, every value in the 0-1 range."""
    left: float = Field(..., description="Distance of the left edge from the image's left border")
    top: float = Field(..., description="Distance of the top edge from the image's top border")
    width: float = Field(..., description="Box width as a fraction of the image width")
    height: float = Field(..., description="Box height as a fraction of the image height")


class Face(BaseModel):
    """One detected face, with the descriptor used for matching."""
    confidence: float = Field(..., description="Detector score between 0 and 1")
    bounding_box: BoundingBox = Field(..., description="Where the face is in the image")
    embedding: Optional[np.ndarray] = Field(None, description="Face descriptor as a float32 vector")
    expressions: Optional[Dict[str, float]] = Field(
        None, description="Expression scores, when the model provides them"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator('embedding', mode='before')
    @classmethod
    def as_vector(cls, v: Optional[Union[np.ndarray, Sequence[float]]]) -> Optional[np.ndarray]:
        """Store descriptors as flat float32 arrays."""
        if v is None:
            return None
        return np.asarray(v, dtype=np.float32).ravel()
