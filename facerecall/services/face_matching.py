"""Nearest-neighbour matching of a probe embedding against the enrolled gallery."""
from typing import Iterable, List, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from facerecall.core.config import settings
from facerecall.core.exceptions import ValidationError
from facerecall.core.logging import get_logger
from facerecall.domain.entities.person import Person
from facerecall.domain.value_objects.recognition import MatchResult

logger = get_logger(__name__)


class Gallery(BaseModel):
    """Labeled reference embeddings built from one snapshot of the store.

    ``vectors`` holds one row per entry in the same order as ``labels``.
    """
    labels: List[str] = Field(default_factory=list, description="Person identifier of each row")
    vectors: np.ndarray = Field(
        default_factory=lambda: np.empty((0, 0), dtype=np.float32),
        description="Reference embeddings, one row per label"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def is_empty(self) -> bool:
        return not self.labels

    @property
    def dimension(self) -> Optional[int]:
        return None if self.is_empty else int(self.vectors.shape[1])


class FaceMatcher:
    """Finds the closest enrolled person under Euclidean distance.

    A match is accepted when the minimum distance is less than or equal to
    the threshold; lower thresholds are stricter.

    Example:
        ```python
        matcher = FaceMatcher()
        gallery = matcher.build_gallery(await store.list())
        result = matcher.match(face.embedding, gallery, threshold=0.6)
        if result.matched:
            person = await store.get_by_id(result.person_id)
        ```
    """

    def __init__(self, default_threshold: Optional[float] = None) -> None:
        self.default_threshold = (
            settings.RECOGNITION_THRESHOLD if default_threshold is None else default_threshold
        )

    def build_gallery(self, people: Iterable[Person]) -> Gallery:
        """Build a gallery from a snapshot of people.

        People without a reference embedding are skipped.

        Raises:
            ValidationError: If reference embeddings differ in length
        """
        labels: List[str] = []
        rows: List[np.ndarray] = []
        for person in people:
            if not person.reference_embedding:
                logger.warning("Person has no reference embedding", person_id=person.id)
                continue
            labels.append(person.id)
            rows.append(person.embedding_array)

        if not rows:
            return Gallery()

        dimensions = {row.shape[0] for row in rows}
        if len(dimensions) > 1:
            raise ValidationError(
                "Reference embeddings have inconsistent lengths",
                details={"dimensions": sorted(dimensions)}
            )
        return Gallery(labels=labels, vectors=np.vstack(rows))

    def match(
        self,
        probe: Union[np.ndarray, List[float]],
        gallery: Gallery,
        threshold: Optional[float] = None,
    ) -> MatchResult:
        """Match a probe embedding against the gallery.

        Args:
            probe: Embedding of the detected face
            gallery: Gallery built from the current store snapshot
            threshold: Maximum accepted distance, defaults to the configured value

        Returns:
            MatchResult with the closest person id, or no id when the closest
            distance exceeds the threshold or the gallery is empty

        Raises:
            ValidationError: If the probe length differs from the gallery's
        """
        threshold = self.default_threshold if threshold is None else float(threshold)
        if gallery.is_empty:
            return MatchResult(person_id=None, distance=None, threshold=threshold)

        vector = np.asarray(probe, dtype=np.float32).ravel()
        if vector.shape[0] != gallery.dimension:
            raise ValidationError(
                "Probe embedding length does not match the gallery",
                details={"probe": int(vector.shape[0]), "gallery": gallery.dimension}
            )

        distances = np.linalg.norm(gallery.vectors - vector, axis=1)
        best = int(np.argmin(distances))
        distance = float(distances[best])

        if distance <= threshold:
            logger.debug("Probe matched", person_id=gallery.labels[best], distance=distance)
            return MatchResult(person_id=gallery.labels[best], distance=distance, threshold=threshold)

        logger.debug("Probe not matched", closest_distance=distance, threshold=threshold)
        return MatchResult(person_id=None, distance=distance, threshold=threshold)
