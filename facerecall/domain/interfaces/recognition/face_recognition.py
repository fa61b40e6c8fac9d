"""Descriptor extractor interface."""
from abc import ABC, abstractmethod

from ...value_objects.recognition import DetectionResult


class DescriptorExtractor(ABC):
    """Interface for face detection and embedding extraction.

    Implementations must be idempotent and side-effect free for a given image.
    """

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the underlying models have finished loading."""
        pass

    @abstractmethod
    async def load(self) -> None:
        """
        Load model artifacts. Called once at startup.

        Raises:
            ModelLoadError: If the model cannot be loaded
        """
        pass

    @abstractmethod
    async def detect(self, image_bytes: bytes) -> DetectionResult:
        """
        Detect faces and extract their embeddings.

        Args:
            image_bytes: Raw encoded image data (JPEG/PNG)

        Returns:
            DetectionResult with zero or more faces, most prominent first,
            each carrying an embedding

        Raises:
            NotReadyError: If called before load() completed
            InvalidImageError: If the image cannot be decoded
            ExtractionError: If the detector fails
        """
        pass
