"""
InsightFace-based implementation of the descriptor extractor.

This module wraps the InsightFace ``FaceAnalysis`` pipeline behind the
DescriptorExtractor interface. It handles image decoding and downscaling,
face detection with confidence filtering and embedding extraction.

Example:
    ```python
    extractor = InsightFaceExtractor()
    await extractor.load()

    with open("image.jpg", "rb") as f:
        result = await extractor.detect(f.read())
    ```

Note:
    This implementation uses CPU inference by default. For GPU support,
    pass 'CUDAExecutionProvider' in ``providers``.
"""
import asyncio
import math
from typing import Any, List, Optional, Sequence

import cv2
import numpy as np
from insightface.app import FaceAnalysis
from insightface.app.common import Face as InsightFace

from facerecall.core.config import settings
from facerecall.core.exceptions import (
    ExtractionError,
    InvalidImageError,
    ModelLoadError,
    NotReadyError,
)
from facerecall.core.logging import get_logger
from facerecall.domain.entities.face import BoundingBox, Face
from facerecall.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from facerecall.domain.value_objects.recognition import DetectionResult

logger = get_logger(__name__)


class InsightFaceExtractor(DescriptorExtractor):
    """
    InsightFace-based descriptor extractor.

    Embeddings are the model's L2-normalised vectors, so Euclidean distances
    between them fall in [0, 2] and identical images give a distance of 0.

    Attributes:
        model: InsightFace analysis pipeline, None until load() completes
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        providers: Optional[Sequence[str]] = None,
        min_confidence: Optional[float] = None,
    ) -> None:
        self.model_name = model_name or settings.MODEL_NAME
        self.providers = list(providers or ['CPUExecutionProvider'])
        self.min_confidence = (
            settings.MIN_FACE_CONFIDENCE if min_confidence is None else min_confidence
        )
        self.model: Optional[FaceAnalysis] = None
        self._load_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self.model is not None

    def _build_model(self) -> FaceAnalysis:
        model = FaceAnalysis(
            name=self.model_name,
            root=settings.MODEL_CACHE_DIR,
            allowed_modules=['detection', 'recognition'],
            providers=self.providers
        )
        # Detection size affects accuracy significantly
        model.prepare(ctx_id=0, det_size=(settings.DETECTION_SIZE, settings.DETECTION_SIZE))
        return model

    async def load(self) -> None:
        """Load the model pack in a worker thread. Loading twice is a no-op."""
        async with self._load_lock:
            if self.model is not None:
                return
            logger.info("Loading face models", model=self.model_name, providers=self.providers)
            try:
                self.model = await asyncio.to_thread(self._build_model)
            except Exception as e:
                logger.error("Face model loading failed", model=self.model_name, error=str(e))
                raise ModelLoadError(f"Failed to load face model '{self.model_name}': {e}") from e
            logger.info("Face models loaded", model=self.model_name)

    async def __aenter__(self) -> "InsightFaceExtractor":
        await self.load()
        return self

    async def __aexit__(self, exc_type: Optional[type], exc_val: Optional[Exception],
                        exc_tb: Optional[Any]) -> None:
        logger.debug("Releasing InsightFace model")
        self.model = None

    def _load_and_validate_image(self, image_bytes: bytes) -> np.ndarray:
        """Decode image bytes and downscale images above MAX_IMAGE_PIXELS."""
        if not image_bytes:
            raise InvalidImageError("Empty image data")

        nparr = np.frombuffer(image_bytes, np.uint8)
        img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if img is None:
            raise InvalidImageError("Failed to decode image")

        height, width = img.shape[:2]
        pixels = width * height

        if pixels > settings.MAX_IMAGE_PIXELS:
            scale = math.sqrt(settings.MAX_IMAGE_PIXELS / pixels)
            new_width = int(width * scale)
            new_height = int(height * scale)

            logger.debug(
                "Resizing large image",
                original_size=(width, height),
                new_size=(new_width, new_height)
            )

            img = cv2.resize(
                img,
                (new_width, new_height),
                interpolation=cv2.INTER_AREA
            )

        return img

    def _convert_to_face(self, face_data: InsightFace, height: int, width: int) -> Face:
        """
        Convert an InsightFace detection to the Face domain model.

        Coordinates are normalised to the 0-1 range of the image size.
        """
        bbox = face_data.bbox.astype(int)
        bounding_box = BoundingBox(
            top=float(max(bbox[1], 0) / height),
            left=float(max(bbox[0], 0) / width),
            width=float((bbox[2] - bbox[0]) / width),
            height=float((bbox[3] - bbox[1]) / height)
        )
        embedding = face_data.normed_embedding if face_data.embedding is not None else None
        return Face(
            bounding_box=bounding_box,
            confidence=float(face_data.det_score),
            embedding=embedding
        )

    def _analyze(self, image_bytes: bytes) -> List[Face]:
        img = self._load_and_validate_image(image_bytes)
        height, width = img.shape[:2]
        try:
            detections = self.model.get(img)
        except Exception as e:
            logger.error("Face processing failed", error=str(e), image_shape=img.shape)
            raise ExtractionError(f"Face analysis failed: {e}") from e

        # SCRFD returns detections ordered by score, most prominent first
        detections = [d for d in detections if float(d.det_score) >= self.min_confidence]
        logger.debug("Face detection results", faces_found=len(detections))
        return [self._convert_to_face(d, height, width) for d in detections]

    async def detect(self, image_bytes: bytes) -> DetectionResult:
        """Detect faces and extract embeddings without blocking the event loop."""
        if not self.is_ready:
            raise NotReadyError("Face models are not loaded yet")
        faces = await asyncio.to_thread(self._analyze, image_bytes)
        return DetectionResult(faces=faces)
