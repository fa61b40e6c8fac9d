"""Tests for the InsightFace descriptor extractor."""
from pathlib import Path
from types import SimpleNamespace

import cv2
import numpy as np
import pytest

from facerecall.core.exceptions import ExtractionError, InvalidImageError, NotReadyError
from facerecall.services.recognition.insight_face import InsightFaceExtractor

# Test fixtures directory
FIXTURES_DIR = Path(__file__).parent.parent.parent / "fixtures" / "images"


def encoded_image(width: int = 200, height: int = 100) -> bytes:
    ok, buffer = cv2.imencode(".jpg", np.zeros((height, width, 3), dtype=np.uint8))
    assert ok
    return buffer.tobytes()


def detection(bbox, score, embedding=(3.0, 4.0)):
    vector = np.asarray(embedding, dtype=np.float32)
    return SimpleNamespace(
        bbox=np.asarray(bbox, dtype=np.float32),
        det_score=score,
        embedding=vector,
        normed_embedding=vector / np.linalg.norm(vector),
    )


class StubModel:
    def __init__(self, detections=None, error=None):
        self.detections = detections or []
        self.error = error

    def get(self, img):
        if self.error:
            raise self.error
        return list(self.detections)


@pytest.fixture
def extractor() -> InsightFaceExtractor:
    return InsightFaceExtractor(min_confidence=0.5)


class TestInsightFaceExtractor:
    """Test suite for the extractor without the model pack."""

    async def test_detect_before_load(self, extractor):
        assert not extractor.is_ready
        with pytest.raises(NotReadyError):
            await extractor.detect(encoded_image())

    async def test_invalid_image(self, extractor):
        extractor.model = StubModel()
        with pytest.raises(InvalidImageError):
            await extractor.detect(b"not an image")
        with pytest.raises(InvalidImageError):
            await extractor.detect(b"")

    async def test_faces_use_normalized_boxes_and_embeddings(self, extractor):
        extractor.model = StubModel([detection([20, 10, 120, 60], 0.95)])

        result = await extractor.detect(encoded_image(width=200, height=100))

        face = result.faces[0]
        assert face.confidence == pytest.approx(0.95)
        assert face.bounding_box.left == pytest.approx(0.1)
        assert face.bounding_box.top == pytest.approx(0.1)
        assert face.bounding_box.width == pytest.approx(0.5)
        assert face.bounding_box.height == pytest.approx(0.5)
        assert face.embedding.tolist() == pytest.approx([0.6, 0.8])

    async def test_low_confidence_detections_are_dropped(self, extractor):
        extractor.model = StubModel([
            detection([0, 0, 50, 50], 0.9, (1.0, 0.0)),
            detection([60, 0, 110, 50], 0.3, (0.0, 1.0)),
            detection([120, 0, 170, 50], 0.7, (1.0, 1.0)),
        ])

        result = await extractor.detect(encoded_image())

        assert [f.confidence for f in result.faces] == pytest.approx([0.9, 0.7])

    async def test_model_failure(self, extractor):
        extractor.model = StubModel(error=RuntimeError("onnx session failed"))
        with pytest.raises(ExtractionError):
            await extractor.detect(encoded_image())


@pytest.fixture
async def loaded_extractor():
    """Provide an extractor with the real model pack."""
    if not FIXTURES_DIR.exists():
        pytest.skip(f"Test images not found at {FIXTURES_DIR}")
    async with InsightFaceExtractor() as extractor:
        yield extractor


def read_fixture(name: str) -> bytes:
    path = FIXTURES_DIR / name
    if not path.exists():
        pytest.skip(f"Test image not found at {path}")
    return path.read_bytes()


class TestInsightFaceModel:
    """Model-backed checks, run when tests/fixtures/images is present."""

    async def test_detect_single_face(self, loaded_extractor):
        result = await loaded_extractor.detect(read_fixture("single_face.jpg"))

        assert len(result.faces) == 1
        face = result.faces[0]
        assert face.confidence > 0.8
        assert face.embedding.shape == (512,)
        assert np.linalg.norm(face.embedding) == pytest.approx(1.0, abs=1e-3)

    async def test_same_image_has_zero_distance(self, loaded_extractor):
        image = read_fixture("single_face.jpg")

        first = (await loaded_extractor.detect(image)).faces[0]
        second = (await loaded_extractor.detect(image)).faces[0]

        assert np.linalg.norm(first.embedding - second.embedding) == pytest.approx(0.0, abs=1e-5)

    async def test_detect_multiple_faces(self, loaded_extractor):
        result = await loaded_extractor.detect(read_fixture("multiple_faces.jpg"))
        assert len(result.faces) > 1

    async def test_no_face_detected(self, loaded_extractor):
        result = await loaded_extractor.detect(read_fixture("no_faces.jpg"))
        assert len(result.faces) == 0
