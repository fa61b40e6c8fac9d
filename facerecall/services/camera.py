"""Camera frame sources."""
import asyncio
import threading
from pathlib import Path
from typing import List, Optional, Union

import cv2
import numpy as np

from facerecall.core.config import settings
from facerecall.core.exceptions import CameraError
from facerecall.core.logging import get_logger
from facerecall.domain.interfaces.capture.frame_source import FrameSource

logger = get_logger(__name__)


def encode_frame(frame: np.ndarray) -> bytes:
    """JPEG-encode a BGR frame."""
    ok, buffer = cv2.imencode(".jpg", frame)
    if not ok:
        raise CameraError("Failed to encode camera frame")
    return buffer.tobytes()


class OpenCVCamera(FrameSource):
    """Webcam access through OpenCV's VideoCapture.

    The device is an exclusive resource: it is held from start() until
    stop(), and stop() releases it before returning.
    """

    def __init__(self, index: Optional[int] = None) -> None:
        self.index = settings.CAMERA_INDEX if index is None else index
        self._capture: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()

    @staticmethod
    def list_devices(limit: Optional[int] = None) -> List[int]:
        """Probe camera indices and return those that open.

        Args:
            limit: Number of indices to probe, defaults to CAMERA_PROBE_LIMIT
        """
        found = []
        for index in range(settings.CAMERA_PROBE_LIMIT if limit is None else limit):
            capture = cv2.VideoCapture(index)
            try:
                if capture.isOpened():
                    found.append(index)
            finally:
                capture.release()
        return found

    @property
    def is_active(self) -> bool:
        return self._capture is not None

    def start(self) -> None:
        with self._lock:
            if self._capture is not None:
                logger.warning("Camera already active", index=self.index)
                return
            capture = cv2.VideoCapture(self.index)
            if not capture.isOpened():
                capture.release()
                raise CameraError(
                    "No camera detected. Please connect a webcam.",
                    details={"index": self.index}
                )
            self._capture = capture
        logger.info("Camera started", index=self.index)

    def stop(self) -> None:
        with self._lock:
            if self._capture is None:
                return
            self._capture.release()
            self._capture = None
        logger.info("Camera stopped", index=self.index)

    def _read(self) -> bytes:
        with self._lock:
            if self._capture is None:
                raise CameraError("Camera is not active")
            ok, frame = self._capture.read()
        if not ok or frame is None:
            raise CameraError("Failed to read a frame from the camera")
        return encode_frame(frame)

    async def capture(self) -> bytes:
        return await asyncio.to_thread(self._read)


class StaticImageSource(FrameSource):
    """Serves one image file as the camera frame, for machines without a webcam."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()
        self._frame: Optional[bytes] = None

    @property
    def is_active(self) -> bool:
        return self._frame is not None

    def start(self) -> None:
        if self._frame is not None:
            logger.warning("Test image source already active", path=str(self.path))
            return
        try:
            self._frame = self.path.read_bytes()
        except OSError as e:
            raise CameraError(f"Could not load test image {self.path}: {e}") from e
        logger.info("Test image source started", path=str(self.path))

    def stop(self) -> None:
        self._frame = None

    async def capture(self) -> bytes:
        if self._frame is None:
            raise CameraError("Camera is not active")
        return self._frame
