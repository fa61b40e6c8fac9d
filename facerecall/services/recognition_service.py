"""Recognition workflow: capture a frame, match the face, report who it is."""
import asyncio
from typing import Optional, Set, Union

from facerecall.core.config import settings
from facerecall.core.exceptions import CameraError
from facerecall.core.logging import get_logger
from facerecall.domain.entities.face import Face
from facerecall.domain.entities.person import Person
from facerecall.domain.interfaces.capture.frame_source import FrameSource
from facerecall.domain.interfaces.notification.announcer import Announcer
from facerecall.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from facerecall.domain.interfaces.storage.person_store import PersonStore
from facerecall.domain.value_objects.recognition import (
    AnnouncementMode,
    RecognitionResult,
    RecognitionState,
)
from facerecall.services.face_matching import FaceMatcher
from facerecall.services.speech import NullAnnouncer, announcement_text

logger = get_logger(__name__)

NO_FACE_REASON = "No face detected"
NO_PEOPLE_REASON = "No people saved to recognize. Please add people first."
NOT_RECOGNIZED_REASON = "Face not recognized. Try adding this person first."


class RecognitionService:
    """Runs one recognition attempt at a time.

    A request made while another attempt is in flight is rejected and
    returns None. The gallery is rebuilt from the store for every attempt,
    so added, edited and deleted people take effect immediately.

    Example:
        ```python
        service = RecognitionService(extractor, store, matcher, camera=camera)
        camera.start()
        result = await service.recognize()
        if result and result.recognized:
            print(result.person.name)
        ```
    """

    def __init__(
        self,
        extractor: DescriptorExtractor,
        store: PersonStore,
        matcher: FaceMatcher,
        camera: Optional[FrameSource] = None,
        announcer: Optional[Announcer] = None,
        threshold: Optional[float] = None,
        announcement_mode: Optional[Union[AnnouncementMode, str]] = None,
    ) -> None:
        """Initialize the recognition service.

        Args:
            extractor: Face descriptor extractor
            store: Person store queried for the gallery
            matcher: Nearest-match decision maker
            camera: Frame source used when recognize() gets no image
            announcer: Speech output, silent when omitted
            threshold: Maximum accepted distance, defaults to RECOGNITION_THRESHOLD
            announcement_mode: none, name or full, defaults to ANNOUNCEMENT_MODE
        """
        self._extractor = extractor
        self._store = store
        self._matcher = matcher
        self._camera = camera
        self._announcer = announcer or NullAnnouncer()
        self.threshold = settings.RECOGNITION_THRESHOLD if threshold is None else threshold
        self.announcement_mode = AnnouncementMode(announcement_mode or settings.ANNOUNCEMENT_MODE)
        self.state = RecognitionState.IDLE
        self._in_flight = False
        self._background: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def recognize(self, image_bytes: Optional[bytes] = None) -> Optional[RecognitionResult]:
        """Recognize the face in the given image or, without one, in the current camera frame.

        Returns:
            RecognitionResult, or None when another attempt is still running.
            Failures are reported as a not-recognized result, never raised.
        """
        if self._in_flight:
            logger.debug("Recognition already in progress, request ignored")
            return None

        self._in_flight = True
        try:
            result = await self._run(image_bytes)
        except Exception as e:
            logger.error("Recognition failed", error=str(e), exc_info=True)
            result = self._not_recognized(f"Error analyzing face: {e}")
        finally:
            self._in_flight = False
            self.state = RecognitionState.IDLE
        return result

    async def _run(self, image_bytes: Optional[bytes]) -> RecognitionResult:
        if image_bytes is None:
            self.state = RecognitionState.CAPTURING
            if self._camera is None:
                raise CameraError("No camera configured")
            image_bytes = await self._camera.capture()

        self.state = RecognitionState.EXTRACTING
        detection = await self._extractor.detect(image_bytes)
        if not detection.faces:
            return self._not_recognized(NO_FACE_REASON)

        # Only the most prominent face is matched
        face = detection.faces[0]

        people = await self._store.list()
        gallery = self._matcher.build_gallery(people)
        if gallery.is_empty:
            return self._not_recognized(NO_PEOPLE_REASON, face=face)

        self.state = RecognitionState.MATCHING
        match = self._matcher.match(face.embedding, gallery, self.threshold)
        if not match.matched:
            return self._not_recognized(NOT_RECOGNIZED_REASON, face=face, distance=match.distance)

        person = next(p for p in people if p.id == match.person_id)
        self.state = RecognitionState.RECOGNIZED
        logger.info("Person recognized", person_id=person.id, distance=match.distance)

        self._spawn(self._touch_last_seen(person.id))
        self._spawn(self._announce(person))

        return RecognitionResult(
            recognized=True,
            state=RecognitionState.RECOGNIZED,
            person=person,
            distance=match.distance,
            bounding_box=face.bounding_box,
            expressions=face.expressions,
        )

    def _not_recognized(
        self,
        reason: str,
        face: Optional[Face] = None,
        distance: Optional[float] = None,
    ) -> RecognitionResult:
        self.state = RecognitionState.NOT_RECOGNIZED
        logger.info("Face not recognized", reason=reason)
        return RecognitionResult(
            recognized=False,
            state=RecognitionState.NOT_RECOGNIZED,
            reason=reason,
            distance=distance,
            bounding_box=face.bounding_box if face is not None else None,
            expressions=face.expressions if face is not None else None,
        )

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _touch_last_seen(self, person_id: str) -> None:
        try:
            await self._store.touch_last_seen(person_id)
        except Exception as e:
            logger.warning("Could not update last recognized time", person_id=person_id, error=str(e))

    async def _announce(self, person: Person) -> None:
        text = announcement_text(person, self.announcement_mode)
        if text is None:
            return
        try:
            await self._announcer.announce(text)
        except Exception as e:
            logger.warning("Announcement failed", person_id=person.id, error=str(e))

    async def drain(self) -> None:
        """Wait for pending background updates, e.g. before shutdown."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
