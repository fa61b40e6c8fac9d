"""Service container for dependency injection."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from facerecall.core.config import settings
from facerecall.core.logging import get_logger
from facerecall.domain.interfaces.capture.frame_source import FrameSource
from facerecall.domain.interfaces.notification.announcer import Announcer
from facerecall.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from facerecall.domain.interfaces.storage.person_store import PersonStore
from facerecall.domain.value_objects.recognition import AnnouncementMode
from facerecall.infrastructure.database.person_store import SqlPersonStore
from facerecall.infrastructure.database.session import (
    create_engine,
    create_session_factory,
    init_database,
)
from facerecall.services.camera import OpenCVCamera
from facerecall.services.enrollment import EnrollmentService
from facerecall.services.face_matching import FaceMatcher
from facerecall.services.file_service import FileService
from facerecall.services.people import PeopleService
from facerecall.services.recognition.insight_face import InsightFaceExtractor
from facerecall.services.recognition_service import RecognitionService
from facerecall.services.speech import NullAnnouncer, SpeechAnnouncer

logger = get_logger(__name__)


class ServiceContainer:
    """Container for application services.

    This container manages the lifecycle and dependencies of all services in the application.
    It ensures proper initialization order and provides a single source of truth for service instances.

    Example:
        ```python
        container = ServiceContainer()
        await container.initialize()

        person = await container.enrollment_service.enroll(details, paths)
        result = await container.recognition_service.recognize(image_bytes)
        ```
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        extractor: Optional[DescriptorExtractor] = None,
        camera: Optional[FrameSource] = None,
        announcer: Optional[Announcer] = None,
    ) -> None:
        """Initialize empty container.

        Args:
            database_url: Overrides the configured database location
            extractor: Overrides the InsightFace extractor
            camera: Overrides the OpenCV camera
            announcer: Overrides the speech announcer
        """
        self.database_url = database_url or settings.database_url
        self.engine: Optional[AsyncEngine] = None

        # Core services - Use interface type hints
        self.person_store: Optional[PersonStore] = None
        self.extractor: Optional[DescriptorExtractor] = extractor
        self.camera: Optional[FrameSource] = camera
        self.announcer: Optional[Announcer] = announcer
        self.matcher: Optional[FaceMatcher] = None

        # Workflow services (depend on interfaces)
        self.enrollment_service: Optional[EnrollmentService] = None
        self.people_service: Optional[PeopleService] = None
        self.recognition_service: Optional[RecognitionService] = None

    @property
    def initialized(self) -> bool:
        return self.recognition_service is not None

    async def initialize(self, load_models: bool = True) -> None:
        """Initialize all services in the correct order.

        Args:
            load_models: Load the face models now; commands that never
                touch faces can skip the startup cost

        Raises:
            StorageError: If the people database cannot be initialized
            ModelLoadError: If the face models cannot be loaded
        """
        if self.initialized:
            return

        self.engine = create_engine(self.database_url, echo=settings.DEBUG)
        await init_database(self.engine)
        self.person_store = SqlPersonStore(create_session_factory(self.engine))

        if self.extractor is None:
            self.extractor = InsightFaceExtractor()
        if load_models:
            await self.extractor.load()

        if self.camera is None:
            self.camera = OpenCVCamera()
        if self.announcer is None:
            mode = AnnouncementMode(settings.ANNOUNCEMENT_MODE)
            self.announcer = NullAnnouncer() if mode == AnnouncementMode.NONE else SpeechAnnouncer()

        self.matcher = FaceMatcher()
        self.enrollment_service = EnrollmentService(
            extractor=self.extractor,
            store=self.person_store,
            file_service=FileService(),
        )
        self.people_service = PeopleService(store=self.person_store)
        self.recognition_service = RecognitionService(
            extractor=self.extractor,
            store=self.person_store,
            matcher=self.matcher,
            camera=self.camera,
            announcer=self.announcer,
        )
        logger.info("Services initialized", database=self.database_url)

    async def cleanup(self) -> None:
        """Cleanup all services in reverse order of initialization."""
        if self.recognition_service is not None:
            await self.recognition_service.drain()
        self.recognition_service = None
        self.people_service = None
        self.enrollment_service = None
        self.matcher = None

        if self.camera is not None:
            self.camera.stop()
        if isinstance(self.announcer, SpeechAnnouncer):
            self.announcer.close()

        self.person_store = None
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None


# Global container instance
container = ServiceContainer()
