"""FastAPI dependency providers."""
from typing import AsyncGenerator

from fastapi import Depends

from facerecall.core.container import ServiceContainer, container
from facerecall.core.exceptions import NotReadyError
from facerecall.domain.interfaces.capture.frame_source import FrameSource
from facerecall.services.enrollment import EnrollmentService
from facerecall.services.people import PeopleService
from facerecall.services.recognition_service import RecognitionService


async def get_container() -> ServiceContainer:
    """Dependency provider for the global ServiceContainer instance.

    Raises:
        NotReadyError: If the application has not finished starting up
    """
    if not container.initialized:
        raise NotReadyError("Services are not initialized yet")
    return container


async def get_people_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[PeopleService, None]:
    """Provide the people management service."""
    yield container.people_service


async def get_enrollment_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[EnrollmentService, None]:
    """Provide the enrollment workflow service."""
    yield container.enrollment_service


async def get_recognition_service(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[RecognitionService, None]:
    """Provide the recognition workflow service."""
    yield container.recognition_service


async def get_camera(
    container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[FrameSource, None]:
    """Provide the camera frame source."""
    yield container.camera
