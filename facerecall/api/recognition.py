"""Recognition and camera API endpoints."""
from fastapi import APIRouter, Depends, HTTPException

from facerecall.api.models.person import CameraStatus, RecognitionRequest, RecognitionResponse
from facerecall.core.exceptions import CameraError, InvalidImageError
from facerecall.core.logging import get_logger
from facerecall.domain.interfaces.capture.frame_source import FrameSource
from facerecall.infrastructure.dependencies import get_camera, get_recognition_service
from facerecall.services.file_service import FileService
from facerecall.services.recognition_service import RecognitionService

logger = get_logger(__name__)
router = APIRouter(tags=["recognition"])


@router.post(
    "/recognition",
    response_model=RecognitionResponse,
    summary="Recognize a face",
    description="Analyzes a local image, or the current camera frame, and matches it against enrolled people.",
    responses={409: {"description": "A recognition is already in progress"}},
)
async def recognize(
    request: RecognitionRequest,
    service: RecognitionService = Depends(get_recognition_service),
) -> RecognitionResponse:
    image_bytes = None
    if request.image_path:
        try:
            image_bytes = await FileService().get_file_bytes(request.image_path)
        except InvalidImageError as e:
            raise HTTPException(status_code=400, detail=str(e))

    result = await service.recognize(image_bytes)
    if result is None:
        raise HTTPException(status_code=409, detail="Recognition already in progress")
    return RecognitionResponse.from_result(result)


@router.post("/camera/start", response_model=CameraStatus, summary="Start the camera")
async def start_camera(camera: FrameSource = Depends(get_camera)) -> CameraStatus:
    try:
        camera.start()
    except CameraError as e:
        logger.warning("Camera unavailable", error=str(e))
        raise HTTPException(status_code=503, detail=str(e))
    return CameraStatus(active=camera.is_active)


@router.post("/camera/stop", response_model=CameraStatus, summary="Stop the camera")
async def stop_camera(camera: FrameSource = Depends(get_camera)) -> CameraStatus:
    camera.stop()
    return CameraStatus(active=camera.is_active)
