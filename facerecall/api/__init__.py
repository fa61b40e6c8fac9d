"""API v1 router initialization."""
from fastapi import APIRouter

from .people import router as people_router
from .recognition import router as recognition_router

# Create v1 router
router = APIRouter()

router.include_router(people_router, prefix="/people")
router.include_router(recognition_router)
