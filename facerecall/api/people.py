"""People API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from facerecall.api.models.person import (
    EnrollPersonRequest,
    EnrollPersonResponse,
    PersonResponse,
    PhotoStatus,
    UpdatePersonRequest,
)
from facerecall.core.exceptions import (
    ConfirmationRequiredError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from facerecall.core.logging import get_logger
from facerecall.domain.entities.person import PersonDetails
from facerecall.infrastructure.dependencies import (
    get_enrollment_service,
    get_people_service,
)
from facerecall.services.enrollment import EnrollmentService
from facerecall.services.people import PeopleService

logger = get_logger(__name__)
router = APIRouter(
    tags=["people"],
    responses={
        400: {"description": "Invalid request"},
        404: {"description": "Person not found"},
        500: {"description": "Internal server error"}
    }
)


def _photo_statuses(error: ValidationError) -> List[dict]:
    return error.details.get("photos", [])


@router.get("", response_model=List[PersonResponse], summary="List enrolled people")
async def list_people(
    service: PeopleService = Depends(get_people_service),
) -> List[PersonResponse]:
    """List all enrolled people ordered by name."""
    try:
        people = await service.list_people()
    except StorageError as e:
        logger.error("Failed to list people", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    return [PersonResponse.from_person(person) for person in people]


@router.get("/{person_id}", response_model=PersonResponse, summary="Get one person")
async def get_person(
    person_id: str,
    service: PeopleService = Depends(get_people_service),
) -> PersonResponse:
    try:
        person = await service.get_person(person_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        logger.error("Failed to load person", person_id=person_id, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    return PersonResponse.from_person(person)


@router.post(
    "",
    response_model=EnrollPersonResponse,
    status_code=201,
    summary="Enroll a person",
    description="Validates local photos, requires at least one with exactly one face, and stores the person.",
)
async def enroll_person(
    request: EnrollPersonRequest,
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollPersonResponse:
    """Enroll a new person from photos on this machine.

    Raises:
        HTTPException: 400 with per-photo results when no photo is usable
    """
    session = await service.start()
    photos = await service.select_photos(session, request.photo_paths)
    try:
        person = await service.save(
            session,
            PersonDetails(name=request.name, relationship=request.relationship, notes=request.notes),
        )
    except ValidationError as e:
        logger.warning("Enrollment rejected", error=str(e))
        raise HTTPException(
            status_code=400,
            detail={"message": str(e), "photos": _photo_statuses(e)}
        )
    except StorageError as e:
        logger.error("Failed to store person", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to store person")
    return EnrollPersonResponse(
        person=PersonResponse.from_person(person),
        photos=[PhotoStatus.from_result(photo) for photo in photos],
    )


@router.patch("/{person_id}", response_model=EnrollPersonResponse, summary="Edit a person")
async def update_person(
    person_id: str,
    request: UpdatePersonRequest,
    people: PeopleService = Depends(get_people_service),
    enrollment: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollPersonResponse:
    """Edit text fields and optionally replace the photos of a person."""
    try:
        if request.photo_paths:
            session = await enrollment.start(person_id)
            photos = await enrollment.select_photos(session, request.photo_paths)
            current = session.person
            person = await enrollment.save(
                session,
                PersonDetails(
                    name=request.name if request.name is not None else current.name,
                    relationship=(
                        request.relationship if request.relationship is not None else current.relationship
                    ),
                    notes=request.notes if request.notes is not None else current.notes,
                ),
            )
        else:
            photos = []
            person = await people.update_details(
                person_id,
                name=request.name,
                relationship=request.relationship,
                notes=request.notes,
            )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail={"message": str(e), "photos": _photo_statuses(e)}
        )
    except StorageError as e:
        logger.error("Failed to update person", person_id=person_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to update person")
    return EnrollPersonResponse(
        person=PersonResponse.from_person(person),
        photos=[PhotoStatus.from_result(photo) for photo in photos],
    )


@router.delete("/{person_id}", status_code=204, summary="Delete a person")
async def delete_person(
    person_id: str,
    confirm: bool = False,
    service: PeopleService = Depends(get_people_service),
) -> Response:
    """Delete a person. Requires ``?confirm=true``."""
    try:
        await service.delete_person(person_id, confirmed=confirm)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfirmationRequiredError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        logger.error("Failed to delete person", person_id=person_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to delete person")
    return Response(status_code=204)
