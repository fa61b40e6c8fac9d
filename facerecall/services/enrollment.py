"""Enrollment workflow: validate photos and store a person's reference descriptor."""
from pathlib import Path
from typing import List, Optional, Sequence, Union

from facerecall.core.exceptions import FaceRecallError, ValidationError
from facerecall.core.logging import get_logger
from facerecall.domain.entities.person import Person, PersonDetails
from facerecall.domain.interfaces.recognition.face_recognition import DescriptorExtractor
from facerecall.domain.interfaces.storage.person_store import PersonStore
from facerecall.domain.value_objects.enrollment import EnrollmentState, PhotoResult
from facerecall.services.file_service import FileService

logger = get_logger(__name__)

NO_FACE_MESSAGE = "No face detected in image"
MULTIPLE_FACES_MESSAGE = "Multiple faces detected in image"
NO_DESCRIPTOR_MESSAGE = "Please select at least one photo with a detectable face"

PhotoPath = Union[str, Path]


class EnrollmentSession:
    """State of one add-or-edit form.

    A session moves IDLE -> PHOTOS_SELECTED -> VALIDATING -> VALID | INVALID
    and finally SAVED. Sessions for an existing person start in VALID with
    the stored images and embedding preloaded.
    """

    def __init__(self, person: Optional[Person] = None) -> None:
        self.person = person
        self.photos: List[PhotoResult] = []
        self.state = EnrollmentState.IDLE
        self._stored_embedding: Optional[List[float]] = None
        if person is not None:
            self.photos = [PhotoResult(path=path, valid=True) for path in person.images]
            self._stored_embedding = list(person.reference_embedding)
            self.state = EnrollmentState.VALID

    @property
    def is_edit(self) -> bool:
        return self.person is not None

    @property
    def valid_photos(self) -> List[PhotoResult]:
        return [photo for photo in self.photos if photo.valid]

    @property
    def descriptor(self) -> Optional[List[float]]:
        """First valid descriptor of the selection, or the preloaded one."""
        for photo in self.photos:
            if photo.valid and photo.embedding:
                return photo.embedding
        return self._stored_embedding

    @property
    def image_paths(self) -> List[str]:
        return [photo.path for photo in self.photos]

    def discard_photos(self) -> None:
        """Drop the current selection, including any preloaded descriptor."""
        self.photos = []
        self._stored_embedding = None
        self.state = EnrollmentState.PHOTOS_SELECTED

    def set_validated(self, results: List[PhotoResult]) -> None:
        self.photos = list(results)
        self.state = EnrollmentState.VALID if self.valid_photos else EnrollmentState.INVALID


class EnrollmentService:
    """Service running the enrollment workflow.

    Example:
        ```python
        service = EnrollmentService(extractor, store)
        person = await service.enroll(
            PersonDetails(name="Alice", relationship="neighbour"),
            ["~/photos/alice.jpg"],
        )
        ```
    """

    def __init__(
        self,
        extractor: DescriptorExtractor,
        store: PersonStore,
        file_service: Optional[FileService] = None,
    ) -> None:
        """Initialize the enrollment service.

        Args:
            extractor: Face descriptor extractor
            store: Person store receiving enrolled people
            file_service: Reads photo files, defaults to local files
        """
        self._extractor = extractor
        self._store = store
        self._file_service = file_service or FileService()

    async def start(self, person_id: Optional[str] = None) -> EnrollmentSession:
        """Open a session for a new person, or for editing an existing one.

        Raises:
            NotFoundError: If person_id is unknown
        """
        if person_id is None:
            return EnrollmentSession()
        person = await self._store.get_by_id(person_id)
        return EnrollmentSession(person)

    async def process_photo(self, path: PhotoPath) -> PhotoResult:
        """Run single-face detection on one photo.

        Images with more than one face are rejected rather than guessing
        which face is meant.
        """
        try:
            image_bytes = await self._file_service.get_file_bytes(path)
            result = await self._extractor.detect(image_bytes)
        except FaceRecallError as e:
            logger.warning("Photo could not be processed", path=str(path), error=str(e))
            return PhotoResult(path=str(path), valid=False, error=str(e))

        if not result.faces:
            return PhotoResult(path=str(path), valid=False, error=NO_FACE_MESSAGE)
        if len(result.faces) > 1:
            return PhotoResult(path=str(path), valid=False, error=MULTIPLE_FACES_MESSAGE)

        face = result.faces[0]
        if face.embedding is None:
            return PhotoResult(path=str(path), valid=False, error="Face has no descriptor")
        return PhotoResult(
            path=str(path),
            valid=True,
            embedding=[float(x) for x in face.embedding.ravel()],
        )

    async def select_photos(
        self,
        session: EnrollmentSession,
        paths: Sequence[PhotoPath],
    ) -> List[PhotoResult]:
        """Replace the session's selection with new photos and validate them.

        Photos are processed one after another; results are kept in
        selection order, invalid ones annotated with their error.
        """
        if not paths:
            return session.photos

        session.discard_photos()
        session.state = EnrollmentState.VALIDATING
        results = [await self.process_photo(path) for path in paths]
        session.set_validated(results)

        valid = len(session.valid_photos)
        logger.info(
            "Photos validated",
            selected=len(results),
            valid=valid,
            state=session.state.value
        )
        return results

    async def save(self, session: EnrollmentSession, details: PersonDetails) -> Person:
        """Persist the session as a new person or as an update of the edited one.

        The first valid descriptor becomes the reference embedding; every
        selected path, valid or not, is kept as an image.

        Raises:
            ValidationError: If the name is empty, no photo yielded a face, or
                the session was already saved
        """
        if session.state == EnrollmentState.SAVED:
            raise ValidationError("This enrollment has already been saved")
        if not details.name:
            raise ValidationError("Please enter a name for the person")

        descriptor = session.descriptor
        if session.state != EnrollmentState.VALID or not descriptor:
            raise ValidationError(
                NO_DESCRIPTOR_MESSAGE,
                details={"photos": [photo.model_dump(exclude={"embedding"}) for photo in session.photos]}
            )

        if session.is_edit:
            person = await self._store.update(
                session.person.id,
                {
                    "name": details.name,
                    "relationship": details.relationship,
                    "notes": details.notes,
                    "images": session.image_paths,
                    "reference_embedding": descriptor,
                },
            )
        else:
            person = await self._store.add(
                Person(
                    name=details.name,
                    relationship=details.relationship,
                    notes=details.notes,
                    reference_embedding=descriptor,
                    images=session.image_paths,
                )
            )

        session.person = person
        session.state = EnrollmentState.SAVED
        return person

    async def enroll(self, details: PersonDetails, paths: Sequence[PhotoPath]) -> Person:
        """Enroll a new person from photos in one step.

        Raises:
            ValidationError: If the name is empty or no photo has exactly one face
        """
        session = await self.start()
        await self.select_photos(session, paths)
        return await self.save(session, details)

    async def edit(
        self,
        person_id: str,
        details: PersonDetails,
        paths: Optional[Sequence[PhotoPath]] = None,
    ) -> Person:
        """Edit a person, optionally replacing their photos.

        Without new photos the stored images and embedding are kept.

        Raises:
            NotFoundError: If person_id is unknown
            ValidationError: If new photos were given and none has exactly one face
        """
        session = await self.start(person_id)
        if paths:
            await self.select_photos(session, paths)
        return await self.save(session, details)
