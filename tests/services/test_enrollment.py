"""Tests for the enrollment workflow."""
import pytest

from facerecall.core.exceptions import NotFoundError, ValidationError
from facerecall.domain.entities.person import PersonDetails
from facerecall.domain.value_objects.enrollment import EnrollmentState
from facerecall.services.enrollment import (
    MULTIPLE_FACES_MESSAGE,
    NO_DESCRIPTOR_MESSAGE,
    NO_FACE_MESSAGE,
    EnrollmentService,
)
from tests.fakes import ALICE, BOB


@pytest.fixture
def service(extractor, store) -> EnrollmentService:
    return EnrollmentService(extractor=extractor, store=store)


class TestEnrollment:
    """Test suite for adding people."""

    async def test_enroll_stores_first_valid_descriptor(self, service, store, write_photo):
        photo = write_photo("alice.jpg", b"alice-1")

        person = await service.enroll(PersonDetails(name="Alice", relationship="neighbour"), [photo])

        assert person.id
        assert person.reference_embedding == ALICE
        assert person.images == [photo]
        assert [p.name for p in await store.list()] == ["Alice"]

    async def test_photo_without_face_stores_nothing(self, service, store, write_photo):
        photo = write_photo("landscape.jpg", b"mountains")

        with pytest.raises(ValidationError) as exc_info:
            await service.enroll(PersonDetails(name="Alice"), [photo])

        assert exc_info.value.message == NO_DESCRIPTOR_MESSAGE
        assert exc_info.value.details["photos"] == [
            {"path": photo, "valid": False, "error": NO_FACE_MESSAGE}
        ]
        assert await store.list() == []

    async def test_photo_with_several_faces_is_invalid(self, service, write_photo):
        photo = write_photo("party.jpg", b"group")

        result = await service.process_photo(photo)

        assert not result.valid
        assert result.error == MULTIPLE_FACES_MESSAGE

    async def test_mixed_selection_keeps_every_path(self, service, write_photo):
        group = write_photo("party.jpg", b"group")
        alice = write_photo("alice.jpg", b"alice-2")
        broken = write_photo("broken.png", b"broken")

        session = await service.start()
        results = await service.select_photos(session, [group, broken, alice])

        assert [r.valid for r in results] == [False, False, True]
        assert results[1].error == "Failed to decode image"
        assert session.state == EnrollmentState.VALID

        person = await service.save(session, PersonDetails(name="Alice"))
        assert person.images == [group, broken, alice]
        assert person.reference_embedding == pytest.approx([0.9, 0.1, 0.0, 0.0])
        assert session.state == EnrollmentState.SAVED

    async def test_unsupported_and_missing_files_are_rejected(self, service, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")

        unsupported = await service.process_photo(notes)
        missing = await service.process_photo(tmp_path / "nobody.jpg")

        assert not unsupported.valid
        assert "Unsupported image type" in unsupported.error
        assert not missing.valid
        assert "not found" in missing.error

    async def test_name_is_required(self, service, store, write_photo):
        photo = write_photo("alice.jpg", b"alice-1")

        with pytest.raises(ValidationError):
            await service.enroll(PersonDetails(name="   "), [photo])
        assert await store.list() == []

    async def test_session_cannot_be_saved_twice(self, service, store, write_photo):
        session = await service.start()
        await service.select_photos(session, [write_photo("alice.jpg", b"alice-1")])
        await service.save(session, PersonDetails(name="Alice"))

        with pytest.raises(ValidationError):
            await service.save(session, PersonDetails(name="Alice"))
        assert len(await store.list()) == 1


class TestEditing:
    """Test suite for editing enrolled people."""

    async def test_edit_without_photos_keeps_descriptor(self, service, write_photo):
        photo = write_photo("alice.jpg", b"alice-1")
        person = await service.enroll(PersonDetails(name="Alice"), [photo])

        session = await service.start(person.id)
        assert session.is_edit
        assert session.state == EnrollmentState.VALID

        edited = await service.edit(person.id, PersonDetails(name="Alice Smith", notes="Lives next door"))

        assert edited.id == person.id
        assert edited.name == "Alice Smith"
        assert edited.notes == "Lives next door"
        assert edited.reference_embedding == ALICE
        assert edited.images == [photo]

    async def test_edit_with_new_photos_replaces_descriptor(self, service, write_photo):
        person = await service.enroll(PersonDetails(name="Alice"), [write_photo("a.jpg", b"alice-1")])
        new_photo = write_photo("b.jpg", b"bob-1")

        edited = await service.edit(person.id, PersonDetails(name="Alice"), [new_photo])

        assert edited.reference_embedding == BOB
        assert edited.images == [new_photo]

    async def test_edit_with_only_invalid_photos_fails(self, service, store, write_photo):
        person = await service.enroll(PersonDetails(name="Alice"), [write_photo("a.jpg", b"alice-1")])

        with pytest.raises(ValidationError):
            await service.edit(person.id, PersonDetails(name="Alice"), [write_photo("x.jpg", b"nothing")])

        assert (await store.get_by_id(person.id)).reference_embedding == ALICE

    async def test_edit_unknown_person(self, service):
        with pytest.raises(NotFoundError):
            await service.start("missing")
