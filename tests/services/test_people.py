"""Tests for people management, backup export and import."""
import json
from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from facerecall.core.exceptions import (
    ConfirmationRequiredError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from facerecall.domain.entities.person import Person
from facerecall.infrastructure.database.repositories import PersonRepository
from facerecall.services.face_matching import FaceMatcher
from facerecall.services.people import PeopleService, default_export_name
from facerecall.services.recognition_service import RecognitionService
from tests.fakes import ALICE, BOB, STRANGER


@pytest.fixture
def service(store) -> PeopleService:
    return PeopleService(store=store)


@pytest.fixture
async def alice(store) -> Person:
    return await store.add(
        Person(name="Alice", relationship="neighbour", notes="Brings the mail", reference_embedding=ALICE)
    )


class TestPeopleService:
    """Test suite for listing, editing and deleting people."""

    async def test_update_details_keeps_embedding(self, service, alice):
        updated = await service.update_details(alice.id, name="Alice Smith", relationship="")

        assert updated.name == "Alice Smith"
        assert updated.relationship is None
        assert updated.notes == "Brings the mail"
        assert updated.reference_embedding == ALICE

    async def test_delete_requires_confirmation(self, service, store, alice):
        with pytest.raises(ConfirmationRequiredError):
            await service.delete_person(alice.id)
        assert (await store.get_by_id(alice.id)).name == "Alice"

        deleted = await service.delete_person(alice.id, confirmed=True)

        assert deleted.id == alice.id
        assert await service.list_people() == []

    async def test_delete_unknown_person(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_person("missing", confirmed=True)

    async def test_clear_all(self, service, store, alice):
        await store.add(Person(name="Bob", reference_embedding=BOB))

        with pytest.raises(ConfirmationRequiredError):
            await service.clear_all()
        assert len(await service.list_people()) == 2

        assert await service.clear_all(confirmed=True) == 2
        assert await service.list_people() == []


class TestBackup:
    """Test suite for export and import."""

    def test_default_export_name(self):
        assert default_export_name(date(2024, 5, 1)) == "face-recall-backup-2024-05-01.json"

    async def test_export_to_directory(self, service, alice, tmp_path):
        count = await service.export_people(tmp_path)

        files = list(tmp_path.glob("face-recall-backup-*.json"))
        assert count == 1
        assert len(files) == 1
        data = json.loads(files[0].read_text())
        assert data[0]["name"] == "Alice"
        assert data[0]["reference_embedding"] == ALICE

    async def test_export_then_import_replaces_people(self, service, store, alice, tmp_path):
        backup = tmp_path / "backup.json"
        await service.export_people(backup)
        await store.add(Person(name="Bob", reference_embedding=BOB))

        imported = await service.import_people(backup, replace=True, confirmed=True)

        people = await service.list_people()
        assert [p.name for p in people] == ["Alice"]
        assert imported[0].id != alice.id
        assert people[0].reference_embedding == ALICE
        assert people[0].relationship == "neighbour"
        assert people[0].created_at == alice.created_at

    async def test_replace_requires_confirmation(self, service, store, alice, tmp_path):
        backup = tmp_path / "backup.json"
        backup.write_text("[]")

        with pytest.raises(ConfirmationRequiredError):
            await service.import_people(backup)
        assert len(await service.list_people()) == 1

    async def test_append_keeps_existing_people(self, service, alice, tmp_path):
        backup = tmp_path / "backup.json"
        backup.write_text(json.dumps([{"name": "Bob", "reference_embedding": BOB}]))

        await service.import_people(backup, replace=False)

        assert [p.name for p in await service.list_people()] == ["Alice", "Bob"]

    async def test_import_legacy_backup(self, service, tmp_path):
        backup = tmp_path / "legacy.json"
        backup.write_text(json.dumps([
            {
                "_id": "1690000000000",
                "name": "Grandma",
                "relationship": "grandmother",
                "notes": "",
                "faceDescriptor": {"0": 0.0, "1": 0.0, "2": 1.0, "3": 0.0},
                "images": ["data:image/jpeg;base64,AAAA"],
                "createdAt": "2023-07-22T10:00:00.000Z",
                "lastRecognized": None,
            }
        ]))

        imported = await service.import_people(backup, replace=True, confirmed=True)

        person = imported[0]
        assert person.id != "1690000000000"
        assert person.name == "Grandma"
        assert person.notes is None
        assert person.reference_embedding == [0.0, 0.0, 1.0, 0.0]
        assert person.created_at == datetime(2023, 7, 22, 10, 0, tzinfo=timezone.utc)

    async def test_failed_replace_keeps_existing_people(self, service, store, alice, tmp_path, monkeypatch):
        await store.add(Person(name="Bob", reference_embedding=BOB))
        backup = tmp_path / "backup.json"
        backup.write_text(json.dumps([
            {"name": "Carol", "reference_embedding": STRANGER},
            {"name": "Dan", "reference_embedding": BOB},
        ]))
        create = PersonRepository.create

        async def failing_create(self, **values):
            if values["name"] == "Dan":
                raise OperationalError("INSERT INTO people", {}, Exception("database is locked"))
            return await create(self, **values)

        monkeypatch.setattr(PersonRepository, "create", failing_create)

        with pytest.raises(StorageError):
            await service.import_people(backup, replace=True, confirmed=True)

        assert [p.name for p in await service.list_people()] == ["Alice", "Bob"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "Alice"},
            ["Alice"],
            [{"name": "Alice"}],
            [{"name": "", "reference_embedding": ALICE}],
        ],
    )
    async def test_invalid_import_changes_nothing(self, service, alice, tmp_path, payload):
        backup = tmp_path / "bad.json"
        backup.write_text(json.dumps(payload))

        with pytest.raises(ValidationError):
            await service.import_people(backup, replace=True, confirmed=True)
        assert [p.name for p in await service.list_people()] == ["Alice"]

    async def test_unreadable_import_file(self, service, tmp_path):
        backup = tmp_path / "bad.json"
        backup.write_text("{not json")

        with pytest.raises(ValidationError):
            await service.import_people(backup, replace=False)


class TestLegacyBackupRecognition:
    """Test suite for recognizing people merged in from older backups."""

    @pytest.fixture
    async def recognition(self, extractor, store):
        recognition = RecognitionService(extractor=extractor, store=store, matcher=FaceMatcher())
        yield recognition
        await recognition.drain()

    @staticmethod
    def legacy_backup(tmp_path, descriptor):
        backup = tmp_path / "legacy.json"
        backup.write_text(json.dumps([
            {
                "_id": "1690000000000",
                "name": "Grandma",
                "faceDescriptor": {str(i): value for i, value in enumerate(descriptor)},
                "images": [],
                "createdAt": "2023-07-22T10:00:00.000Z",
            }
        ]))
        return backup

    async def test_appended_people_are_recognized_alongside_existing(self, service, recognition, alice, tmp_path):
        await service.import_people(self.legacy_backup(tmp_path, STRANGER), replace=False)

        grandma = await recognition.recognize(b"stranger")
        existing = await recognition.recognize(b"alice-probe")

        assert grandma.recognized
        assert grandma.person.name == "Grandma"
        assert existing.recognized
        assert existing.person.id == alice.id

    async def test_descriptor_of_another_length_is_rejected(self, service, recognition, alice, tmp_path):
        with pytest.raises(ValidationError):
            await service.import_people(self.legacy_backup(tmp_path, [0.0, 1.0]), replace=False)

        assert [p.name for p in await service.list_people()] == ["Alice"]
        result = await recognition.recognize(b"alice-probe")
        assert result.recognized
        assert result.person.id == alice.id
