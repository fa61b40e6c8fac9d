"""SQLite-backed implementation of the person store."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from facerecall.core.exceptions import StorageError, ValidationError
from facerecall.core.logging import get_logger
from facerecall.domain.entities.person import Person, coerce_embedding, utcnow
from facerecall.domain.interfaces.storage.person_store import PersonStore
from facerecall.infrastructure.database.models import PersonRecord
from facerecall.infrastructure.database.unit_of_work import UnitOfWork

logger = get_logger(__name__)

UPDATABLE_FIELDS = {"name", "relationship", "notes", "reference_embedding", "images"}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops the offset; everything is written in UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_person(record: PersonRecord) -> Person:
    """Convert a database row to the domain entity."""
    return Person(
        id=record.id,
        name=record.name,
        relationship=record.relationship,
        notes=record.notes,
        reference_embedding=list(record.reference_embedding or []),
        images=list(record.images or []),
        created_at=_as_utc(record.created_at),
        last_recognized=_as_utc(record.last_recognized),
    )


def validate_person_fields(name: Optional[str], reference_embedding: Optional[List[float]]) -> None:
    """Check the invariants every stored person must satisfy.

    Raises:
        ValidationError: If the name is blank or the embedding is missing
    """
    if name is None or not name.strip():
        raise ValidationError("Name must not be empty")
    if not reference_embedding:
        raise ValidationError("Reference embedding is missing")


def check_embedding_length(reference_embedding: List[float], expected: Optional[int]) -> None:
    """Reject an embedding whose length differs from the stored ones.

    Raises:
        ValidationError: If expected is set and the lengths differ
    """
    if expected is not None and len(reference_embedding) != expected:
        raise ValidationError(
            f"Reference embedding has {len(reference_embedding)} values, "
            f"stored embeddings have {expected}",
            details={"length": len(reference_embedding), "expected": expected}
        )


def _insert_values(person: Person) -> Dict[str, Any]:
    values: Dict[str, Any] = {
        "name": person.name.strip(),
        "relationship": person.relationship,
        "notes": person.notes,
        "reference_embedding": list(person.reference_embedding),
        "images": list(person.images),
        "last_recognized": person.last_recognized,
    }
    # Imported records keep their original creation time
    if person.created_at is not None:
        values["created_at"] = person.created_at
    return values


class SqlPersonStore(PersonStore):
    """Person store over an embedded SQLite database.

    Every operation runs in its own unit of work, so each call is one short
    transaction and a failing call leaves the database unchanged.

    Example:
        ```python
        engine = create_engine(settings.database_url)
        await init_database(engine)
        store = SqlPersonStore(create_session_factory(engine))
        person = await store.add(Person(name="Alice", reference_embedding=vector))
        ```
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory producing sessions bound to the people database
        """
        self._session_factory = session_factory

    async def add(self, person: Person) -> Person:
        validate_person_fields(person.name, person.reference_embedding)
        try:
            async with UnitOfWork(self._session_factory) as uow:
                check_embedding_length(person.reference_embedding, await uow.people.embedding_length())
                record = await uow.people.create(**_insert_values(person))
                stored = to_person(record)
        except SQLAlchemyError as e:
            raise self._storage_error("add", e)
        logger.info("Person added", person_id=stored.id, name=stored.name)
        return stored

    async def add_all(self, people: List[Person], replace: bool = False) -> List[Person]:
        for person in people:
            validate_person_fields(person.name, person.reference_embedding)
        try:
            async with UnitOfWork(self._session_factory) as uow:
                removed = await uow.people.delete_all() if replace else 0
                expected = None if replace else await uow.people.embedding_length()
                stored = []
                for person in people:
                    if expected is None:
                        expected = len(person.reference_embedding)
                    check_embedding_length(person.reference_embedding, expected)
                    record = await uow.people.create(**_insert_values(person))
                    stored.append(to_person(record))
        except SQLAlchemyError as e:
            raise self._storage_error("add_all", e)
        logger.info("People added", count=len(stored), replaced=removed)
        return stored

    async def list(self) -> List[Person]:
        try:
            async with UnitOfWork(self._session_factory, readonly=True) as uow:
                records = await uow.people.list_by_name()
                return [to_person(record) for record in records]
        except SQLAlchemyError as e:
            raise self._storage_error("list", e)

    async def get_by_id(self, person_id: str) -> Person:
        try:
            async with UnitOfWork(self._session_factory, readonly=True) as uow:
                record = await uow.people.get(person_id)
                return to_person(record)
        except SQLAlchemyError as e:
            raise self._storage_error("get", e)

    async def update(self, person_id: str, fields: Dict[str, Any]) -> Person:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)}
            )
        changes = dict(fields)
        if "name" in changes and changes["name"] is not None:
            changes["name"] = changes["name"].strip()
        if "reference_embedding" in changes:
            changes["reference_embedding"] = coerce_embedding(changes["reference_embedding"])
        if "images" in changes:
            changes["images"] = list(changes["images"] or [])
        try:
            async with UnitOfWork(self._session_factory) as uow:
                record = await uow.people.get(person_id)
                validate_person_fields(
                    changes.get("name", record.name),
                    changes.get("reference_embedding", record.reference_embedding),
                )
                if "reference_embedding" in changes:
                    check_embedding_length(
                        changes["reference_embedding"],
                        await uow.people.embedding_length(exclude_id=person_id),
                    )
                record = await uow.people.set_fields(person_id, changes)
                updated = to_person(record)
        except SQLAlchemyError as e:
            raise self._storage_error("update", e)
        logger.info("Person updated", person_id=person_id, fields=sorted(changes))
        return updated

    async def remove(self, person_id: str) -> None:
        try:
            async with UnitOfWork(self._session_factory) as uow:
                await uow.people.delete(person_id)
        except SQLAlchemyError as e:
            raise self._storage_error("remove", e)
        logger.info("Person removed", person_id=person_id)

    async def touch_last_seen(self, person_id: str) -> Person:
        try:
            async with UnitOfWork(self._session_factory) as uow:
                record = await uow.people.set_fields(person_id, {"last_recognized": utcnow()})
                return to_person(record)
        except SQLAlchemyError as e:
            raise self._storage_error("touch_last_seen", e)

    async def clear(self) -> int:
        try:
            async with UnitOfWork(self._session_factory) as uow:
                count = await uow.people.delete_all()
        except SQLAlchemyError as e:
            raise self._storage_error("clear", e)
        logger.info("All people removed", count=count)
        return count

    @staticmethod
    def _storage_error(operation: str, error: Exception) -> StorageError:
        logger.error("Person store operation failed", operation=operation, error=str(error))
        return StorageError(
            f"Person store {operation} failed: {error}",
            details={"operation": operation}
        )
