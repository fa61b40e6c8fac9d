"""Database repositories for the people database."""
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from facerecall.core.exceptions import NotFoundError
from facerecall.infrastructure.database.models import PersonRecord


class PersonRepository:
    """Repository for person record operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def create(self, **values: Any) -> PersonRecord:
        """Create a new person record.

        Args:
            **values: Column values; id and created_at are assigned when missing

        Returns:
            PersonRecord: Created record
        """
        record = PersonRecord(**values)
        self._session.add(record)
        await self._session.flush()
        return record

    async def find(self, person_id: str) -> Optional[PersonRecord]:
        """Get a person record by ID, or None."""
        return await self._session.get(PersonRecord, person_id)

    async def get(self, person_id: str) -> PersonRecord:
        """Get a person record by ID.

        Raises:
            NotFoundError: If the record does not exist
        """
        record = await self.find(person_id)
        if record is None:
            raise NotFoundError(f"Person not found: {person_id}", details={"person_id": person_id})
        return record

    async def list_by_name(self) -> List[PersonRecord]:
        """Get all records ordered by name, then creation time."""
        stmt = select(PersonRecord).order_by(PersonRecord.name, PersonRecord.created_at)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def set_fields(self, person_id: str, fields: Dict[str, Any]) -> PersonRecord:
        """Assign column values on an existing record.

        Raises:
            NotFoundError: If the record does not exist
        """
        record = await self.get(person_id)
        for key, value in fields.items():
            setattr(record, key, value)
        await self._session.flush()
        return record

    async def delete(self, person_id: str) -> None:
        """Delete a record.

        Raises:
            NotFoundError: If the record does not exist
        """
        record = await self.get(person_id)
        await self._session.delete(record)
        await self._session.flush()

    async def delete_all(self) -> int:
        """Delete every record and return how many there were."""
        count = await self._session.scalar(select(func.count()).select_from(PersonRecord))
        await self._session.execute(delete(PersonRecord))
        return int(count or 0)

    async def embedding_length(self, exclude_id: Optional[str] = None) -> Optional[int]:
        """Length of the stored reference embeddings, or None when there are none.

        Args:
            exclude_id: Record to leave out, e.g. the one being updated
        """
        stmt = select(PersonRecord.reference_embedding).limit(1)
        if exclude_id is not None:
            stmt = stmt.where(PersonRecord.id != exclude_id)
        embedding = await self._session.scalar(stmt)
        return len(embedding) if embedding else None
