"""Unit of work pattern implementation."""
from types import TracebackType
from typing import Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from facerecall.infrastructure.database.repositories import PersonRepository


class UnitOfWork:
    """One transaction against the people database.

    A session is opened on entry and closed on exit. The work is committed
    when the block completes and rolled back when it raises; read-only
    units never commit.

    Example:
        ```python
        async with UnitOfWork(session_factory) as uow:
            record = await uow.people.get(person_id)
            record.notes = "Lives next door"
        ```
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        readonly: bool = False,
    ) -> None:
        """Initialize unit of work.

        Args:
            session_factory: Factory producing sessions bound to the people database
            readonly: Roll back instead of committing on a clean exit
        """
        self._session_factory = session_factory
        self._readonly = readonly
        self._session: Optional[AsyncSession] = None
        self.people: Optional[PersonRepository] = None

    async def __aenter__(self) -> "UnitOfWork":
        self._session = self._session_factory()
        self.people = PersonRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        try:
            if exc_type is not None or self._readonly:
                await self.rollback()
            else:
                await self.commit()
        finally:
            await self._session.close()
            self._session = None
            self.people = None

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        await self._session.rollback()
