"""Person store interface."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ...entities.person import Person


class PersonStore(ABC):
    """Interface for persisting enrolled people.

    Concurrent writes to the same record are last-writer-wins. All stored
    reference embeddings have the same length.
    """

    @abstractmethod
    async def add(self, person: Person) -> Person:
        """
        Insert a new person.

        Args:
            person: Person to store; any identifier on it is ignored

        Returns:
            The stored person with assigned identifier and creation time

        Raises:
            ValidationError: If the name is empty or the reference embedding is missing
                or its length differs from the stored embeddings
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def list(self) -> List[Person]:
        """
        Return all people ordered by name ascending.

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def get_by_id(self, person_id: str) -> Person:
        """
        Return a person by identifier.

        Raises:
            NotFoundError: If no person has this identifier
        """
        pass

    @abstractmethod
    async def update(self, person_id: str, fields: Dict[str, Any]) -> Person:
        """
        Merge fields into an existing person.

        Args:
            person_id: Identifier of the person
            fields: Subset of name, relationship, notes, reference_embedding, images

        Returns:
            The updated person

        Raises:
            NotFoundError: If no person has this identifier
            ValidationError: If the merged record would be invalid
        """
        pass

    @abstractmethod
    async def remove(self, person_id: str) -> None:
        """
        Delete a person.

        Raises:
            NotFoundError: If no person has this identifier
        """
        pass

    @abstractmethod
    async def touch_last_seen(self, person_id: str) -> Person:
        """
        Set the last recognized timestamp to now.

        Raises:
            NotFoundError: If no person has this identifier
        """
        pass

    @abstractmethod
    async def clear(self) -> int:
        """
        Delete every person.

        Returns:
            Number of deleted records
        """
        pass

    @abstractmethod
    async def add_all(self, people: List[Person], replace: bool = False) -> List[Person]:
        """
        Insert several people in one transaction.

        Either every person is stored or none is.

        Args:
            people: People to store; identifiers on them are ignored
            replace: Delete every existing person first, in the same transaction

        Returns:
            The stored people, in input order

        Raises:
            ValidationError: If any person is invalid or the embedding lengths disagree
            StorageError: If the write fails
        """
        pass
