"""People management: listing, editing details, deletion, backup export and import."""
import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from facerecall.core.exceptions import ConfirmationRequiredError, ValidationError
from facerecall.core.logging import get_logger
from facerecall.domain.entities.person import Person, PersonDetails
from facerecall.domain.interfaces.storage.person_store import PersonStore

logger = get_logger(__name__)

IDENTIFIER_KEYS = ("id", "_id")


def default_export_name(today: Optional[date] = None) -> str:
    """File name used for backups, e.g. ``face-recall-backup-2024-05-01.json``."""
    return f"face-recall-backup-{(today or date.today()).isoformat()}.json"


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class PeopleService:
    """Service for managing enrolled people.

    Destructive operations only run when called with ``confirmed=True``;
    otherwise they raise ConfirmationRequiredError and change nothing.
    """

    def __init__(self, store: PersonStore) -> None:
        """Initialize the people service.

        Args:
            store: Person store holding enrolled people
        """
        self._store = store

    async def list_people(self) -> List[Person]:
        return await self._store.list()

    async def get_person(self, person_id: str) -> Person:
        return await self._store.get_by_id(person_id)

    async def update_details(
        self,
        person_id: str,
        name: Optional[str] = None,
        relationship: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Person:
        """Change text fields without touching images or the embedding.

        Arguments left as None keep their stored value; pass an empty string
        to clear relationship or notes.
        """
        current = await self._store.get_by_id(person_id)
        details = PersonDetails(
            name=current.name if name is None else name,
            relationship=current.relationship if relationship is None else relationship,
            notes=current.notes if notes is None else notes,
        )
        return await self._store.update(person_id, details.model_dump())

    async def delete_person(self, person_id: str, confirmed: bool = False) -> Person:
        """Delete one person.

        Returns:
            The deleted person

        Raises:
            ConfirmationRequiredError: If not confirmed
            NotFoundError: If person_id is unknown
        """
        person = await self._store.get_by_id(person_id)
        if not confirmed:
            raise ConfirmationRequiredError(
                f"Are you sure you want to delete {person.name} from your records?",
                details={"person_id": person_id}
            )
        await self._store.remove(person_id)
        return person

    async def clear_all(self, confirmed: bool = False) -> int:
        """Delete every person.

        Returns:
            Number of deleted people

        Raises:
            ConfirmationRequiredError: If not confirmed
        """
        if not confirmed:
            raise ConfirmationRequiredError(
                "This will permanently delete all people data. This cannot be undone!"
            )
        return await self._store.clear()

    async def export_people(self, path: Union[str, Path]) -> int:
        """Write all people to a JSON array file.

        Args:
            path: Target file, or a directory receiving the default backup name

        Returns:
            Number of exported people
        """
        target = Path(path).expanduser()
        if target.is_dir():
            target = target / default_export_name()
        people = await self._store.list()
        payload = json.dumps([person.model_dump(mode="json") for person in people], indent=2)
        await asyncio.to_thread(_write_text, target, payload)
        logger.info("People exported", path=str(target), count=len(people))
        return len(people)

    async def import_people(
        self,
        path: Union[str, Path],
        replace: bool = True,
        confirmed: bool = False,
    ) -> List[Person]:
        """Import people from a JSON array file.

        Identifiers in the file are dropped and every entry is inserted as a
        new record. Records exported by older versions (camelCase keys) are
        accepted as long as their face descriptors have the same length as
        the people already stored (or, when replacing, as each other).

        Args:
            path: Backup file
            replace: Remove existing people first
            confirmed: Required when replace is True

        Returns:
            The inserted people

        Raises:
            ValidationError: If the file is not a JSON array of valid people,
                or the face descriptor lengths disagree
            ConfirmationRequiredError: If replacing without confirmation
        """
        source = Path(path).expanduser()
        try:
            raw = await asyncio.to_thread(source.read_text, encoding="utf-8")
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError) as e:
            raise ValidationError(f"Could not read import file {source}: {e}") from e

        people = self._parse_people(data)

        if replace and not confirmed:
            raise ConfirmationRequiredError(
                "Importing will replace your existing people data. Continue?"
            )

        # One transaction: a failed import leaves the existing people untouched
        imported = await self._store.add_all(people, replace=replace)
        logger.info("People imported", path=str(source), count=len(imported), replace=replace)
        return imported

    @staticmethod
    def _parse_people(data: Any) -> List[Person]:
        if not isinstance(data, list):
            raise ValidationError("Invalid data format: expected a JSON array of people")
        people = []
        for index, entry in enumerate(data):
            if not isinstance(entry, dict):
                raise ValidationError(f"Invalid data format: entry {index} is not an object")
            fields = {k: v for k, v in entry.items() if k not in IDENTIFIER_KEYS}
            try:
                person = Person.model_validate(fields)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid person at entry {index}: {e}") from e
            if not person.name or not person.reference_embedding:
                raise ValidationError(
                    f"Invalid person at entry {index}: name and face descriptor are required"
                )
            people.append(person)
        return people
