"""CLI commands for managing enrolled people."""
import argparse
from typing import List

from facerecall.core.container import ServiceContainer
from facerecall.core.exceptions import ConfirmationRequiredError, ValidationError
from facerecall.domain.entities.person import Person, PersonDetails
from facerecall.domain.value_objects.enrollment import PhotoResult


def confirm(prompt: str, assume_yes: bool = False) -> bool:
    """Ask a yes/no question on the terminal."""
    if assume_yes:
        return True
    answer = input(f"{prompt} [y/N] ").strip().lower()
    return answer in ("y", "yes")


def format_person(person: Person, verbose: bool = False) -> str:
    line = person.name
    if person.relationship:
        line = f"{line} ({person.relationship})"
    line = f"{person.id}  {line}"
    if not verbose:
        return line
    lines = [line]
    if person.notes:
        lines.append(f"    notes: {person.notes}")
    lines.append(f"    photos: {len(person.images)}")
    for path in person.images:
        lines.append(f"      - {path}")
    lines.append(f"    added: {person.created_at:%Y-%m-%d %H:%M}" if person.created_at else "    added: -")
    last_seen = f"{person.last_recognized:%Y-%m-%d %H:%M}" if person.last_recognized else "never"
    lines.append(f"    last recognized: {last_seen}")
    return "\n".join(lines)


def print_photo_results(photos: List[PhotoResult]) -> None:
    for photo in photos:
        status = "ok" if photo.valid else f"rejected: {photo.error}"
        print(f"  {photo.path}: {status}")


async def add_person(args: argparse.Namespace, container: ServiceContainer) -> int:
    service = container.enrollment_service
    session = await service.start()
    photos = await service.select_photos(session, args.photos)
    print_photo_results(photos)
    person = await service.save(
        session,
        PersonDetails(name=args.name, relationship=args.relationship, notes=args.notes),
    )
    print(f"{person.name} has been added successfully! (id {person.id})")
    return 0


async def edit_person(args: argparse.Namespace, container: ServiceContainer) -> int:
    if args.photos:
        service = container.enrollment_service
        session = await service.start(args.person_id)
        current = session.person
        photos = await service.select_photos(session, args.photos)
        print_photo_results(photos)
        person = await service.save(
            session,
            PersonDetails(
                name=args.name if args.name is not None else current.name,
                relationship=args.relationship if args.relationship is not None else current.relationship,
                notes=args.notes if args.notes is not None else current.notes,
            ),
        )
    else:
        person = await container.people_service.update_details(
            args.person_id,
            name=args.name,
            relationship=args.relationship,
            notes=args.notes,
        )
    print(f"{person.name} has been updated successfully!")
    return 0


async def list_people(args: argparse.Namespace, container: ServiceContainer) -> int:
    people = await container.people_service.list_people()
    if not people:
        print("No people saved yet.")
        return 0
    for person in people:
        print(format_person(person, verbose=args.verbose))
    return 0


async def show_person(args: argparse.Namespace, container: ServiceContainer) -> int:
    person = await container.people_service.get_person(args.person_id)
    print(format_person(person, verbose=True))
    return 0


async def delete_person(args: argparse.Namespace, container: ServiceContainer) -> int:
    service = container.people_service
    try:
        person = await service.delete_person(args.person_id, confirmed=args.yes)
    except ConfirmationRequiredError as e:
        if not confirm(str(e)):
            print("Cancelled.")
            return 1
        person = await service.delete_person(args.person_id, confirmed=True)
    print(f"{person.name} has been deleted.")
    return 0


async def clear_people(args: argparse.Namespace, container: ServiceContainer) -> int:
    if not args.yes:
        if not confirm("Are you sure you want to delete ALL saved people?"):
            print("Cancelled.")
            return 1
        if not confirm("This will permanently delete all people data. Are you absolutely sure?"):
            print("Cancelled.")
            return 1
    count = await container.people_service.clear_all(confirmed=True)
    print(f"All data has been cleared ({count} people).")
    return 0


async def export_people(args: argparse.Namespace, container: ServiceContainer) -> int:
    count = await container.people_service.export_people(args.path)
    print(f"Exported {count} people to {args.path}")
    return 0


async def import_people(args: argparse.Namespace, container: ServiceContainer) -> int:
    replace = not args.append
    confirmed = args.yes
    if replace and not confirmed:
        confirmed = confirm("Importing will replace your existing people data. Continue?")
        if not confirmed:
            print("Cancelled.")
            return 1
    try:
        imported = await container.people_service.import_people(
            args.path, replace=replace, confirmed=confirmed
        )
    except ValidationError as e:
        print(f"Failed to import data: {e}")
        return 1
    print(f"Imported {len(imported)} people.")
    return 0


def register(subparsers: argparse._SubParsersAction) -> None:
    """Add the people management subcommands."""
    add = subparsers.add_parser("add", help="Enroll a new person from photos")
    add.add_argument("name", help="Name of the person")
    add.add_argument("photos", nargs="+", help="Photo files, each showing exactly one face")
    add.add_argument("-r", "--relationship", help="How you know the person")
    add.add_argument("-n", "--notes", help="Notes shown when the person is recognized")
    add.set_defaults(handler=add_person, needs_models=True)

    edit = subparsers.add_parser("edit", help="Edit a person")
    edit.add_argument("person_id", help="Identifier of the person")
    edit.add_argument("--name", help="New name")
    edit.add_argument("-r", "--relationship", help="New relationship (empty string clears it)")
    edit.add_argument("-n", "--notes", help="New notes (empty string clears them)")
    edit.add_argument("--photos", nargs="+", help="Replace the photos and face descriptor")
    edit.set_defaults(handler=edit_person, needs_models=False)

    list_cmd = subparsers.add_parser("list", help="List enrolled people")
    list_cmd.add_argument("-v", "--verbose", action="store_true", help="Show all details")
    list_cmd.set_defaults(handler=list_people, needs_models=False)

    show = subparsers.add_parser("show", help="Show one person")
    show.add_argument("person_id", help="Identifier of the person")
    show.set_defaults(handler=show_person, needs_models=False)

    delete = subparsers.add_parser("delete", help="Delete a person")
    delete.add_argument("person_id", help="Identifier of the person")
    delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    delete.set_defaults(handler=delete_person, needs_models=False)

    clear = subparsers.add_parser("clear", help="Delete all people")
    clear.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    clear.set_defaults(handler=clear_people, needs_models=False)

    export = subparsers.add_parser("export", help="Export all people to a JSON file")
    export.add_argument("path", help="Target file or directory")
    export.set_defaults(handler=export_people, needs_models=False)

    import_cmd = subparsers.add_parser("import", help="Import people from a JSON file")
    import_cmd.add_argument("path", help="Backup file")
    import_cmd.add_argument("--append", action="store_true", help="Keep existing people")
    import_cmd.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    import_cmd.set_defaults(handler=import_people, needs_models=False)
