"""CLI commands for recognizing faces from a photo or the webcam."""
import argparse
import asyncio
from typing import Optional

from facerecall.core.container import ServiceContainer
from facerecall.core.exceptions import CameraError
from facerecall.domain.value_objects.recognition import AnnouncementMode, RecognitionResult
from facerecall.services.file_service import FileService


def format_result(result: RecognitionResult) -> str:
    if not result.recognized:
        return f"Not recognized: {result.reason}"
    person = result.person
    lines = [f"Recognized: {person.name}"]
    if person.relationship:
        lines.append(f"  relationship: {person.relationship}")
    if person.notes:
        lines.append(f"  notes: {person.notes}")
    lines.append(f"  distance: {result.distance:.3f}")
    return "\n".join(lines)


def _apply_overrides(args: argparse.Namespace, container: ServiceContainer) -> None:
    service = container.recognition_service
    if args.threshold is not None:
        service.threshold = args.threshold
    if args.announce is not None:
        service.announcement_mode = AnnouncementMode(args.announce)


async def recognize_once(args: argparse.Namespace, container: ServiceContainer) -> int:
    _apply_overrides(args, container)
    service = container.recognition_service

    image_bytes: Optional[bytes] = None
    if args.image:
        image_bytes = await FileService().get_file_bytes(args.image)
    else:
        container.camera.start()

    try:
        result = await service.recognize(image_bytes)
    finally:
        container.camera.stop()

    print(format_result(result))
    return 0 if result.recognized else 1


async def watch(args: argparse.Namespace, container: ServiceContainer) -> int:
    """Recognize repeatedly from the camera until interrupted."""
    _apply_overrides(args, container)
    service = container.recognition_service
    last_person_id: Optional[str] = None

    container.camera.start()
    print("Watching the camera, press Ctrl+C to stop.")
    try:
        while True:
            result = await service.recognize()
            if result is not None:
                person_id = result.person.id if result.recognized else None
                # Only report changes, so a person standing still is announced once
                if person_id != last_person_id or (not result.recognized and args.verbose):
                    print(format_result(result))
                last_person_id = person_id
            await asyncio.sleep(args.interval)
    except CameraError as e:
        print(f"Camera error: {e}")
        return 1
    finally:
        container.camera.stop()


def register(subparsers: argparse._SubParsersAction) -> None:
    """Add the recognition subcommands."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--threshold",
        type=float,
        help=(
            "Maximum face distance accepted as a match (lower is stricter). "
            "Same-person distances are usually 0.8-1.1, so try 1.0 if known people are missed"
        )
    )
    common.add_argument(
        "--announce",
        choices=[mode.value for mode in AnnouncementMode],
        help="Spoken announcement on recognition"
    )
    common.add_argument(
        "--camera-image",
        help="Use this photo as the camera frame, for machines without a webcam"
    )

    recognize = subparsers.add_parser(
        "recognize", parents=[common], help="Recognize the face in a photo or the current camera frame"
    )
    recognize.add_argument("--image", help="Photo to analyze instead of the camera")
    recognize.set_defaults(handler=recognize_once, needs_models=True)

    watch_cmd = subparsers.add_parser("watch", parents=[common], help="Continuously recognize faces from the camera")
    watch_cmd.add_argument("--interval", type=float, default=1.0, help="Seconds between attempts")
    watch_cmd.add_argument("-v", "--verbose", action="store_true", help="Report every unrecognized frame")
    watch_cmd.set_defaults(handler=watch, needs_models=True)
