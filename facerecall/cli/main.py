"""Command line entry point for the face recall application."""
import argparse
import asyncio
import sys
from typing import List, Optional

from facerecall import __version__
from facerecall.cli import detect_faces, people, recognize
from facerecall.core.container import ServiceContainer
from facerecall.core.exceptions import FaceRecallError, StorageError
from facerecall.core.logging import get_logger, setup_logging
from facerecall.services.camera import StaticImageSource

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="facerecall",
        description="Remember the people you meet: enroll faces and recognize them later",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log verbosity on stderr (defaults to FACERECALL_LOG_LEVEL)"
    )
    parser.add_argument(
        "--database",
        help="SQLAlchemy URL of the people database (defaults to the configured data directory)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    people.register(subparsers)
    recognize.register(subparsers)
    detect_faces.register(subparsers)
    return parser


async def dispatch(args: argparse.Namespace) -> int:
    camera = None
    if getattr(args, "camera_image", None):
        camera = StaticImageSource(args.camera_image)
    container = ServiceContainer(database_url=args.database, camera=camera)
    # Editing photos needs the models, editing details does not
    load_models = args.needs_models or bool(getattr(args, "photos", None))

    try:
        await container.initialize(load_models=load_models)
    except StorageError as e:
        print(f"Failed to load data: {e}", file=sys.stderr)
        return 2

    try:
        return await args.handler(args, container)
    finally:
        await container.cleanup()


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        exit_code = asyncio.run(dispatch(args))
    except KeyboardInterrupt:
        print("\nStopped.")
        exit_code = 130
    except FaceRecallError as e:
        logger.debug("Command failed", command=args.command, error=e.message, details=e.details)
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
