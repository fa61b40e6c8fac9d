"""Shared fixtures: fakes for the face model, camera and speech, and a temporary people database."""
from pathlib import Path
from typing import Callable

import pytest

from facerecall.core.container import ServiceContainer
from facerecall.infrastructure.database.person_store import SqlPersonStore
from facerecall.infrastructure.database.session import (
    create_engine,
    create_session_factory,
    init_database,
)
from tests.fakes import FakeCamera, FakeExtractor, RecordingAnnouncer


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'data' / 'people.db'}"


@pytest.fixture
async def store(database_url: str):
    """Provide a person store over a fresh SQLite file."""
    engine = create_engine(database_url)
    await init_database(engine)
    yield SqlPersonStore(create_session_factory(engine))
    await engine.dispose()


@pytest.fixture
async def extractor() -> FakeExtractor:
    fake = FakeExtractor()
    await fake.load()
    return fake


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def announcer() -> RecordingAnnouncer:
    return RecordingAnnouncer()


@pytest.fixture
def write_photo(tmp_path: Path) -> Callable[[str, bytes], str]:
    """Write a photo file whose bytes the fake extractor recognizes."""
    photo_dir = tmp_path / "photos"
    photo_dir.mkdir()

    def _write(name: str, content: bytes) -> str:
        path = photo_dir / name
        path.write_bytes(content)
        return str(path)

    return _write


@pytest.fixture
async def container(database_url, extractor, camera, announcer):
    """Provide a fully initialized container wired to the fakes."""
    services = ServiceContainer(
        database_url=database_url,
        extractor=extractor,
        camera=camera,
        announcer=announcer,
    )
    await services.initialize()
    yield services
    await services.cleanup()
