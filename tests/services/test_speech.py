"""Tests for spoken announcements."""
import pytest

from facerecall.domain.entities.person import Person
from facerecall.domain.value_objects.recognition import AnnouncementMode
from facerecall.services import speech
from facerecall.services.speech import NullAnnouncer, SpeechAnnouncer, announcement_text
from tests.fakes import ALICE


@pytest.mark.parametrize(
    "mode, relationship, notes, expected",
    [
        (AnnouncementMode.NONE, "neighbour", None, None),
        (AnnouncementMode.NAME, "neighbour", "Brings the mail", "Alice"),
        (AnnouncementMode.FULL, "neighbour", None, "Alice, your neighbour."),
        (AnnouncementMode.FULL, None, None, "Alice, your contact."),
        ("full", "sister", "Call on Sundays", "Alice, your sister. Call on Sundays"),
    ],
)
def test_announcement_text(mode, relationship, notes, expected):
    person = Person(name="Alice", relationship=relationship, notes=notes, reference_embedding=ALICE)
    assert announcement_text(person, mode) == expected


async def test_null_announcer_is_silent():
    announcer = NullAnnouncer()
    await announcer.announce("Alice")
    assert not announcer.available


async def test_speech_falls_back_to_silent_when_engine_is_missing(monkeypatch):
    def broken_init(*args, **kwargs):
        raise RuntimeError("no speech driver")

    monkeypatch.setattr(speech.pyttsx3, "init", broken_init)
    announcer = SpeechAnnouncer(rate=1.0, volume=1.0)
    try:
        await announcer.announce("Alice")
        assert not announcer.available
        # Once disabled, later announcements return immediately
        await announcer.announce("Bob")
    finally:
        announcer.close()


async def test_speech_uses_the_engine(monkeypatch):
    spoken = []

    class RecordingEngine:
        def __init__(self):
            self.properties = {"rate": 200, "volume": 1.0, "voices": []}

        def getProperty(self, name):
            return self.properties[name]

        def setProperty(self, name, value):
            self.properties[name] = value

        def say(self, text):
            spoken.append(text)

        def runAndWait(self):
            pass

    engine = RecordingEngine()
    monkeypatch.setattr(speech.pyttsx3, "init", lambda *args, **kwargs: engine)
    announcer = SpeechAnnouncer(rate=0.9, volume=0.5)
    try:
        await announcer.announce("Alice")
    finally:
        announcer.close()

    assert spoken == ["Alice"]
    assert engine.properties["rate"] == 180
    assert engine.properties["volume"] == 0.5
