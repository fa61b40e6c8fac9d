"""Spoken announcements of recognized people."""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Union

import pyttsx3

from facerecall.core.config import settings
from facerecall.core.logging import get_logger
from facerecall.domain.entities.person import Person
from facerecall.domain.interfaces.notification.announcer import Announcer
from facerecall.domain.value_objects.recognition import AnnouncementMode

logger = get_logger(__name__)


def announcement_text(person: Person, mode: Union[AnnouncementMode, str]) -> Optional[str]:
    """Build the sentence spoken for a recognized person.

    Returns:
        The text to speak, or None when the mode is ``none``
    """
    mode = AnnouncementMode(mode)
    if mode == AnnouncementMode.NONE:
        return None
    if mode == AnnouncementMode.NAME:
        return person.name
    text = f"{person.name}, your {person.relationship or 'contact'}."
    if person.notes:
        text = f"{text} {person.notes}"
    return text


class NullAnnouncer(Announcer):
    """Visual-only operation: every announcement is dropped."""

    @property
    def available(self) -> bool:
        return False

    async def announce(self, text: str) -> None:
        logger.debug("Announcement skipped, speech disabled", text=text)


class SpeechAnnouncer(Announcer):
    """Text-to-speech through pyttsx3.

    The engine is created lazily on a dedicated thread and only ever used
    from that thread, as several platform drivers require. When the platform
    has no speech support the announcer turns itself off and stays silent.
    """

    def __init__(
        self,
        rate: Optional[float] = None,
        volume: Optional[float] = None,
        voice: Optional[str] = None,
    ) -> None:
        self.rate = settings.SPEECH_RATE if rate is None else rate
        self.volume = settings.SPEECH_VOLUME if volume is None else volume
        self.voice = settings.PREFERRED_VOICE if voice is None else voice
        self._engine: Optional[Any] = None
        self._available = True
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="speech")

    @property
    def available(self) -> bool:
        return self._available

    def _init_engine(self) -> Optional[Any]:
        if self._engine is not None or not self._available:
            return self._engine
        try:
            engine = pyttsx3.init()
            engine.setProperty('rate', int(engine.getProperty('rate') * self.rate))
            engine.setProperty('volume', max(0.0, min(1.0, self.volume)))
            if self.voice:
                self._select_voice(engine, self.voice)
        except Exception as e:
            self._available = False
            logger.warning("Speech output unavailable, continuing visual-only", error=str(e))
            return None
        self._engine = engine
        return engine

    @staticmethod
    def _select_voice(engine: Any, wanted: str) -> None:
        wanted_lower = wanted.lower()
        for voice in engine.getProperty('voices') or []:
            if voice.id == wanted or wanted_lower in (voice.name or "").lower():
                engine.setProperty('voice', voice.id)
                logger.debug("Selected voice", voice=voice.name)
                return
        logger.info("Preferred voice not found, using default", voice=wanted)

    def _speak(self, text: str) -> None:
        engine = self._init_engine()
        if engine is None:
            return
        engine.say(text)
        engine.runAndWait()

    async def announce(self, text: str) -> None:
        if not text or not self._available:
            return
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._executor, self._speak, text)
        except Exception as e:
            logger.warning("Announcement failed", error=str(e))

    def close(self) -> None:
        """Stop the speech thread."""
        self._executor.shutdown(wait=False)
