"""Announcer interface."""
from abc import ABC, abstractmethod


class Announcer(ABC):
    """Interface for side-effecting recognition announcements (speech)."""

    @property
    @abstractmethod
    def available(self) -> bool:
        """False when the platform offers no output; announcements are then dropped."""
        pass

    @abstractmethod
    async def announce(self, text: str) -> None:
        """
        Speak the given text. Must not raise when output is unavailable.

        Args:
            text: Text to announce
        """
        pass
