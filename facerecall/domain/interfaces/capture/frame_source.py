"""Frame source interface."""
from abc import ABC, abstractmethod


class FrameSource(ABC):
    """Interface for anything that can hand out the current camera frame."""

    @property
    @abstractmethod
    def is_active(self) -> bool:
        pass

    @abstractmethod
    def start(self) -> None:
        """
        Acquire the device. Starting an active source is a no-op.

        Raises:
            CameraError: If no device can be opened
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Release the device immediately. Stopping an inactive source is a no-op."""
        pass

    @abstractmethod
    async def capture(self) -> bytes:
        """
        Grab the current frame.

        Returns:
            JPEG-encoded frame

        Raises:
            CameraError: If the source is not active or the read fails
        """
        pass
