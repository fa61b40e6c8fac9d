"""Service interfaces package."""
from .capture import FrameSource
from .notification import Announcer
from .recognition import DescriptorExtractor
from .storage import PersonStore

__all__ = ["Announcer", "DescriptorExtractor", "FrameSource", "PersonStore"]
