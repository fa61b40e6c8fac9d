from .frame_source import FrameSource
