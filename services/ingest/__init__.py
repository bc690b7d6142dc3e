"""
Frame ingest: live video sources and the frame sampler.
"""

from .video_source import VideoSource, OpenCVVideoSource
from .frame_sampler import FrameSampler

__all__ = [
    "VideoSource",
    "OpenCVVideoSource",
    "FrameSampler"
]
