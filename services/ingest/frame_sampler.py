# services/ingest/frame_sampler.py
import asyncio
import base64
import logging
import time
from typing import Awaitable, Callable, List, Optional, Tuple

import cv2
import numpy as np

from app.settings import CaptureConfig, settings
from core.exceptions import FrameCaptureError, SourceNotReadyError
from core.models import FrameBatch
from shared.decorators.timing import time_execution
from .video_source import VideoSource

logger = logging.getLogger(__name__)

# Share of the scan progress bar covered by capture
CAPTURE_PROGRESS_SPAN = 40


class FrameSampler:
    """
    Pulls a fixed number of frames from a live source at a fixed cadence.

    Frames are downscaled to at most ``max_width`` (aspect ratio preserved,
    never upscaled), JPEG encoded and base64 encoded, in capture order.
    """

    def __init__(
        self,
        config: Optional[CaptureConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or settings.capture
        self._sleep = sleep

    async def capture(
        self,
        source: VideoSource,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> FrameBatch:
        """
        Capture ``frame_count`` frames, waiting ``interval_ms`` between them.

        Raises:
            SourceNotReadyError: the source has not buffered enough data.
            FrameCaptureError: a snapshot or its encoding failed.
        """
        if not source.is_ready():
            raise SourceNotReadyError("Video not ready for capture")

        frame_count = self.config.frame_count
        interval = self.config.interval_ms / 1000.0
        frames: List[str] = []
        size: Tuple[int, int] = (0, 0)
        start_time = time.perf_counter()

        for index in range(frame_count):
            image = source.snapshot()
            if image is None or getattr(image, "size", 0) == 0:
                raise FrameCaptureError(f"Snapshot {index + 1}/{frame_count} returned no image")

            encoded, size = self.encode_frame(image)
            frames.append(encoded)

            if on_progress is not None:
                on_progress(round((index + 1) / frame_count * CAPTURE_PROGRESS_SPAN))

            if index < frame_count - 1:
                await self._sleep(interval)

        capture_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"📸 Captured {len(frames)} frame(s) at {size[0]}x{size[1]} in {capture_ms:.0f} ms")

        return FrameBatch(frames=tuple(frames), width=size[0], height=size[1], capture_ms=capture_ms)

    @time_execution
    def encode_frame(self, image: np.ndarray) -> Tuple[str, Tuple[int, int]]:
        """Downscale and encode one frame. Returns (base64 JPEG, (width, height))."""
        try:
            scaled = self.scale_frame(image, self.config.max_width)
            ok, buffer = cv2.imencode(".jpg", scaled, [cv2.IMWRITE_JPEG_QUALITY, self.config.jpeg_quality])
        except cv2.error as e:
            logger.error(f"❌ OpenCV could not encode frame of shape {getattr(image, 'shape', None)}: {e}")
            raise FrameCaptureError(f"Frame encoding failed: {e}") from e
        if not ok:
            raise FrameCaptureError("JPEG encoding failed")

        height, width = scaled.shape[:2]
        return base64.b64encode(buffer.tobytes()).decode("ascii"), (width, height)

    @staticmethod
    def scale_frame(image: np.ndarray, max_width: int) -> np.ndarray:
        height, width = image.shape[:2]
        if width <= max_width:
            return image

        new_size = (max_width, max(1, (height * max_width) // width))
        return cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)
