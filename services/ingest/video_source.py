# services/ingest/video_source.py
import cv2
import logging
import numpy as np
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class VideoSource(ABC):
    """Live video source that frames are sampled from"""

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether enough data is buffered to take a snapshot"""
        pass

    @abstractmethod
    def snapshot(self) -> Optional[np.ndarray]:
        """BGR image of the current display frame, or None"""
        pass


class OpenCVVideoSource(VideoSource):
    """VideoSource over ``cv2.VideoCapture`` (RTSP/HTTP URL, file path or device index)"""

    def __init__(self, url: str):
        self.url = url
        self.capture = None

    def open(self) -> bool:
        if not self.url or str(self.url).strip() == "":
            logger.error("Video source URL is empty or None")
            return False

        try:
            self.capture = cv2.VideoCapture(self.url)
            # Keep only the latest frame buffered
            self.capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)

            if not self.capture.isOpened():
                logger.error("Failed to open video source: %s", self.url)
                return False

            logger.info("Video source opened: %s", self.url)
            return True
        except cv2.error as e:
            logger.error("Exception while opening video source %s: %s", self.url, str(e))
            return False

    def is_ready(self) -> bool:
        return self.capture is not None and self.capture.isOpened()

    def snapshot(self) -> Optional[np.ndarray]:
        if not self.is_ready():
            return None
        try:
            ret, frame = self.capture.read()
            return frame if ret else None
        except cv2.error as e:
            logger.error("Error reading frame from %s: %s", self.url, str(e))
            return None

    def close(self):
        if self.capture:
            self.capture.release()
            self.capture = None
            logger.info("Video source closed: %s", self.url)

    def __enter__(self) -> "OpenCVVideoSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
