# tests/conftest.py
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pytest

from app.settings import CaptureConfig, EscalationConfig, VisionConfig
from core.models import Camera, LocationVerdict
from infrastructure.external.location_verifier import LocationVerifier
from infrastructure.monitoring.metrics import ServiceMetrics
from services.access_control.registry import CameraRegistry
from services.ingest.video_source import VideoSource


def make_camera(camera_id: str = "cam-1", **overrides) -> Camera:
    data: Dict[str, Any] = {
        "id": camera_id,
        "name": f"Camera {camera_id}",
        "location": "Connaught Place, New Delhi",
        "lat": 28.6315,
        "lng": 77.2167,
        "owner_id": "owner-1",
    }
    data.update(overrides)
    return Camera(**data)


class FakeVideoSource(VideoSource):
    """Serves solid BGR frames of a fixed size"""

    def __init__(self, width: int = 1280, height: int = 720, ready: bool = True, frames: Optional[List] = None):
        self.width = width
        self.height = height
        self.ready = ready
        self.frames = frames
        self.snapshots = 0

    def is_ready(self) -> bool:
        return self.ready

    def snapshot(self):
        self.snapshots += 1
        if self.frames is not None:
            return self.frames.pop(0) if self.frames else None
        frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        frame[:, :, 1] = 128
        return frame


class FakeVisionClient:
    """Stands in for VisionModelClient; records every generate() call"""

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate(
        self,
        instruction: str,
        images: Sequence[str] = (),
        structured: bool = False,
        model: Optional[str] = None,
        tools=None,
    ) -> str:
        self.calls.append({
            "instruction": instruction,
            "images": list(images),
            "structured": structured,
            "model": model,
            "tools": tools,
        })
        if self.error is not None:
            raise self.error
        return self.reply


class BlockingClient(FakeVisionClient):
    """Holds every generate() call until released"""

    def __init__(self, reply: str = "A quiet street"):
        super().__init__(reply)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def generate(self, *args, **kwargs):
        self.started.set()
        await self.release.wait()
        return await super().generate(*args, **kwargs)


class StaticVerifier(LocationVerifier):
    def __init__(self, verdict: Optional[LocationVerdict] = None, error: Optional[Exception] = None):
        self.verdict = verdict
        self.error = error
        self.calls = []

    async def verify(self, location: str, lat: float, lng: float) -> LocationVerdict:
        self.calls.append((location, lat, lng))
        if self.error is not None:
            raise self.error
        return self.verdict


async def no_sleep(seconds: float):
    return None


@pytest.fixture
def metrics():
    return ServiceMetrics()


@pytest.fixture
def cameras():
    return [
        make_camera("cam-1"),
        make_camera("cam-2", auto_approve=True),
        make_camera("cam-3", is_shared=True),
        make_camera("cam-4", pending_access_request=True),
    ]


@pytest.fixture
def registry(cameras, metrics):
    return CameraRegistry(cameras, metrics=metrics)


@pytest.fixture
def vision_config():
    return VisionConfig(api_key="test-key", max_retries=1)


@pytest.fixture
def capture_config():
    return CaptureConfig(frame_count=3, interval_ms=400, max_width=640, jpeg_quality=60)


@pytest.fixture
def escalation_config():
    return EscalationConfig(otp_code="1234", otp_length=4, default_duration_minutes=120, resend_cooldown_seconds=30)
