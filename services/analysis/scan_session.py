# services/analysis/scan_session.py
import asyncio
import logging
from typing import Optional, Union

from core.enums import AnalysisMode, PrivacyLevel
from core.exceptions import (
    FrameCaptureError,
    MissingQueryError,
    ScanInProgressError,
    ScanSessionClosedError,
    SourceNotReadyError,
)
from core.models import AnalysisResult
from services.access_control.registry import CameraRegistry
from services.ingest.frame_sampler import FrameSampler
from services.ingest.video_source import VideoSource
from .dispatcher import AnalysisDispatcher
from .modes import get_mode_spec

logger = logging.getLogger(__name__)

CAPTURE_FAILED_TEXT = "Failed to capture video frames."


class ScanSession:
    """
    Capture-then-analyze for one camera while it is being viewed.

    Only one scan runs at a time; a second ``scan`` while one is in flight is
    rejected. ``close`` abandons the in-flight scan. No registry lock is held
    while scanning.
    """

    def __init__(
        self,
        camera_id: str,
        source: VideoSource,
        sampler: FrameSampler,
        dispatcher: AnalysisDispatcher,
        registry: Optional[CameraRegistry] = None,
    ):
        self.camera_id = camera_id
        self.source = source
        self.sampler = sampler
        self.dispatcher = dispatcher
        self.registry = registry

        self.progress = 0
        self.result: Optional[AnalysisResult] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def analyzing(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    async def scan(
        self,
        mode: Union[AnalysisMode, str],
        target_description: Optional[str] = None,
    ) -> Optional[AnalysisResult]:
        """
        Run one scan. Returns the result, or None if the session was closed
        while the scan was in flight.

        Raises:
            ScanSessionClosedError, ScanInProgressError, MissingQueryError,
            SourceNotReadyError
        """
        if self._closed:
            raise ScanSessionClosedError(f"Viewing session for camera {self.camera_id} is closed")
        if self.analyzing:
            raise ScanInProgressError(f"A scan is already running for camera {self.camera_id}")

        spec = get_mode_spec(mode)
        if spec.requires_query and not (target_description or "").strip():
            raise MissingQueryError(f"{spec.mode.value} analysis requires a target description")

        self.progress = 0
        self.result = None
        self._task = asyncio.get_running_loop().create_task(
            self._run(spec.mode, target_description),
            name=f"scan_{self.camera_id}",
        )

        try:
            self.result = await self._task
            return self.result
        except asyncio.CancelledError:
            if self._closed:
                logger.info(f"🛑 Scan abandoned for camera {self.camera_id}")
                return None
            raise
        finally:
            self._task = None

    async def _run(self, mode: AnalysisMode, target_description: Optional[str]) -> AnalysisResult:
        try:
            batch = await self.sampler.capture(self.source, on_progress=self._set_progress)
        except SourceNotReadyError:
            logger.warning(f"⚠️ Video not ready for capture on camera {self.camera_id}")
            raise
        except FrameCaptureError as e:
            logger.error(f"❌ Frame capture error on camera {self.camera_id}: {e}")
            return AnalysisResult.failed(CAPTURE_FAILED_TEXT, mode=mode, error=str(e))

        self.progress = 50
        result = await self.dispatcher.analyze(batch, mode, target_description)
        self.progress = 100
        return result

    def _set_progress(self, value: int):
        self.progress = value

    def apply_privacy_recommendation(self) -> bool:
        """Blur faces on this camera when the last result recommends it"""
        if self.registry is None or self.result is None or not self.result.privacy_recommendation:
            return False
        return self.registry.set_privacy(self.camera_id, PrivacyLevel.BLUR_FACES) is not None

    async def close(self):
        """Leave the viewing context, abandoning any in-flight scan"""
        self._closed = True
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"🔇 Abandoned scan ended with {type(e).__name__}: {e}")
