# services/analysis/dispatcher.py
import logging
import time
from typing import Optional, Sequence, Union

from app.settings import VisionConfig, settings
from core.enums import AnalysisMode
from core.exceptions import MissingQueryError
from core.models import AnalysisResult, FrameBatch
from infrastructure.external.vision_client import VisionModelClient
from infrastructure.monitoring.metrics import ServiceMetrics
from .modes import ModeSpec, get_mode_spec
from .normalizer import build_result

logger = logging.getLogger(__name__)

EMPTY_FRAMES_TEXT = "Error: Video frame capture failed. Data is empty."
OFFLINE_TEXT = "System offline or analysis failed."


class AnalysisDispatcher:
    """
    Sends a frame sequence to the vision model for one analysis mode and
    normalizes the reply.

    Model and parse failures come back as degraded results. Only a SEARCH
    without a target description raises (``MissingQueryError``), before any
    call is made.
    """

    def __init__(
        self,
        client: VisionModelClient,
        config: Optional[VisionConfig] = None,
        metrics: Optional[ServiceMetrics] = None,
    ):
        self.client = client
        self.config = config or settings.vision
        self.metrics = metrics

    def model_for(self, spec: ModeSpec) -> str:
        return self.config.structured_model if spec.uses_structured_model else self.config.default_model

    async def analyze(
        self,
        frames: Union[FrameBatch, Sequence[str]],
        mode: Union[AnalysisMode, str],
        target_description: Optional[str] = None,
    ) -> AnalysisResult:
        spec = get_mode_spec(mode)

        if spec.requires_query and not (target_description or "").strip():
            self._record(spec.mode, "rejected")
            raise MissingQueryError(f"{spec.mode.value} analysis requires a target description")

        images = list(frames)
        if not images:
            logger.error("❌ Invalid frame data: no frames to analyze")
            self._record(spec.mode, "degraded")
            return AnalysisResult.failed(EMPTY_FRAMES_TEXT, mode=spec.mode)

        start_time = time.perf_counter()
        try:
            text = await self.client.generate(
                spec.render(target_description),
                images,
                structured=spec.structured,
                model=self.model_for(spec),
            )
        except Exception as e:
            latency = time.perf_counter() - start_time
            logger.error(f"💥 Vision analysis failed ({spec.mode.value}): {type(e).__name__}: {e}")
            self._record(spec.mode, "degraded", latency)
            return AnalysisResult.failed(OFFLINE_TEXT, mode=spec.mode, error=f"{type(e).__name__}: {e}")

        result = build_result(spec.mode, spec.extract(text or ""))
        latency = time.perf_counter() - start_time
        self._record(spec.mode, "degraded" if result.degraded else "ok", latency)

        logger.info(
            f"🔍 {spec.mode.value} analysis done - score={result.safety_score} "
            f"labels={len(result.detected_objects)} ({latency:.2f}s)"
        )
        return result

    def _record(self, mode: AnalysisMode, outcome: str, latency: float = 0.0):
        if self.metrics is not None:
            self.metrics.record_analysis(mode.value, outcome, latency)
