# ================================================================================================
# app/bootstrap.py - Wires the camera sharing core together
# ================================================================================================

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import httpx
import structlog

from app.settings import Settings, settings as default_settings
from core.models import AccessGrant, Camera
from infrastructure.external.location_verifier import GeminiLocationVerifier
from infrastructure.external.vision_client import VisionModelClient
from infrastructure.monitoring.metrics import ServiceMetrics, start_metrics_server
from services.access_control.escalation import EscalationFlow
from services.access_control.grant_scheduler import GrantExpiryScheduler
from services.access_control.registry import CameraRegistry
from services.analysis.dispatcher import AnalysisDispatcher
from services.analysis.scan_session import ScanSession
from services.ingest.frame_sampler import FrameSampler
from services.ingest.video_source import VideoSource
from shared.config.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@dataclass
class CoreServices:
    """Everything a front end needs to drive the core"""
    settings: Settings
    metrics: ServiceMetrics
    client: VisionModelClient
    verifier: GeminiLocationVerifier
    registry: CameraRegistry
    escalation: EscalationFlow
    sampler: FrameSampler
    dispatcher: AnalysisDispatcher
    scheduler: GrantExpiryScheduler
    sessions: Dict[str, ScanSession] = field(default_factory=dict)

    async def open_scan_session(self, camera_id: str, source: VideoSource) -> ScanSession:
        """
        Open a viewing session for a camera. An earlier session for the same
        camera is closed first, abandoning its in-flight scan.
        """
        if camera_id not in self.registry:
            raise KeyError(f"Unknown camera: {camera_id}")

        await self.close_scan_session(camera_id)
        session = ScanSession(camera_id, source, self.sampler, self.dispatcher, registry=self.registry)
        self.sessions[camera_id] = session
        logger.info("Scan session opened", camera_id=camera_id)
        return session

    async def close_scan_session(self, camera_id: str) -> bool:
        session = self.sessions.pop(camera_id, None)
        if session is None:
            return False
        await session.close()
        logger.info("Scan session closed", camera_id=camera_id)
        return True

    def schedule_expiry(self, grants: Iterable[AccessGrant]) -> int:
        """Start expiry timers for time-boxed grants. Must run inside an event loop."""
        scheduled = 0
        for grant in grants:
            if self.scheduler.schedule(grant) is not None:
                scheduled += 1
        return scheduled

    async def shutdown(self):
        for camera_id in list(self.sessions):
            await self.close_scan_session(camera_id)
        await self.scheduler.stop()
        self.escalation.close()
        logger.info("Core services stopped", client_stats=self.client.get_stats())


def build_core(
    cameras: Iterable[Camera],
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CoreServices:
    """
    Build the core from a camera catalog.

    Args:
        cameras: Initial camera catalog
        settings: Settings override (defaults to the module-level instance)
        transport: httpx transport override for the vision client
    """
    settings = settings or default_settings

    configure_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file_path=settings.log_file_path,
        log_max_size=settings.log_max_size,
        log_backup_count=settings.log_backup_count,
    )

    metrics = ServiceMetrics()
    if settings.enable_metrics:
        start_metrics_server(metrics, settings.prometheus_port)

    client = VisionModelClient(settings.vision, transport=transport)
    verifier = GeminiLocationVerifier(client)
    registry = CameraRegistry(cameras, verifier=verifier, metrics=metrics)
    escalation = EscalationFlow(registry, settings.escalation)
    sampler = FrameSampler(settings.capture)
    dispatcher = AnalysisDispatcher(client, settings.vision, metrics=metrics)
    scheduler = GrantExpiryScheduler(on_expiry=registry.revoke_access)

    pending: List[str] = [camera.id for camera in registry.pending_requests()]
    logger.info(
        "Camera sharing core ready",
        app=settings.app_name,
        version=settings.app_version,
        cameras=len(registry),
        pending_requests=len(pending),
        metrics_enabled=settings.enable_metrics,
    )

    return CoreServices(
        settings=settings,
        metrics=metrics,
        client=client,
        verifier=verifier,
        registry=registry,
        escalation=escalation,
        sampler=sampler,
        dispatcher=dispatcher,
        scheduler=scheduler,
    )
