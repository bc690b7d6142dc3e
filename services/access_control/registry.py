# services/access_control/registry.py
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from core.enums import AccessDecision, CameraStatus, PrivacyLevel
from core.models import AccessGrant, Camera, LocationVerdict
from infrastructure.external.location_verifier import UNREACHABLE_VERDICT, LocationVerifier
from infrastructure.monitoring.metrics import ServiceMetrics
from .policy import AccessControlPolicy

logger = logging.getLogger(__name__)


class CameraRegistry:
    """
    Owns the canonical state of every camera.

    Every change goes through a named transition that swaps the whole frozen
    ``Camera`` under that camera's lock, so no reader sees a partial update.
    Unknown camera ids are ignored (transitions return None).
    """

    def __init__(
        self,
        cameras: Iterable[Camera],
        verifier: Optional[LocationVerifier] = None,
        policy: Optional[AccessControlPolicy] = None,
        metrics: Optional[ServiceMetrics] = None,
    ):
        self._cameras: Dict[str, Camera] = {}
        for camera in cameras:
            if camera.id in self._cameras:
                raise ValueError(f"Duplicate camera id: {camera.id}")
            self._cameras[camera.id] = self._normalized(camera)

        self._locks: Dict[str, threading.Lock] = {camera_id: threading.Lock() for camera_id in self._cameras}
        self.verifier = verifier
        self.policy = policy or AccessControlPolicy()
        self.metrics = metrics
        self.verification_results: Dict[str, LocationVerdict] = {}

        self._update_pending_gauge()
        logger.info(f"📷 Camera registry initialized with {len(self._cameras)} camera(s)")

    @staticmethod
    def _normalized(camera: Camera) -> Camera:
        # A seeded camera that is both shared and pending is treated as granted
        if camera.is_shared and camera.pending_access_request:
            return camera.model_copy(update={"pending_access_request": False})
        return camera

    # -----------------------------
    # Queries
    # -----------------------------
    def get(self, camera_id: str) -> Optional[Camera]:
        return self._cameras.get(camera_id)

    def __contains__(self, camera_id: str) -> bool:
        return camera_id in self._cameras

    def __len__(self) -> int:
        return len(self._cameras)

    def list_cameras(self, status: Optional[CameraStatus] = None) -> List[Camera]:
        cameras = list(self._cameras.values())
        if status is None:
            return cameras
        return [c for c in cameras if c.status == status]

    def pending_requests(self) -> List[Camera]:
        """Cameras with an unsettled access request"""
        return [c for c in self._cameras.values() if c.awaiting_owner]

    def shared_cameras(self) -> List[Camera]:
        return [c for c in self._cameras.values() if c.is_shared]

    # -----------------------------
    # Transitions
    # -----------------------------
    def _transition(
        self,
        camera_id: str,
        operation: str,
        changes: Callable[[Camera], Dict[str, Any]],
    ) -> Optional[Tuple[Camera, Camera]]:
        """Apply ``changes(current)`` atomically. Returns (before, after) or None for unknown ids."""
        lock = self._locks.get(camera_id)
        if lock is None:
            logger.debug(f"🔇 {operation} ignored for unknown camera {camera_id}")
            self._record(operation, "unknown_camera")
            return None

        with lock:
            before = self._cameras[camera_id]
            update = changes(before)
            after = before.model_copy(update=update) if update else before
            self._cameras[camera_id] = after

        self._record(operation, "applied" if after != before else "unchanged")
        return before, after

    def request_access(self, camera_id: str) -> Optional[AccessDecision]:
        """Authority asks for a camera's feed; auto-approve grants immediately"""
        decision: Dict[str, AccessDecision] = {}

        def changes(camera: Camera) -> Dict[str, Any]:
            decision["value"] = self.policy.decide(camera)
            if decision["value"] is AccessDecision.GRANTED:
                return {"is_shared": True, "pending_access_request": False}
            if decision["value"] is AccessDecision.PENDING:
                return {"pending_access_request": True}
            return {}

        if self._transition(camera_id, "request_access", changes) is None:
            return None

        result = decision["value"]
        if result is AccessDecision.GRANTED:
            logger.info(f"✅ Auto-approved access to camera {camera_id}")
        elif result is AccessDecision.PENDING:
            logger.info(f"📨 Access request pending owner approval for camera {camera_id}")
        self._update_pending_gauge()
        return result

    def grant_access(self, camera_id: str, duration_minutes: Optional[int] = None) -> Optional[AccessGrant]:
        """
        Share a camera with the authority and settle any pending request.

        The duration is recorded on the returned grant; enforcing it is up to
        a scheduler (see ``GrantExpiryScheduler``). A missing or non-positive
        duration means no time limit.
        """
        if not duration_minutes or duration_minutes <= 0:
            duration_minutes = None

        applied = self._transition(
            camera_id, "grant_access",
            lambda camera: {"is_shared": True, "pending_access_request": False},
        )
        if applied is None:
            return None

        grant = AccessGrant(camera_id=camera_id, duration_minutes=duration_minutes)
        if grant.is_time_boxed:
            logger.info(f"🔓 Access granted for camera {camera_id} for {duration_minutes} minutes")
        else:
            logger.info(f"🔓 Access granted for camera {camera_id}")
        self._update_pending_gauge()
        return grant

    def toggle_sharing(self, camera_id: str) -> Optional[Camera]:
        """Manual owner grant/revoke; always settles a pending request"""
        applied = self._transition(
            camera_id, "toggle_sharing",
            lambda camera: {"is_shared": not camera.is_shared, "pending_access_request": False},
        )
        if applied is None:
            return None

        after = applied[1]
        logger.info(f"🔁 Camera {camera_id} sharing {'enabled' if after.is_shared else 'disabled'}")
        self._update_pending_gauge()
        return after

    def revoke_access(self, camera_id: str) -> Optional[Camera]:
        """Stop sharing regardless of the current state (used at grant expiry)"""
        applied = self._transition(
            camera_id, "revoke_access",
            lambda camera: {"is_shared": False, "pending_access_request": False},
        )
        if applied is None:
            return None

        before, after = applied
        if before.is_shared:
            logger.info(f"🔒 Access revoked for camera {camera_id}")
        self._update_pending_gauge()
        return after

    def reject_request(self, camera_id: str) -> Optional[Camera]:
        """Owner declines a pending request; an existing grant is kept"""
        applied = self._transition(
            camera_id, "reject_request",
            lambda camera: {"pending_access_request": False},
        )
        if applied is None:
            return None

        self._update_pending_gauge()
        return applied[1]

    def set_privacy(self, camera_id: str, level: PrivacyLevel) -> Optional[Camera]:
        level = PrivacyLevel(level)
        applied = self._transition(camera_id, "set_privacy", lambda camera: {"privacy_setting": level})
        if applied is None:
            return None

        logger.info(f"🕶️ Camera {camera_id} privacy set to {level.value}")
        return applied[1]

    def toggle_auto_approve(self, camera_id: str) -> Optional[Camera]:
        """Flip auto-approve. A request that is already pending stays pending."""
        applied = self._transition(
            camera_id, "toggle_auto_approve",
            lambda camera: {"auto_approve": not camera.auto_approve},
        )
        return applied[1] if applied else None

    async def verify_location(self, camera_id: str) -> Optional[LocationVerdict]:
        """
        Check the camera's location label against its coordinates.

        A negative verdict or verifier failure leaves ``location_verified``
        untouched and is returned as an ordinary value.
        """
        camera = self.get(camera_id)
        if camera is None:
            logger.debug(f"🔇 verify_location ignored for unknown camera {camera_id}")
            return None
        if self.verifier is None:
            logger.warning(f"⚠️ No location verifier configured, camera {camera_id} left unverified")
            verdict = UNREACHABLE_VERDICT
        else:
            # The verifier call is not made under the camera lock
            try:
                verdict = await self.verifier.verify(camera.location, camera.lat, camera.lng)
            except Exception as e:
                logger.error(f"❌ Location verifier failed for camera {camera_id}: {e}")
                verdict = UNREACHABLE_VERDICT

        self.verification_results[camera_id] = verdict
        if verdict.verified:
            self._transition(camera_id, "verify_location", lambda current: {"location_verified": True})
        else:
            self._record("verify_location", "not_verified")
            logger.info(f"📍 Camera {camera_id} location not verified: {verdict.summary}")
        return verdict

    # -----------------------------
    # Metrics
    # -----------------------------
    def _record(self, operation: str, outcome: str):
        if self.metrics is not None:
            self.metrics.record_transition(operation, outcome)

    def _update_pending_gauge(self):
        if self.metrics is not None:
            self.metrics.set_pending_requests(len(self.pending_requests()))
