# services/access_control/escalation.py
"""
Owner step-up approval (one-time code) for emergency access.

A session walks REVIEW -> CHALLENGE -> GRANTED. Camera state is only touched
on the CHALLENGE -> GRANTED transition, after the code has been checked.
"""

import hmac
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from app.settings import EscalationConfig, settings
from core.enums import EscalationPhase
from core.exceptions import EscalationStateError
from core.models import AccessGrant
from .registry import CameraRegistry

logger = logging.getLogger(__name__)

INVALID_CODE_MESSAGE = "Invalid OTP. Please try again."


class OtpIssuer:
    """Generates a one-time code and delivers it out of band (simulated: logged)."""

    def __init__(self, fixed_code: Optional[str] = None, length: int = 4):
        self.fixed_code = fixed_code
        self.length = length

    def issue(self) -> str:
        code = self.fixed_code or "".join(str(secrets.randbelow(10)) for _ in range(self.length))
        self.deliver(code)
        return code

    def deliver(self, code: str):
        logger.info(f"📲 One-time code sent to owner device ({len(code)} digits)")


class CooldownTimer:
    """Cancellable deadline; the owner of the timer polls it"""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self.seconds = seconds
        self._clock = clock
        self._deadline: Optional[float] = None

    def start(self):
        self._deadline = self._clock() + self.seconds

    def cancel(self):
        self._deadline = None

    @property
    def active(self) -> bool:
        return self.remaining() > 0

    def remaining(self) -> float:
        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - self._clock())


@dataclass
class EscalationSession:
    phase: EscalationPhase = EscalationPhase.REVIEW
    duration_minutes: int = 120
    error: Optional[str] = None
    failed_attempts: int = 0
    entered_code: str = ""
    fallback_camera_id: Optional[str] = None


class EscalationFlow:
    """Drives one approval session at a time against a CameraRegistry"""

    def __init__(
        self,
        registry: CameraRegistry,
        config: Optional[EscalationConfig] = None,
        issuer: Optional[OtpIssuer] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.config = config or settings.escalation
        self.issuer = issuer or OtpIssuer(self.config.otp_code, self.config.otp_length)
        self.cooldown = CooldownTimer(self.config.resend_cooldown_seconds, clock)
        self.session: Optional[EscalationSession] = None
        self._expected_code: Optional[str] = None

    @property
    def phase(self) -> Optional[EscalationPhase]:
        return self.session.phase if self.session else None

    def _require(self, *phases: EscalationPhase) -> EscalationSession:
        if self.session is None:
            raise EscalationStateError("No escalation session is open")
        if self.session.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise EscalationStateError(
                f"Operation requires phase {allowed}, session is in {self.session.phase.value}",
                phase=self.session.phase.value,
            )
        return self.session

    # -----------------------------
    # REVIEW
    # -----------------------------
    def open(self, duration_minutes: Optional[int] = None, fallback_camera_id: Optional[str] = None) -> EscalationSession:
        """Start a new session in REVIEW, replacing any previous one"""
        if self.session is not None:
            self.close()

        self.session = EscalationSession(
            duration_minutes=duration_minutes or self.config.default_duration_minutes,
            fallback_camera_id=fallback_camera_id,
        )
        logger.info(f"🛡️ Escalation session opened ({len(self.registry.pending_requests())} pending request(s))")
        return self.session

    def set_duration(self, minutes: int):
        session = self._require(EscalationPhase.REVIEW, EscalationPhase.CHALLENGE)
        if minutes <= 0:
            raise ValueError("Access duration must be positive")
        session.duration_minutes = minutes

    def approve(self) -> EscalationSession:
        """REVIEW -> CHALLENGE: send a code and start the resend cooldown"""
        session = self._require(EscalationPhase.REVIEW)
        self._expected_code = self.issuer.issue()
        self.cooldown.start()
        session.phase = EscalationPhase.CHALLENGE
        session.error = None
        session.entered_code = ""
        return session

    # -----------------------------
    # CHALLENGE
    # -----------------------------
    def resend_code(self) -> bool:
        """Send a fresh code once the cooldown has run out"""
        self._require(EscalationPhase.CHALLENGE)
        if self.cooldown.active:
            logger.debug(f"⏳ Resend blocked for another {self.cooldown.remaining():.0f}s")
            return False

        self._expected_code = self.issuer.issue()
        self.cooldown.start()
        return True

    def submit_code(self, code: str) -> List[AccessGrant]:
        """
        Check a candidate code.

        Wrong code: stays in CHALLENGE, records the error, clears the entry and
        returns an empty list. Right code: grants every camera with a pending
        request (or the fallback camera when none is pending) for the session
        duration, tears the session down and returns the grants.
        """
        session = self._require(EscalationPhase.CHALLENGE)
        session.entered_code = code or ""

        if not self._code_matches(session.entered_code):
            session.failed_attempts += 1
            session.error = INVALID_CODE_MESSAGE
            session.entered_code = ""
            logger.warning(f"🚫 Invalid one-time code (attempt {session.failed_attempts})")
            return []

        session.phase = EscalationPhase.GRANTED
        session.error = None

        targets = [camera.id for camera in self.registry.pending_requests()]
        if not targets and session.fallback_camera_id:
            targets = [session.fallback_camera_id]

        grants = []
        for camera_id in targets:
            grant = self.registry.grant_access(camera_id, session.duration_minutes)
            if grant is not None:
                grants.append(grant)

        logger.info(f"✅ Escalation granted {len(grants)} camera(s) for {session.duration_minutes} minutes")
        self.close()
        return grants

    def _code_matches(self, candidate: str) -> bool:
        if not self._expected_code or not candidate:
            return False
        return hmac.compare_digest(candidate.strip().encode(), self._expected_code.encode())

    def cancel(self) -> EscalationSession:
        """CHALLENGE -> REVIEW, discarding the code"""
        session = self._require(EscalationPhase.CHALLENGE)
        self._expected_code = None
        self.cooldown.cancel()
        session.phase = EscalationPhase.REVIEW
        session.entered_code = ""
        session.error = None
        return session

    def close(self):
        """Tear the session down from any phase"""
        self._expected_code = None
        self.cooldown.cancel()
        self.session = None
