# core/models/result_models.py

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from datetime import datetime, timedelta, timezone

from core.enums import AnalysisMode, MatchConfidence


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AnalysisResult:
    """Normalized outcome of one analysis call"""
    text: str
    detected_objects: Tuple[str, ...] = ()
    safety_score: int = 0
    anpr_candidates: Tuple[str, ...] = ()
    privacy_recommendation: Optional[bool] = None
    match_found: Optional[bool] = None
    match_confidence: Optional[MatchConfidence] = None
    mode: Optional[AnalysisMode] = None

    # Set when the result stands in for a failed capture, call or parse
    degraded: bool = False
    error: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not 0 <= self.safety_score <= 100:
            raise ValueError(f"safety_score out of range: {self.safety_score}")

    @classmethod
    def failed(cls, text: str, mode: Optional[AnalysisMode] = None, error: Optional[str] = None) -> "AnalysisResult":
        """Terminal but non-fatal result with a zero safety score"""
        return cls(text=text, safety_score=0, mode=mode, degraded=True, error=error or text)

    @property
    def is_dangerous(self) -> bool:
        return not self.degraded and self.safety_score < 50

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'text': self.text,
            'detected_objects': list(self.detected_objects),
            'safety_score': self.safety_score,
            'anpr_candidates': list(self.anpr_candidates),
            'privacy_recommendation': self.privacy_recommendation,
            'match_found': self.match_found,
            'match_confidence': self.match_confidence.value if self.match_confidence else None,
            'mode': self.mode.value if self.mode else None,
            'degraded': self.degraded,
            'error': self.error,
            'created_at': self.created_at.isoformat()
        }


@dataclass(frozen=True)
class LocationVerdict:
    verified: bool
    summary: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "LocationVerdict":
        return cls(
            verified=payload.get('verified') is True,
            summary=str(payload.get('summary') or "")
        )


@dataclass(frozen=True)
class AccessGrant:
    """Record of a grant. Deadlines are enforced by GrantExpiryScheduler, not the registry."""
    camera_id: str
    duration_minutes: Optional[int] = None
    granted_at: datetime = field(default_factory=utc_now)

    @property
    def expires_at(self) -> Optional[datetime]:
        if not self.duration_minutes:
            return None
        return self.granted_at + timedelta(minutes=self.duration_minutes)

    @property
    def is_time_boxed(self) -> bool:
        return self.expires_at is not None


@dataclass(frozen=True)
class FrameBatch:
    """Ordered base64 JPEG frames captured from one source"""
    frames: Tuple[str, ...]
    width: int
    height: int
    captured_at: datetime = field(default_factory=utc_now)
    capture_ms: float = 0.0

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self):
        return iter(self.frames)
