# ================================
# core/models/camera_models.py
# ================================
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from core.enums import CameraStatus, PrivacyLevel, IncidentSeverity


class Camera(BaseModel):
    """Canonical camera state. Replaced as a whole by registry transitions, never edited in place."""
    id: str
    name: str
    location: str
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    owner_id: str
    status: CameraStatus = CameraStatus.ACTIVE

    # Access control flags
    is_shared: bool = False
    privacy_setting: PrivacyLevel = PrivacyLevel.NONE
    pending_access_request: bool = False
    auto_approve: bool = False
    location_verified: bool = False

    # Opaque media references
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_private(self) -> bool:
        return not self.is_shared

    @property
    def awaiting_owner(self) -> bool:
        """Pending request the owner has not settled yet"""
        return self.pending_access_request and not self.is_shared


class Incident(BaseModel):
    id: str
    type: str
    severity: IncidentSeverity
    camera_id: str
    location: Optional[str] = None
    timestamp: str
    description: str = ""
    resolved: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def is_critical(self) -> bool:
        return self.severity in (IncidentSeverity.HIGH, IncidentSeverity.CRITICAL)
