"""
Camera and incident enumerations for the camera sharing core.
"""

from enum import Enum


class CameraStatus(str, Enum):
    """Operational status of a camera node"""
    ACTIVE = "ACTIVE"
    OFFLINE = "OFFLINE"
    MAINTENANCE = "MAINTENANCE"


class PrivacyLevel(str, Enum):
    """Owner-selected privacy filter applied to a shared feed"""
    NONE = "NONE"
    BLUR_FACES = "BLUR_FACES"
    ANONYMIZED = "ANONYMIZED"


class IncidentSeverity(str, Enum):
    """Severity levels for incidents"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AccessDecision(str, Enum):
    """Outcome of an access request against a camera's policy"""
    GRANTED = "granted"
    PENDING = "pending"
    ALREADY_SHARED = "already_shared"
