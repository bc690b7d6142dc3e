"""
Core enumerations package for the camera sharing core.
"""

from .camera_types import CameraStatus, PrivacyLevel, IncidentSeverity, AccessDecision
from .analysis_types import AnalysisMode, ResponseShape, MatchConfidence
from .escalation_types import EscalationPhase

__all__ = [
    # Camera types
    'CameraStatus',
    'PrivacyLevel',
    'IncidentSeverity',
    'AccessDecision',

    # Analysis types
    'AnalysisMode',
    'ResponseShape',
    'MatchConfidence',

    # Escalation types
    'EscalationPhase'
]
