# Core Models Package
"""
Core data models for the camera sharing core.
Contains camera/incident state and analysis/grant results.
"""

from .camera_models import Camera, Incident
from .result_models import (
    AnalysisResult,
    LocationVerdict,
    AccessGrant,
    FrameBatch
)

__all__ = [
    'Camera',
    'Incident',
    'AnalysisResult',
    'LocationVerdict',
    'AccessGrant',
    'FrameBatch'
]
