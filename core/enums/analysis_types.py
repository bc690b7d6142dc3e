"""
Analysis enumerations for the camera sharing core.
"""

from enum import Enum


class AnalysisMode(str, Enum):
    """Fixed analysis intents, each with its own prompt and parse rules"""
    OBJECTS = "OBJECTS"
    ANOMALY = "ANOMALY"
    FACE = "FACE"
    ANPR = "ANPR"
    PRIVACY = "PRIVACY"
    SEARCH = "SEARCH"


class ResponseShape(str, Enum):
    """Expected shape of the model reply"""
    STRUCTURED = "structured"
    FREE_TEXT = "free_text"


class MatchConfidence(str, Enum):
    """Confidence label reported by SEARCH mode"""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = "NONE"
