"""
Escalation (OTP step-up) enumerations.
"""

from enum import Enum


class EscalationPhase(str, Enum):
    """Phases of an owner approval session"""
    REVIEW = "REVIEW"
    CHALLENGE = "CHALLENGE"
    GRANTED = "GRANTED"
