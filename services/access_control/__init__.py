"""
Camera access control package

- CameraRegistry: canonical camera state and access transitions
- AccessControlPolicy: decides the outcome of an access request
- EscalationFlow: owner one-time-code approval for emergency access
- GrantExpiryScheduler: revokes time-boxed grants
"""

from .policy import AccessControlPolicy
from .registry import CameraRegistry
from .escalation import EscalationFlow, OtpIssuer, CooldownTimer
from .grant_scheduler import GrantExpiryScheduler

__all__ = [
    "AccessControlPolicy",
    "CameraRegistry",
    "EscalationFlow",
    "OtpIssuer",
    "CooldownTimer",
    "GrantExpiryScheduler"
]
