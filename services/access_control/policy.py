# services/access_control/policy.py
from core.enums import AccessDecision
from core.models import Camera


class AccessControlPolicy:
    """Decides how an authority's access request is settled for a camera"""

    def decide(self, camera: Camera) -> AccessDecision:
        if camera.is_shared:
            return AccessDecision.ALREADY_SHARED
        if camera.auto_approve:
            return AccessDecision.GRANTED
        return AccessDecision.PENDING
