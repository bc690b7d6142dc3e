# services/alerts/incident_monitor.py
import logging
from typing import Iterable, List, Optional, Set, Union

from core.enums import CameraStatus
from core.models import Camera, Incident

logger = logging.getLogger(__name__)


class IncidentMonitor:
    """Surfaces critical incidents as alerts until they are dismissed"""

    def __init__(self, incidents: Iterable[Incident] = ()):
        self.incidents: List[Incident] = list(incidents)
        self._dismissed: Set[str] = set()

    def add(self, incident: Incident):
        self.incidents.append(incident)
        if incident.is_critical:
            logger.warning(f"🚨 {incident.severity.value} incident {incident.id} on camera {incident.camera_id}: {incident.type}")

    def active_alerts(self) -> List[Incident]:
        """HIGH/CRITICAL incidents not yet dismissed, in catalog order"""
        return [
            incident for incident in self.incidents
            if incident.is_critical and incident.id not in self._dismissed
        ]

    def current_alert(self) -> Optional[Incident]:
        alerts = self.active_alerts()
        return alerts[0] if alerts else None

    def dismiss(self, incident_id: str) -> bool:
        if not any(incident.id == incident_id for incident in self.incidents):
            logger.debug(f"Unknown incident {incident_id}, nothing to dismiss")
            return False
        self._dismissed.add(incident_id)
        logger.info(f"🔕 Alert dismissed: {incident_id}")
        return True

    def is_dismissed(self, incident_id: str) -> bool:
        return incident_id in self._dismissed


def filter_cameras_by_status(
    cameras: Iterable[Camera],
    status: Optional[Union[CameraStatus, str]] = None,
) -> List[Camera]:
    """Node list filter; None or "ALL" keeps every camera"""
    if status is None or (isinstance(status, str) and status.upper() == "ALL"):
        return list(cameras)
    wanted = CameraStatus(status.upper()) if isinstance(status, str) else status
    return [camera for camera in cameras if camera.status == wanted]
