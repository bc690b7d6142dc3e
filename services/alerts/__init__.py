from .incident_monitor import IncidentMonitor, filter_cameras_by_status

__all__ = ["IncidentMonitor", "filter_cameras_by_status"]
