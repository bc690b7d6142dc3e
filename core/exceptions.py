# core/exceptions.py
from typing import Optional

class CameraShareError(Exception):
    """Base exception for the camera sharing core"""
    pass

class VisionModelError(CameraShareError):
    """Vision model API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_text: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text

class SourceNotReadyError(CameraShareError):
    """Video source has not buffered enough data to be sampled"""
    pass

class FrameCaptureError(CameraShareError):
    """A snapshot could not be taken or encoded"""
    pass

class MissingQueryError(CameraShareError):
    """SEARCH analysis requested without a target description"""
    pass

class ScanInProgressError(CameraShareError):
    """A scan is already running for this viewing session"""
    pass

class ScanSessionClosedError(CameraShareError):
    """The viewing session has been closed"""
    pass

class EscalationStateError(CameraShareError):
    """Escalation operation not allowed in the current phase"""
    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.phase = phase
