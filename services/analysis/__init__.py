"""
Frame analysis package

- AnalysisDispatcher: one model call per analysis mode, normalized result
- ScanSession: capture-then-analyze for a camera being viewed
"""

from .modes import ModeSpec, MODE_SPECS, get_mode_spec
from .dispatcher import AnalysisDispatcher
from .scan_session import ScanSession

__all__ = [
    "ModeSpec",
    "MODE_SPECS",
    "get_mode_spec",
    "AnalysisDispatcher",
    "ScanSession"
]
