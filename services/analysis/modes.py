# services/analysis/modes.py
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from core.enums import AnalysisMode, ResponseShape
from .normalizer import (
    Extraction,
    match_vocabulary,
    parse_privacy_report,
    parse_search_report,
    tokenize_object_list,
)


@dataclass(frozen=True)
class ModeSpec:
    """How one analysis mode builds its prompt and reads the reply"""
    mode: AnalysisMode
    instruction: str
    shape: ResponseShape
    extract: Callable[[str], Extraction]
    uses_structured_model: bool = False
    requires_query: bool = False

    @property
    def structured(self) -> bool:
        return self.shape is ResponseShape.STRUCTURED

    def render(self, target_description: Optional[str] = None) -> str:
        return self.instruction.replace("{target}", (target_description or "").strip())


OBJECTS_PROMPT = (
    "List all major physical objects visible in these video frames "
    "(e.g., cars, people, bags, signs, animals). Provide the list as comma-separated values."
)

ANOMALY_PROMPT = (
    "Analyze these video frames for security anomalies. Look for: Sudden speed drops, accidents, "
    "fire, smoke, weapons, fighting, or running people. Return a short, urgent report."
)

FACE_PROMPT = (
    "Analyze these video frames for human biometrics. Describe the individuals present "
    "(clothing, estimated age, gender, activity) for identification purposes. "
    "Do NOT output real names. Assess crowd mood."
)

ANPR_PROMPT = (
    "Analyze these video frames for vehicles. Identify the vehicle model, color, and attempt to read "
    "any visible license plates (ANPR). Return a structured list of vehicles."
)

PRIVACY_PROMPT = """Conduct a privacy audit on this video sequence.
Check for clearly visible faces or PII (Personally Identifiable Information) that persists across frames.

Return a JSON object with this structure:
{
  "summary": "Brief description of privacy risks found or 'No privacy risks detected'.",
  "risks": ["Face visible", "License plate visible", "Private interior"],
  "recommendBlur": boolean
}
If faces are clear and identifiable, set recommendBlur to true."""

SEARCH_PROMPT = """Analyze these video frames sequence. Search specifically for a person matching this description: "{target}".

Return a JSON object:
{
    "matchFound": boolean,
    "confidence": "HIGH" | "MEDIUM" | "LOW" | "NONE",
    "description": "Describe the person found or why no match was found.",
    "timestamp": "Time offset in frames if relevant"
}"""


MODE_SPECS: Dict[AnalysisMode, ModeSpec] = {
    AnalysisMode.OBJECTS: ModeSpec(AnalysisMode.OBJECTS, OBJECTS_PROMPT, ResponseShape.FREE_TEXT, tokenize_object_list),
    AnalysisMode.ANOMALY: ModeSpec(AnalysisMode.ANOMALY, ANOMALY_PROMPT, ResponseShape.FREE_TEXT, match_vocabulary),
    AnalysisMode.FACE: ModeSpec(AnalysisMode.FACE, FACE_PROMPT, ResponseShape.FREE_TEXT, match_vocabulary),
    AnalysisMode.ANPR: ModeSpec(AnalysisMode.ANPR, ANPR_PROMPT, ResponseShape.FREE_TEXT, match_vocabulary),
    AnalysisMode.PRIVACY: ModeSpec(
        AnalysisMode.PRIVACY, PRIVACY_PROMPT, ResponseShape.STRUCTURED, parse_privacy_report,
        uses_structured_model=True,
    ),
    AnalysisMode.SEARCH: ModeSpec(
        AnalysisMode.SEARCH, SEARCH_PROMPT, ResponseShape.STRUCTURED, parse_search_report,
        uses_structured_model=True, requires_query=True,
    ),
}


def get_mode_spec(mode) -> ModeSpec:
    """Look up a mode by enum or name (case-insensitive)"""
    if isinstance(mode, str) and not isinstance(mode, AnalysisMode):
        mode = AnalysisMode(mode.upper())
    return MODE_SPECS[mode]
