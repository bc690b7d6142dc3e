# services/analysis/normalizer.py
"""
Turns raw model replies into ``AnalysisResult`` values.

Extraction is mode specific (see ``modes.py``); scoring, plate detection and
label clean-up are the same for every mode.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.enums import AnalysisMode, MatchConfidence
from core.models import AnalysisResult
from shared.utils.validation import ResponseParseError, extract_json_object

logger = logging.getLogger(__name__)

DANGER_KEYWORDS = ('fire', 'accident', 'weapon', 'fighting', 'blood', 'crash', 'robbery', 'gun', 'knife')
DANGER_SCORE = 30
SAFE_SCORE = 95

MAX_OBJECT_LABELS = 10
MIN_LABEL_LENGTH = 3

OBJECT_SPLIT_RE = re.compile(r",|:|\n")
VOCABULARY_RE = re.compile(r"\b(car|person|truck|bus|fire|smoke|weapon|dog|cat|bag|backpack)\b", re.IGNORECASE)
# Two letters, two digits, one or two letters, four digits (e.g. RJ14AB1234, MH 12 K 4321)
PLATE_RE = re.compile(r"[A-Z]{2}[ -]?[0-9]{2}[ -]?[A-Z]{1,2}[ -]?[0-9]{4}")

PARSE_ERROR_TEXT = "Error parsing AI report."
PRIVACY_DEFAULT_TEXT = "Privacy Audit Completed."
SEARCH_MATCH_TEXT = "Target matched in video feed."
SEARCH_NO_MATCH_TEXT = "Target not found."
TARGET_MATCH_LABEL = "Target Match"


@dataclass(frozen=True)
class Extraction:
    """Mode-specific fields pulled out of one reply"""
    text: str
    labels: Tuple[str, ...] = ()
    privacy_recommendation: Optional[bool] = None
    match_found: Optional[bool] = None
    match_confidence: Optional[MatchConfidence] = None
    error: Optional[str] = None


# -----------------------------
# Common post-processing
# -----------------------------
def safety_score(text: str) -> int:
    lowered = (text or "").lower()
    if any(keyword in lowered for keyword in DANGER_KEYWORDS):
        return DANGER_SCORE
    return SAFE_SCORE


def extract_plate_candidates(text: str) -> Tuple[str, ...]:
    return tuple(PLATE_RE.findall(text or ""))


def normalize_labels(labels: Iterable[Any]) -> Tuple[str, ...]:
    """Lower-case, trim and deduplicate, keeping first-seen order"""
    seen: Dict[str, None] = {}
    for label in labels:
        cleaned = str(label).strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


def build_result(mode: AnalysisMode, extraction: Extraction) -> AnalysisResult:
    return AnalysisResult(
        text=extraction.text,
        detected_objects=normalize_labels(extraction.labels),
        safety_score=safety_score(extraction.text),
        anpr_candidates=extract_plate_candidates(extraction.text),
        privacy_recommendation=extraction.privacy_recommendation,
        match_found=extraction.match_found,
        match_confidence=extraction.match_confidence,
        mode=mode,
        degraded=extraction.error is not None,
        error=extraction.error,
    )


# -----------------------------
# Free-text extractors
# -----------------------------
def tokenize_object_list(text: str) -> Extraction:
    """Comma/colon/newline separated object list, short tokens dropped, capped"""
    items = [item.strip() for item in OBJECT_SPLIT_RE.split(text or "")]
    items = [item for item in items if len(item) >= MIN_LABEL_LENGTH]
    return Extraction(text=text, labels=tuple(items[:MAX_OBJECT_LABELS]))


def match_vocabulary(text: str) -> Extraction:
    return Extraction(text=text, labels=tuple(VOCABULARY_RE.findall(text or "")))


# -----------------------------
# Structured extractors
# -----------------------------
def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _parse(text: str) -> Optional[Dict[str, Any]]:
    try:
        return extract_json_object(text)
    except ResponseParseError as e:
        logger.error(f"❌ Failed to parse JSON response: {e}")
        return None


def parse_privacy_report(text: str) -> Extraction:
    payload = _parse(text)
    if payload is None:
        return Extraction(text=PARSE_ERROR_TEXT, privacy_recommendation=False, error=PARSE_ERROR_TEXT)

    risks = payload.get("risks")
    return Extraction(
        text=str(payload.get("summary") or PRIVACY_DEFAULT_TEXT),
        labels=tuple(risks) if isinstance(risks, list) else (),
        privacy_recommendation=_as_bool(payload.get("recommendBlur")),
    )


def parse_search_report(text: str) -> Extraction:
    payload = _parse(text)
    if payload is None:
        return Extraction(
            text=PARSE_ERROR_TEXT,
            match_found=False,
            match_confidence=MatchConfidence.NONE,
            error=PARSE_ERROR_TEXT,
        )

    match_found = _as_bool(payload.get("matchFound"))
    try:
        confidence = MatchConfidence(str(payload.get("confidence", "NONE")).upper())
    except ValueError:
        confidence = MatchConfidence.NONE

    narrative = payload.get("description") or (SEARCH_MATCH_TEXT if match_found else SEARCH_NO_MATCH_TEXT)
    labels: List[str] = [TARGET_MATCH_LABEL] if match_found else []
    return Extraction(
        text=str(narrative),
        labels=tuple(labels),
        match_found=match_found,
        match_confidence=confidence,
    )
