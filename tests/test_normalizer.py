# tests/test_normalizer.py
import pytest

from core.enums import AnalysisMode, MatchConfidence
from services.analysis.normalizer import (
    DANGER_SCORE,
    PARSE_ERROR_TEXT,
    SAFE_SCORE,
    SEARCH_NO_MATCH_TEXT,
    build_result,
    extract_plate_candidates,
    match_vocabulary,
    normalize_labels,
    parse_privacy_report,
    parse_search_report,
    safety_score,
    tokenize_object_list,
)


class TestSafetyScore:
    @pytest.mark.parametrize("text", [
        "Fire spreading near the entrance",
        "Possible weapon in the left hand",
        "Minor CRASH at the junction",
    ])
    def test_danger_keywords(self, text):
        assert safety_score(text) == DANGER_SCORE == 30

    def test_calm_scene(self):
        assert safety_score("Two pedestrians waiting at a bus stop.") == SAFE_SCORE == 95

    def test_empty_text(self):
        assert safety_score("") == 95


class TestPlates:
    def test_compact_plate(self):
        assert extract_plate_candidates("White sedan, plate RJ14AB1234, heading north") == ("RJ14AB1234",)

    def test_spaced_plate(self):
        assert extract_plate_candidates("Plate reads MH 12 K 4321.") == ("MH 12 K 4321",)

    def test_no_plate(self):
        assert extract_plate_candidates("A red hatchback, plate not legible") == ()


class TestLabels:
    def test_object_list_drops_short_tokens(self):
        extraction = tokenize_object_list("car, person, a, traffic light\nbag: tv")

        assert extraction.labels == ("car", "person", "traffic light", "bag")

    def test_object_list_is_capped(self):
        text = ", ".join(f"object{i}" for i in range(15))

        assert len(tokenize_object_list(text).labels) == 10

    def test_vocabulary_match(self):
        extraction = match_vocabulary("A Person walks a dog past the car. Person again, no cats.")

        assert normalize_labels(extraction.labels) == ("person", "dog", "car")

    def test_normalize_labels_dedupes_in_order(self):
        assert normalize_labels([" Car", "car", "Bus ", "", "bus"]) == ("car", "bus")


class TestPrivacyReport:
    def test_fenced_reply_without_risks(self):
        reply = '```json\n{"summary": "No privacy risks detected", "risks": [], "recommendBlur": false}\n```'

        result = build_result(AnalysisMode.PRIVACY, parse_privacy_report(reply))

        assert result.privacy_recommendation is False
        assert result.detected_objects == ()
        assert result.text == "No privacy risks detected"
        assert result.degraded is False

    def test_blur_recommended(self):
        reply = 'Audit: {"summary": "Faces clearly visible", "risks": ["Face visible"], "recommendBlur": true}'

        result = build_result(AnalysisMode.PRIVACY, parse_privacy_report(reply))

        assert result.privacy_recommendation is True
        assert result.detected_objects == ("face visible",)

    def test_missing_summary_uses_default(self):
        extraction = parse_privacy_report('{"recommendBlur": false}')

        assert extraction.text == "Privacy Audit Completed."

    def test_unparseable_reply_degrades(self):
        result = build_result(AnalysisMode.PRIVACY, parse_privacy_report("I could not audit this."))

        assert result.text == PARSE_ERROR_TEXT
        assert result.privacy_recommendation is False
        assert result.degraded is True
        assert result.safety_score == 95


class TestSearchReport:
    def test_match(self):
        reply = '{"matchFound": true, "confidence": "high", "description": "Man in red jacket near gate"}'

        result = build_result(AnalysisMode.SEARCH, parse_search_report(reply))

        assert result.match_found is True
        assert result.match_confidence is MatchConfidence.HIGH
        assert result.text == "Man in red jacket near gate"
        assert result.detected_objects == ("target match",)

    def test_no_match_without_description(self):
        extraction = parse_search_report('{"matchFound": false, "confidence": "NONE"}')

        assert extraction.match_found is False
        assert extraction.text == SEARCH_NO_MATCH_TEXT
        assert extraction.labels == ()

    def test_unknown_confidence(self):
        extraction = parse_search_report('{"matchFound": true, "confidence": "ABSOLUTE"}')

        assert extraction.match_confidence is MatchConfidence.NONE

    def test_unparseable_reply(self):
        extraction = parse_search_report("no json here")

        assert extraction.match_found is False
        assert extraction.match_confidence is MatchConfidence.NONE
        assert extraction.error == PARSE_ERROR_TEXT


def test_plates_found_in_every_mode():
    result = build_result(AnalysisMode.OBJECTS, tokenize_object_list("car, plate RJ14AB1234"))

    assert result.anpr_candidates == ("RJ14AB1234",)
    assert result.privacy_recommendation is None
    assert result.match_found is None
