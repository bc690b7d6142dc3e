# shared/utils/validation.py

import json
import re
from typing import Any, Dict, List, Optional, Tuple

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class ResponseParseError(ValueError):
    """Model reply could not be interpreted as the expected JSON object."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```json / ```) and surrounding whitespace."""
    return _FENCE_RE.sub("", text or "").strip()


def find_object_span(text: str) -> Optional[str]:
    """
    Return the first balanced top-level ``{...}`` span of text, or None.

    Braces inside JSON string literals are ignored. Single pass: when the
    outermost brace never closes (truncated reply), the earliest-starting
    balanced span found inside it is returned instead.
    """
    open_positions: List[int] = []
    best: Optional[Tuple[int, int]] = None
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            open_positions.append(index)
        elif char == "}" and open_positions:
            start = open_positions.pop()
            if not open_positions:
                return text[start:index + 1]
            if best is None or start < best[0]:
                best = (start, index + 1)

    return text[best[0]:best[1]] if best else None


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of a model reply that may carry markdown fences
    and leading/trailing prose.

    Raises:
        ResponseParseError: no object span, invalid JSON, or not a JSON object.
    """
    cleaned = strip_code_fences(text)
    span = find_object_span(cleaned)
    if span is None:
        raise ResponseParseError("No JSON object found in response", raw_text=text)

    try:
        payload = json.loads(span)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON in response: {e}", raw_text=text) from e

    validate_response(payload)
    return payload


def validate_response(response: Dict[str, Any], required_keys: Optional[List[str]] = None) -> bool:
    """
    Validate a dictionary response from an external service.

    Args:
        response (Dict[str, Any]): Response data.
        required_keys (list, optional): List of keys that must exist in response.

    Returns:
        bool: True if valid, raises ResponseParseError if invalid.
    """
    if not isinstance(response, dict):
        raise ResponseParseError(f"Response is not a JSON object: {type(response).__name__}")

    if required_keys:
        missing_keys = [k for k in required_keys if k not in response]
        if missing_keys:
            raise ResponseParseError(f"Missing keys in response: {missing_keys}")

    return True
