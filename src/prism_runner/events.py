"""
Decoding of structured-stream lines into test events.

The structured stream is the JSON-lines output of ``go test -json``::

    {"Time":"2024-05-01T10:00:00.123Z","Action":"pass","Package":"pkg","Test":"TestA","Elapsed":0.01}

Unknown fields and unknown actions are accepted; only a line that is not a
JSON object, or whose known fields carry the wrong types, is rejected.
"""

import json
import math
import re
from datetime import datetime
from typing import Any, Dict, Optional

from .exceptions import EventDecodeError
from .models import TestEvent

# Go emits up to nanosecond precision; datetime holds exactly microseconds.
_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp, returning None when absent or unparseable."""
    if not value:
        return None
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _clean_text(value: str) -> str:
    """Replace lone surrogates from \\u escapes so the text can be encoded as UTF-8."""
    return value.encode("utf-8", "surrogatepass").decode("utf-8", errors="replace")


def _string_field(record: Dict[str, Any], name: str, line: str) -> str:
    value = record.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise EventDecodeError(line, f"field {name!r} must be a string, got {type(value).__name__}")
    return _clean_text(value)


def _elapsed_field(record: Dict[str, Any], line: str) -> float:
    value = record.get("Elapsed")
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EventDecodeError(line, f"field 'Elapsed' must be a number, got {type(value).__name__}")
    try:
        elapsed = float(value)
    except OverflowError:
        raise EventDecodeError(line, "field 'Elapsed' is out of range")
    if not math.isfinite(elapsed):
        raise EventDecodeError(line, "field 'Elapsed' must be finite")
    return elapsed


def decode_event(line: str) -> TestEvent:
    """
    Decode one line of the structured stream.

    Args:
        line: A single line of text, without its trailing newline

    Returns:
        The decoded TestEvent

    Raises:
        EventDecodeError: If the line is not a JSON object or a field has the wrong type
    """
    try:
        record = json.loads(line)
    except (ValueError, RecursionError) as e:
        raise EventDecodeError(line, str(e))

    if not isinstance(record, dict):
        raise EventDecodeError(line, "expected a JSON object")

    action = _string_field(record, "Action", line)
    if not action:
        raise EventDecodeError(line, "missing 'Action'")

    timestamp = record.get("Time")
    return TestEvent(
        action=action,
        scope=_string_field(record, "Package", line),
        test_id=_string_field(record, "Test", line),
        output_text=_string_field(record, "Output", line),
        elapsed_seconds=_elapsed_field(record, line),
        timestamp=parse_timestamp(timestamp) if isinstance(timestamp, str) else None,
    )
