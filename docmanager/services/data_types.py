"""Data-type tags for metadata values.

Checks run in a fixed order and the first match wins:
boolean, number, date, json, string. So ``"2024"`` is a number, not a date,
and ``"1"`` is a number, not a boolean.
"""

import json
import re
from datetime import datetime

BOOLEAN = "boolean"
NUMBER = "number"
DATE = "date"
JSON = "json"
STRING = "string"

_BOOLEAN_LITERALS = frozenset({"true", "false"})
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_DATE_FORMATS = ("%d/%m/%Y", "%m/%d/%Y", "%d.%m.%Y", "%Y/%m/%d", "%d %B %Y", "%B %d, %Y")


def infer_data_type(value: str) -> str:
    text = value.strip()
    if not text:
        return STRING
    if text.lower() in _BOOLEAN_LITERALS:
        return BOOLEAN
    if _NUMBER_RE.match(text):
        return NUMBER
    if _is_date(text):
        return DATE
    if _is_json(text):
        return JSON
    return STRING


def _is_date(text: str) -> bool:
    try:
        datetime.fromisoformat(text)
        return True
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            datetime.strptime(text, fmt)
            return True
        except ValueError:
            continue
    return False


def _is_json(text: str) -> bool:
    if text[0] not in "{[":
        return False
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True
