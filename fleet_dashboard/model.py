import json
from typing import Any

from fleet_dashboard.errors import ParseError

# ----------------------------
# Parsing utilities
# ----------------------------


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def parse_document(text: str | bytes, url: str | None = None) -> dict[str, Any]:
    """
    Parse a snapshot body. Only syntax and the top-level shape are checked;
    every nested field is optional and handled where it is read.
    """
    try:
        doc = json.loads(text)
    except ValueError as exc:
        raise ParseError(f"Snapshot is not valid JSON: {exc}", url) from exc

    if not isinstance(doc, dict):
        raise ParseError(
            f"Snapshot must be a JSON object, got {type(doc).__name__}", url
        )
    return doc


def as_count(value: Any) -> int:
    """
    Coerce a counter field to a non-negative int, absent or garbage -> 0.
    """
    if isinstance(value, bool) or value is None:
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        # non-finite floats (1e400 parses to inf)
        return 0
    return max(count, 0)


def as_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def as_mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_records(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
