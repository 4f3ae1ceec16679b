"""Rule document codec.

A rule document is a small JavaScript file consumed by the redirect page:

    window.RULES_INTERMEDIATE = {
        "/abc12": {
            "url": "https://example.com/",
            "expired_at": "2026-01-01T00:00:00.000Z"
        }
    };

Only this module knows about the envelope; callers work with plain dicts.
"""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any

from shortlink.app.exceptions import InvalidJSONError, MalformedEnvelopeError

RuleTable = dict[str, dict[str, Any]]

ENVELOPE_TEMPLATE = "window.{binding} = {body};\n"
JSON_INDENT = 4


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def decode(text: str) -> RuleTable:
    """Extract the rule table from a document.

    The table is the span from the first ``{`` to the last ``}``; everything
    around it is boilerplate written by :func:`encode`.

    Raises:
        MalformedEnvelopeError: No ``{...}`` span exists
        InvalidJSONError: The span is not a strict JSON object
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise MalformedEnvelopeError()

    try:
        table = json.loads(text[start:end + 1], parse_constant=_reject_constant)
    except ValueError as e:
        raise InvalidJSONError(f"Document content is not valid JSON: {e}") from e

    if not isinstance(table, dict):
        raise InvalidJSONError("Document content is not a JSON object")
    return table


def encode(table: RuleTable, binding_name: str) -> str:
    """Serialize a rule table into a document, keeping the table's order."""
    body = json.dumps(table, indent=JSON_INDENT, ensure_ascii=False)
    return ENVELOPE_TEMPLATE.format(binding=binding_name, body=body)


def format_expiry(unix_seconds: int | float) -> str:
    """Format a Unix timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (UTC).

    Raises:
        ValueError: The timestamp is not finite or falls outside the
            representable date range
    """
    if isinstance(unix_seconds, float) and not math.isfinite(unix_seconds):
        raise ValueError("timestamp must be finite")
    try:
        moment = datetime.fromtimestamp(unix_seconds, tz=timezone.utc)
    except (OverflowError, OSError) as e:
        raise ValueError(f"timestamp out of range: {unix_seconds}") from e
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_expiry(value: Any) -> datetime | None:
    """Parse a stored ``expired_at`` value into an aware datetime.

    Returns None for anything that is not an ISO-8601 string. Naive values
    are read as UTC.
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment
