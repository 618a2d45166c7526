# src/status/normalizer.py - v1
"""Map upstream task statuses onto the canonical remote lifecycle.

The parsing service reports numeric codes on some channels and string
enums or synonyms on others. Only explicit success or failure vocabulary
reaches a terminal state; anything absent, malformed or unknown maps to
"processing".

Numeric codes: WAIT=0, PENDING=1, RUNNING=2, JOBSUCC=3, JOBFAILED=4,
DONE=100, FAILED=101, REPEAT=1011 (duplicate submission, treated as success).
"""

from __future__ import annotations

import logging
from typing import Any

from docparse.core.models import RemoteState

logger = logging.getLogger(__name__)

REPEAT_CODE = 1011

_NUMERIC_STATES: dict[int, RemoteState] = {
    0: "processing",
    1: "processing",
    2: "processing",
    3: "completed",
    4: "failed",
    100: "completed",
    101: "failed",
    REPEAT_CODE: "completed",
}

COMPLETED_SYNONYMS = frozenset(
    {"JOBSUCC", "SUCCESS", "COMPLETED", "DONE", "FINISHED", "REPEAT"}
)
FAILED_SYNONYMS = frozenset({"JOBFAILED", "FAILED", "ERROR"})
PROCESSING_SYNONYMS = frozenset(
    {"PROCESSING", "RUNNING", "WAIT", "WAITING", "PARSING", "PENDING"}
)


def _as_number(raw: Any) -> float | None:
    """Numeric interpretation of ``raw``, or None if it has none."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return float(text)
        except ValueError:
            return None
    return None


def normalize_status(raw: Any) -> RemoteState:
    """Normalize an upstream status to processing, completed or failed."""
    if raw is None:
        return "processing"

    number = _as_number(raw)
    if number is not None:
        if not number.is_integer():
            return "processing"
        return _NUMERIC_STATES.get(int(number), "processing")

    label = str(raw).strip().upper()
    if label in COMPLETED_SYNONYMS:
        return "completed"
    if label in FAILED_SYNONYMS:
        return "failed"
    if label not in PROCESSING_SYNONYMS:
        logger.debug("Unrecognized upstream status %r, keeping processing", raw)
    return "processing"


def is_duplicate_submission(raw: Any) -> bool:
    """True for the REPEAT outcome, which counts as success but is audited."""
    number = _as_number(raw)
    if number is not None:
        return number == REPEAT_CODE
    return isinstance(raw, str) and raw.strip().upper() == "REPEAT"
