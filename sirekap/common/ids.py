"""Run and record identifier helpers."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from sirekap.common.errors import IdentifierParseError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def generate_run_id() -> str:
    now = datetime.now(tz=timezone.utc)
    return now.strftime("run-%Y%m%dT%H%M%S%fZ")


def parse_record_id(code: object) -> int:
    """Parse a leaf code into a signed 64-bit record id."""
    if not isinstance(code, str) or not _INTEGER_RE.fullmatch(code):
        raise IdentifierParseError(f"Leaf code is not an integer: {code!r}")
    value = int(code)
    if not INT64_MIN <= value <= INT64_MAX:
        raise IdentifierParseError(f"Leaf code out of int64 range: {code!r}")
    return value
