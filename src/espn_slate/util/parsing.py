"""Shared parsing helpers for tolerant numeric/string coercion."""

from __future__ import annotations

import math
import re
from typing import Any

_LEADING_INT = re.compile(r"^[+-]?\d+")


def safe_number(value: Any) -> int | float | None:
    """Parse a score-like value; integral values come back as int."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            parsed = float(raw)
        except ValueError:
            return None
        return safe_number(parsed)
    return None


def safe_int(value: Any) -> int | None:
    """Parse the leading integer of number-like input, returning None when invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value.strip())
        if match is None:
            return None
        return int(match.group(0))
    return None


def to_line(value: Any) -> int | None:
    """Parse an American moneyline price."""
    return safe_int(value)
