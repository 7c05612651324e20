"""Moneyline lookup, formatting, and conversion helpers."""

from __future__ import annotations

import math
from typing import Any

from espn_slate.util.parsing import to_line

NOT_AVAILABLE = "N/A"

# Upstream spells the field two ways; earlier names win.
MONEYLINE_FIELDS: tuple[str, ...] = ("Moneyline", "moneyLine")


def read_moneyline(side_odds: Any) -> Any:
    """Return the first present moneyline field of a team-odds object, else None."""
    if not isinstance(side_odds, dict):
        return None
    for field in MONEYLINE_FIELDS:
        if field in side_odds and side_odds[field] is not None:
            return side_odds[field]
    return None


def format_moneyline(value: Any) -> str | None:
    """Format a moneyline for display: '+' on positives, negatives untouched."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        number = int(value) if float(value).is_integer() else value
        return f"+{number}" if number > 0 else str(number)
    raw = str(value).strip()
    if not raw:
        return None
    parsed = to_line(raw)
    if parsed is not None and parsed > 0 and not raw.startswith("+"):
        return f"+{raw}"
    return raw


def display_moneyline(value: Any) -> str:
    """Format a moneyline, mapping absent values to the N/A sentinel."""
    formatted = format_moneyline(value)
    return formatted if formatted else NOT_AVAILABLE


def implied_prob_from_american(price: int | None) -> float | None:
    """Convert American odds to implied probability."""
    if price is None:
        return None
    if price > 0:
        return 100.0 / (price + 100.0)
    if price < 0:
        value = -price
        return value / (value + 100.0)
    return None
