"""Utility functions for formatting responses."""

from typing import Any


def strip_quotes(value: Any) -> str:
    """Strip one layer of surrounding quotes (left behind by double JSON encoding)."""
    out = str(value).strip()
    if len(out) >= 2 and out[0] == out[-1] and out[0] in ("'", '"'):
        out = out[1:-1]
    return out


def to_float(value: Any, default: float = 0.0) -> float:
    """Parse a numeric field the API may return as a string."""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_usd_price(price: str | None) -> str | None:
    return f"${price}" if price else None
