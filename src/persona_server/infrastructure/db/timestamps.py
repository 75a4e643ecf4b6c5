"""RFC 3339 timestamp text with nanosecond precision for persisted rows."""

from __future__ import annotations

from datetime import UTC, datetime


def format_rfc3339_nano(value: datetime) -> str:
    """Format an aware datetime as UTC RFC 3339 text with trimmed nanoseconds.

    Fractional seconds carry nine digits with trailing zeros removed, and are
    omitted entirely when zero (`2026-10-19T08:30:00.1234Z`,
    `2026-10-19T08:30:00Z`).
    """

    if value.tzinfo is None:
        raise ValueError("timestamp must be timezone-aware")

    utc_value = value.astimezone(UTC)
    formatted = utc_value.strftime("%Y-%m-%dT%H:%M:%S")
    fraction = f"{utc_value.microsecond * 1000:09d}".rstrip("0")
    if fraction:
        formatted = f"{formatted}.{fraction}"
    return f"{formatted}Z"
