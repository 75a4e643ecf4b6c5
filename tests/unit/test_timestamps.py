from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from persona_server.infrastructure.db.timestamps import format_rfc3339_nano


def test_fraction_is_nanosecond_scaled_and_trimmed() -> None:
    value = datetime(2026, 10, 19, 8, 30, 0, 123400, tzinfo=UTC)

    assert format_rfc3339_nano(value) == "2026-10-19T08:30:00.1234Z"


def test_whole_seconds_omit_fraction() -> None:
    value = datetime(2026, 10, 19, 8, 30, 0, tzinfo=UTC)

    assert format_rfc3339_nano(value) == "2026-10-19T08:30:00Z"


def test_offsets_are_converted_to_utc() -> None:
    value = datetime(2026, 10, 19, 17, 30, 0, 1, tzinfo=timezone(timedelta(hours=9)))

    assert format_rfc3339_nano(value) == "2026-10-19T08:30:00.000001Z"


def test_naive_datetimes_are_rejected() -> None:
    with pytest.raises(ValueError, match="timezone-aware"):
        format_rfc3339_nano(datetime(2026, 10, 19, 8, 30, 0))
