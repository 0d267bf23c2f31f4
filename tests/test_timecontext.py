from dataclasses import FrozenInstanceError
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from taskflow.core.errors import ValidationError
from taskflow.core.timecontext import (
    TimeContext,
    end_of_week,
    ensure_utc,
    local_to_utc,
    resolve_time_zone,
    to_local_date,
)

BERLIN = ZoneInfo("Europe/Berlin")


def test_resolve_known_zone():
    assert resolve_time_zone(" Europe/Berlin ") == BERLIN
    assert resolve_time_zone("UTC") is timezone.utc


@pytest.mark.parametrize("zone_id", ["", "   ", None, "Mars/Olympus_Mons"])
def test_resolve_rejects_unknown(zone_id):
    with pytest.raises(ValidationError):
        resolve_time_zone(zone_id)


def test_naive_datetime_treated_as_utc():
    assert ensure_utc(datetime(2026, 1, 1, 12, 0)) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_local_date_crosses_midnight():
    assert to_local_date(datetime(2026, 6, 30, 22, 30, tzinfo=timezone.utc), BERLIN) == date(2026, 7, 1)


def test_local_to_utc_winter_and_summer():
    assert local_to_utc(date(2026, 2, 10), time(10, 0), BERLIN) == datetime(2026, 2, 10, 9, 0, tzinfo=timezone.utc)
    assert local_to_utc(date(2026, 7, 10), time(10, 0), BERLIN) == datetime(2026, 7, 10, 8, 0, tzinfo=timezone.utc)


def test_ambiguous_time_resolves_to_standard_time():
    # 02:30 happens twice on 2026-10-25; the later occurrence is CET (UTC+1)
    assert local_to_utc(date(2026, 10, 25), time(2, 30), BERLIN) == datetime(2026, 10, 25, 1, 30, tzinfo=timezone.utc)


def test_skipped_time_rejected():
    with pytest.raises(ValidationError):
        local_to_utc(date(2026, 3, 29), time(2, 30), BERLIN)


@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2026, 2, 9), date(2026, 2, 15)),   # Monday
        (date(2026, 2, 11), date(2026, 2, 15)),  # Wednesday
        (date(2026, 2, 15), date(2026, 2, 15)),  # Sunday
    ],
)
def test_end_of_week_is_next_sunday(today, expected):
    assert end_of_week(today) == expected


def test_capture_requires_zone():
    with pytest.raises(ValidationError):
        TimeContext.capture(None)


def test_capture_is_frozen():
    ctx = TimeContext.capture(BERLIN, datetime(2026, 2, 11, 11, 0, tzinfo=timezone.utc))
    with pytest.raises(FrozenInstanceError):
        ctx.today_local = date(2000, 1, 1)
