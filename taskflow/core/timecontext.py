"""
Time zone resolution and UTC/local conversions.

Local calendar values (due dates, due times) always belong to the owning
subscription's zone. Instants are aware datetimes in UTC.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from taskflow.core.errors import ValidationError


def resolve_time_zone(zone_id: Optional[str]) -> tzinfo:
    """Resolve an IANA zone identifier, e.g. "Europe/Berlin"."""
    if zone_id is None or not str(zone_id).strip():
        raise ValidationError("Time zone id cannot be empty.")

    normalized = str(zone_id).strip()
    if normalized.upper() in {"UTC", "Z", "ETC/UTC"}:
        return timezone.utc

    try:
        return ZoneInfo(normalized)
    except (ZoneInfoNotFoundError, ValueError, OSError) as ex:
        raise ValidationError(f"Unknown timezone id '{normalized}'.") from ex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(instant: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_local_datetime(instant_utc: datetime, tz: tzinfo) -> datetime:
    return ensure_utc(instant_utc).astimezone(tz)


def to_local_date(instant_utc: datetime, tz: tzinfo) -> date:
    return to_local_datetime(instant_utc, tz).date()


def local_to_utc(local_date: date, local_time: time, tz: tzinfo) -> datetime:
    """
    Combine a wall-clock date and time in tz and return the UTC instant.

    Ambiguous wall times (clocks turned back) resolve to the later, standard
    time occurrence. Wall times skipped by a forward transition do not exist
    and are rejected.
    """
    if tz is None:
        raise ValidationError("Time zone is required.")

    naive = datetime.combine(local_date, local_time.replace(tzinfo=None))
    aware = naive.replace(tzinfo=tz, fold=1)
    instant = aware.astimezone(timezone.utc)

    if instant.astimezone(tz).replace(tzinfo=None) != naive:
        raise ValidationError(f"Local time {naive.isoformat()} does not exist in the given time zone.")

    return instant


def end_of_week(today_local: date) -> date:
    """Sunday closing the week that contains today_local (today itself on Sundays)."""
    return today_local + timedelta(days=6 - today_local.weekday())


@dataclass(frozen=True)
class TimeContext:
    """
    "Now" as seen by one logical request.

    Captured once and handed to every evaluation of the request so that
    every task in a batch is bucketed against the same today/end-of-week.
    """

    now_utc: datetime
    time_zone: tzinfo
    today_local: date
    end_of_week_local: date

    @classmethod
    def capture(cls, time_zone: tzinfo, now_utc: Optional[datetime] = None) -> "TimeContext":
        if time_zone is None:
            raise ValidationError("Time zone is required.")
        now = ensure_utc(now_utc) if now_utc is not None else utc_now()
        today = to_local_date(now, time_zone)
        return cls(
            now_utc=now,
            time_zone=time_zone,
            today_local=today,
            end_of_week_local=end_of_week(today),
        )
