from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo


@dataclass(frozen=True)
class TimeSettings:
    """Local timezone used for every date conversion in a run."""

    utc_offset_hours: float = 9.0
    timezone_name: str = "JST"

    @property
    def tz(self) -> tzinfo:
        return timezone(timedelta(hours=self.utc_offset_hours), self.timezone_name)

    def to_local(self, dt: datetime) -> datetime:
        return dt.astimezone(self.tz)

    def now(self) -> datetime:
        return datetime.now(tz=self.tz)


def parse_iso8601(dt_str: str) -> datetime:
    # GitHub uses e.g. 2024-01-01T00:00:00Z
    if dt_str.endswith("Z"):
        dt_str = dt_str[:-1] + "+00:00"
    dt = datetime.fromisoformat(dt_str)
    if dt.tzinfo is None:
        raise ValueError(f"Timestamp without timezone: {dt_str!r}")
    return dt


def parse_local_timestamp(dt_str: str, settings: TimeSettings) -> datetime:
    return settings.to_local(parse_iso8601(dt_str))


def parse_local_date(date_str: str, settings: TimeSettings) -> datetime:
    """Parse YYYY-MM-DD as local midnight."""
    d = date.fromisoformat(date_str.strip())
    return datetime(d.year, d.month, d.day, tzinfo=settings.tz)


def end_of_day(dt: datetime) -> datetime:
    return dt + timedelta(days=1) - timedelta(seconds=1)


def weekly_period_start(weekday: int, now: datetime) -> datetime:
    """Start of the week containing yesterday, beginning on `weekday`.

    `weekday` follows the 0=Sunday ... 6=Saturday convention; 7 is accepted
    as Sunday. The result is local midnight in `now`'s timezone.
    """
    if not 0 <= weekday <= 7:
        raise ValueError("weekday must be between 0 and 7")
    weekday %= 7
    yesterday = now - timedelta(days=1)
    # Python: Monday=0 ... Sunday=6; shift to Sunday=0.
    yesterday_wd = (yesterday.weekday() + 1) % 7
    days_back = (yesterday_wd - weekday + 7) % 7
    start = yesterday - timedelta(days=days_back)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)
