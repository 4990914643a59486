"""
scheduling/calculator.py

Cadence arithmetic for scheduled report jobs.

All functions are pure: the reference instant is passed in, and every
returned instant is an aware UTC datetime. Wall-clock times are applied in
the job's IANA timezone so that "09:00 Europe/Berlin" stays 09:00 local
across DST changes.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.errors import invalid_argument


class Frequency:
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    ALL = frozenset({DAILY, WEEKLY, MONTHLY})


_TIME_OF_DAY_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def parse_time_of_day(value: str) -> time:
    """
    Parse ``HH:MM`` (seconds optional) into a ``time``.
    """

    match = _TIME_OF_DAY_RE.match((value or "").strip())
    if match is None:
        raise invalid_argument(
            "INVALID_TIME_OF_DAY",
            f"Time of day '{value}' is not in HH:MM format.",
            "Use a 24-hour time such as 09:00.",
        )
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise invalid_argument(
            "INVALID_TIME_OF_DAY",
            f"Time of day '{value}' is out of range.",
            "Use a 24-hour time between 00:00 and 23:59.",
        )
    return time(hour=hour, minute=minute)


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise invalid_argument(
            "INVALID_TIMEZONE",
            f"Timezone '{name}' is not a known IANA timezone.",
            "Use an IANA name such as UTC or America/New_York.",
        ) from exc


def validate_cadence(
    frequency: str,
    time_of_day: str,
    day_of_week: int | None = None,
    day_of_month: int | None = None,
    timezone: str = "UTC",
) -> None:
    if frequency not in Frequency.ALL:
        raise invalid_argument(
            "INVALID_FREQUENCY",
            f"Frequency '{frequency}' is not supported.",
            f"Use one of: {', '.join(sorted(Frequency.ALL))}.",
        )
    parse_time_of_day(time_of_day)
    resolve_timezone(timezone)

    if frequency == Frequency.WEEKLY and (day_of_week is None or not 0 <= day_of_week <= 6):
        raise invalid_argument(
            "INVALID_DAY_OF_WEEK",
            "Weekly jobs require day_of_week between 0 (Sunday) and 6 (Saturday).",
            "Set day_of_week to a value from 0 to 6.",
        )
    if frequency == Frequency.MONTHLY and (day_of_month is None or not 1 <= day_of_month <= 31):
        raise invalid_argument(
            "INVALID_DAY_OF_MONTH",
            "Monthly jobs require day_of_month between 1 and 31.",
            "Set day_of_month to a value from 1 to 31.",
        )


# ---------------------------------------------------------------------------
# Next run
# ---------------------------------------------------------------------------


def _sunday_based_weekday(value: date) -> int:
    return (value.weekday() + 1) % 7


def _clamped_day(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _add_months(value: date, months: int, day: int) -> date:
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    return _clamped_day(year, month, day)


def _at(day: date, clock: time, zone: ZoneInfo) -> datetime:
    return datetime.combine(day, clock, tzinfo=zone)


def calculate_next_run(
    frequency: str,
    time_of_day: str,
    day_of_week: int | None = None,
    day_of_month: int | None = None,
    timezone: str = "UTC",
    now: datetime | None = None,
) -> datetime:
    """
    Return the next trigger instant strictly after *now*, in UTC.

    Monthly cadences clamp ``day_of_month`` to the length of the target
    month, so day 31 fires on the last day of shorter months.
    """

    validate_cadence(frequency, time_of_day, day_of_week, day_of_month, timezone)
    zone = resolve_timezone(timezone)
    clock = parse_time_of_day(time_of_day)

    reference = now or datetime.now(dt_timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=dt_timezone.utc)
    local_now = reference.astimezone(zone)
    today = local_now.date()

    if frequency == Frequency.DAILY:
        candidate = _at(today, clock, zone)
        if candidate <= local_now:
            candidate = _at(today + timedelta(days=1), clock, zone)

    elif frequency == Frequency.WEEKLY:
        delta = (day_of_week - _sunday_based_weekday(today)) % 7
        candidate = _at(today + timedelta(days=delta), clock, zone)
        if candidate <= local_now:
            candidate = _at(today + timedelta(days=delta + 7), clock, zone)

    else:
        candidate = _at(_clamped_day(today.year, today.month, day_of_month), clock, zone)
        if candidate <= local_now:
            candidate = _at(_add_months(today, 1, day_of_month), clock, zone)

    return candidate.astimezone(dt_timezone.utc)


# ---------------------------------------------------------------------------
# Reporting window
# ---------------------------------------------------------------------------


def calculate_report_date_range(frequency: str, today: date) -> tuple[date, date]:
    """
    Lookback window a scheduled run reports on, ending *today*.
    """

    if frequency == Frequency.DAILY:
        return today - timedelta(days=1), today
    if frequency == Frequency.WEEKLY:
        return today - timedelta(days=7), today
    if frequency == Frequency.MONTHLY:
        return _add_months(today, -1, today.day), today
    raise invalid_argument(
        "INVALID_FREQUENCY",
        f"Frequency '{frequency}' is not supported.",
        f"Use one of: {', '.join(sorted(Frequency.ALL))}.",
    )
