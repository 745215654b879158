"""
Opening-hours helpers.

Hours rows store one ``<day>_start`` / ``<day>_end`` string per weekday,
either 24-hour ("17:30") or 12-hour ("5:30 PM").
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Mapping
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Phoenix"

# Index 0 is Sunday
DAY_KEYS = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]

_WEEK_ORDER = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]
_DAY_LABELS = {
    "mon": "Mo", "tue": "Tu", "wed": "We", "thu": "Th", "fri": "Fr", "sat": "Sa", "sun": "Su",
}

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


def parse_time_to_minutes(value: Any) -> int | None:
    """Minutes since midnight, or ``None`` when *value* is not a recognised time."""
    if not isinstance(value, str):
        return None
    match = _TIME_RE.match(value)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    period = match.group(3)
    if minute > 59:
        return None
    if period:
        if not 1 <= hour <= 12:
            return None
        hour %= 12
        if period.lower() == "pm":
            hour += 12
    elif hour > 23:
        return None
    return hour * 60 + minute


def day_key(moment: datetime) -> str:
    return DAY_KEYS[(moment.weekday() + 1) % 7]


def is_open_now(
    start_hours: Mapping[str, Any] | None,
    end_hours: Mapping[str, Any] | None,
    now: datetime | None = None,
    timezone_name: str | None = None,
) -> bool:
    """
    Whether today's opening window contains *now* (both bounds inclusive).

    A window whose close is earlier than its open runs past midnight.
    Missing or unparseable hours count as closed. Naive *now* values are
    taken as local wall-clock time.
    """
    zone = ZoneInfo(timezone_name or DEFAULT_TIMEZONE)
    if now is None:
        now = datetime.now(zone)
    elif now.tzinfo is not None:
        now = now.astimezone(zone)

    day = day_key(now)
    open_minutes = parse_time_to_minutes((start_hours or {}).get(f"{day}_start"))
    close_minutes = parse_time_to_minutes((end_hours or {}).get(f"{day}_end"))
    if open_minutes is None or close_minutes is None:
        return False

    current = now.hour * 60 + now.minute
    if close_minutes < open_minutes:
        return current >= open_minutes or current <= close_minutes
    return open_minutes <= current <= close_minutes


def weekly_hours(
    start_hours: Mapping[str, Any] | None,
    end_hours: Mapping[str, Any] | None,
) -> list[dict[str, Any]]:
    """Seven display rows, Monday first, with the hour part of each bound."""
    start_hours = start_hours or {}
    end_hours = end_hours or {}
    rows = []
    for day in _WEEK_ORDER:
        start = start_hours.get(f"{day}_start")
        end = end_hours.get(f"{day}_end")
        if not start or not end or end == "NA":
            rows.append({"day": _DAY_LABELS[day], "open": "", "close": "", "closed": True})
        else:
            rows.append({
                "day": _DAY_LABELS[day],
                "open": str(start).split(":")[0],
                "close": str(end).split(":")[0],
                "closed": False,
            })
    return rows
