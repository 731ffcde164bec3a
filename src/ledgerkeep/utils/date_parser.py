"""Date parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_AGO_PATTERN = re.compile(r"^(\d+)\s+(day|week|month|year)s?\s+ago$")


def _start_of_week(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _shift(day: date, unit: str, count: int) -> date:
    if unit == "day":
        return day + timedelta(days=count)
    if unit == "week":
        return day + timedelta(weeks=count)
    if unit == "month":
        return day + relativedelta(months=count)
    return day + relativedelta(years=count)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    ones: "today", "yesterday", "tomorrow", "N days/weeks/months/years ago",
    "last monday" and "last/this/next week|month|year" (start of the period).

    Args:
        date_str: Date string
        today: Reference date for relative expressions (defaults to today)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    if text == "today":
        return today
    if text == "yesterday":
        return today - timedelta(days=1)
    if text == "tomorrow":
        return today + timedelta(days=1)

    match = _AGO_PATTERN.match(text)
    if match:
        return _shift(today, match.group(2), -int(match.group(1)))

    words = text.split()
    if len(words) == 2 and words[0] in ("last", "this", "next"):
        direction = {"last": -1, "this": 0, "next": 1}[words[0]]
        period = words[1]
        if period in WEEKDAYS and direction == -1:
            days_ago = (today.weekday() - WEEKDAYS.index(period)) % 7 or 7
            return today - timedelta(days=days_ago)
        if period == "week":
            return _start_of_week(today) + timedelta(weeks=direction)
        if period == "month":
            return today.replace(day=1) + relativedelta(months=direction)
        if period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=direction)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Args:
        period: One of this-week, this-month, this-year, last-week,
            last-month, last-year, last-7-days, last-30-days

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If period string is not recognized
    """
    key = period.strip().lower()
    today = today or date.today()

    if key == "last-7-days":
        return today - timedelta(days=6), today
    if key == "last-30-days":
        return today - timedelta(days=29), today

    starts = {
        "week": _start_of_week(today),
        "month": today.replace(day=1),
        "year": today.replace(month=1, day=1),
    }
    prefix, _, unit = key.partition("-")
    if unit in starts and prefix == "this":
        return starts[unit], today
    if unit in starts and prefix == "last":
        end = starts[unit] - timedelta(days=1)
        return _shift(starts[unit], unit, -1), end

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-week, this-month, this-year, "
        "last-week, last-month, last-year, last-7-days, last-30-days"
    )
