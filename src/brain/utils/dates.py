"""
Date parsing utilities for front ends.

Pure functions, no external dependencies. The task store itself only accepts
strict ISO dates; these helpers turn what a person types into one.
"""

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Optional

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def today_iso() -> str:
    return date.today().isoformat()


def is_valid_iso_date(value: str) -> bool:
    """True if value is YYYY-MM-DD and names a real calendar date."""
    if not value or not ISO_DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _parse_relative(text: str, today: date) -> Optional[date]:
    """Parse "+3d", "-2w", "+1m", "+1y"."""
    m = re.match(r"^([+-])(\d+)([dwmy])$", text)
    if not m:
        return None
    amount = int(m.group(2))
    if m.group(1) == "-":
        amount = -amount
    unit = m.group(3)
    if unit == "d":
        return today + timedelta(days=amount)
    if unit == "w":
        return today + timedelta(weeks=amount)
    if unit == "m":
        return _add_months(today, amount)
    return _add_months(today, amount * 12)


def _parse_day_name(text: str, today: date) -> Optional[date]:
    """Parse "friday", "next friday", "next-friday", "this-saturday"."""
    prefix = None
    for candidate in ("next", "this"):
        if text.startswith(candidate + "-") or text.startswith(candidate + " "):
            prefix = candidate
            text = text[len(candidate) + 1:].strip()
            break

    if text not in DAY_NAMES:
        return None

    days_ahead = DAY_NAMES.index(text) - today.weekday()
    if prefix == "this":
        if days_ahead < 0:
            days_ahead += 7
    else:
        if days_ahead <= 0:
            days_ahead += 7
        # "next friday" is the Friday of next week, not the coming one
        if prefix == "next" and days_ahead < 7:
            days_ahead += 7
    return today + timedelta(days=days_ahead)


def parse_date(date_str: str, today: Optional[date] = None) -> Optional[str]:
    """
    Parse various date formats into ISO 8601 (YYYY-MM-DD).

    Supports:
    - ISO 8601: "2026-02-15" (must be a real date)
    - Keywords: "today", "tomorrow", "yesterday"
    - Relative offsets: "+3d", "-2w", "+1m", "+1y", "in 3 days", "in 2 weeks"
    - Day names: "friday", "next monday", "next-friday", "this-saturday"
    - Month/day: "March 15", "Mar 15", "03/15"

    Args:
        date_str: Input date string
        today: Reference date (defaults to the current local date)

    Returns:
        ISO 8601 date string or None if unparseable
    """
    if not date_str:
        return None

    today = today or date.today()
    text = date_str.strip().lower()

    if ISO_DATE_RE.match(text):
        return text if is_valid_iso_date(text) else None

    if text == "today":
        return today.isoformat()
    if text == "tomorrow":
        return (today + timedelta(days=1)).isoformat()
    if text == "yesterday":
        return (today - timedelta(days=1)).isoformat()

    relative = _parse_relative(text, today)
    if relative:
        return relative.isoformat()

    m = re.match(r"^in (\d+) (days?|weeks?)$", text)
    if m:
        amount = int(m.group(1))
        delta = timedelta(weeks=amount) if m.group(2).startswith("week") else timedelta(days=amount)
        return (today + delta).isoformat()

    day = _parse_day_name(text, today)
    if day:
        return day.isoformat()

    for fmt in ("%B %d", "%b %d", "%m/%d"):
        try:
            parsed = datetime.strptime(text, fmt).date()
        except ValueError:
            continue
        parsed = parsed.replace(year=today.year)
        if parsed < today:
            parsed = parsed.replace(year=today.year + 1)
        return parsed.isoformat()

    return None
