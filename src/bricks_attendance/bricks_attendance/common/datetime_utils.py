from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta

from ..core.enums import ReportPeriod


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM or HH:MM:SS into time."""
    value = value.strip()
    fmt = "%H:%M:%S" if value.count(":") == 2 else "%H:%M"
    return datetime.strptime(value, fmt).time()


def parse_iso_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.strip())


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it easily.
    """
    return datetime.now().replace(microsecond=0)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def add_months(day: date, months: int) -> date:
    """Same day ``months`` later, clamped to the end of a shorter month."""
    index = day.year * 12 + day.month - 1 + months
    year, month = divmod(index, 12)
    last = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(day.day, last))


def period_bounds(period: ReportPeriod, today: date) -> tuple[date, date]:
    """Reporting window ending today: the last 7 days, month to date or year to date."""
    if period == ReportPeriod.WEEK:
        return today - timedelta(days=7), today
    if period == ReportPeriod.YEAR:
        return today.replace(month=1, day=1), today
    return today.replace(day=1), today
