"""
Calendar helpers for monthly reporting.

Every report works on a full calendar month derived from an explicit
reference date supplied by the caller; nothing here reads the clock.
"""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class MonthPeriod:
    """Inclusive [start, end] range covering one calendar month."""

    start: date
    end: date

    @property
    def label(self) -> str:
        return self.start.strftime("%Y-%m")

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end


def first_of_month(d: date) -> date:
    return d.replace(day=1)


def last_of_month(d: date) -> date:
    return d.replace(day=monthrange(d.year, d.month)[1])


def month_period(reference: date) -> MonthPeriod:
    """Month containing `reference`; the day of month is ignored."""
    return MonthPeriod(start=first_of_month(reference), end=last_of_month(reference))


def add_months(d: date, months: int) -> date:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, monthrange(year, month)[1])
    return date(year, month, day)


def previous_month(reference: date) -> date:
    return add_months(first_of_month(reference), -1)


def parse_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value!r}") from exc


def parse_month(value: str) -> date:
    """Accept 'YYYY-MM' or a full ISO date and return the first of that month."""
    text = value.strip()
    if len(text) == 7:
        text = f"{text}-01"
    return first_of_month(parse_date(text))
