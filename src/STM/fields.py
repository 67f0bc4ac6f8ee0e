"""
Field normalization for registry date and code fields.

Registry fields arrive as text. A field is usable only when every character is a
digit; anything else (blank, placeholder, garbage) is carried as a sentinel:
9999 for an unknown year, 99 for an unknown month or day.
"""

import calendar
import datetime
from dataclasses import dataclass, replace
from typing import Optional

UNKNOWN_YEAR = 9999
UNKNOWN_MONTH = 99
UNKNOWN_DAY = 99

UNKNOWN_MONTHS = 9999
UNKNOWN_SURVIVAL = "9999"

BLANK_YEAR = "    "
BLANK_MONTH = "  "
BLANK_DAY = "  "


@dataclass(frozen=True)
class NormalizedDate:
    """
    A partially known calendar date.

    Attributes:
        year: Four-digit year, or UNKNOWN_YEAR.
        month: 1-12, or UNKNOWN_MONTH.
        day: 1-31, or UNKNOWN_DAY.
    """

    year: int
    month: int
    day: int

    @property
    def year_known(self) -> bool:
        return self.year != UNKNOWN_YEAR

    @property
    def month_known(self) -> bool:
        return self.month != UNKNOWN_MONTH

    @property
    def day_known(self) -> bool:
        return self.day != UNKNOWN_DAY

    @property
    def complete(self) -> bool:
        return self.year_known and self.month_known and self.day_known

    def to_date(self) -> datetime.date:
        """Raises ValueError unless every component is known and forms a real date."""
        if not self.complete:
            raise ValueError(f"Cannot build a calendar date from {self}")
        return datetime.date(self.year, self.month, self.day)


UNKNOWN_DATE = NormalizedDate(UNKNOWN_YEAR, UNKNOWN_MONTH, UNKNOWN_DAY)


def is_digits(value: Optional[str]) -> bool:
    # str.isdigit() alone accepts superscripts and other unicode digits
    return isinstance(value, str) and value.isascii() and value.isdigit()


def parse_code(value: Optional[str], default: int) -> int:
    return int(value) if is_digits(value) else default


def parse_year(value: Optional[str]) -> int:
    return parse_code(value, UNKNOWN_YEAR)


def parse_month(value: Optional[str]) -> int:
    return parse_code(value, UNKNOWN_MONTH)


def parse_day(value: Optional[str]) -> int:
    return parse_code(value, UNKNOWN_DAY)


def normalize_date(year: Optional[str], month: Optional[str], day: Optional[str]) -> NormalizedDate:
    """
    Parse raw year/month/day text into a NormalizedDate.
    An unknown month hides the day; an unknown year hides month and day.
    """
    parsed_year = parse_year(year)
    parsed_month = parse_month(month)
    parsed_day = parse_day(day)
    if parsed_year == UNKNOWN_YEAR:
        parsed_month = UNKNOWN_MONTH
    if parsed_month == UNKNOWN_MONTH:
        parsed_day = UNKNOWN_DAY
    return NormalizedDate(parsed_year, parsed_month, parsed_day)


def is_calendar_date(year: int, month: int, day: int) -> bool:
    try:
        datetime.date(year, month, day)
    except (ValueError, OverflowError):
        return False
    return True


def repair_date(date: NormalizedDate) -> NormalizedDate:
    """
    Degrade a date that does not exist on the calendar.

    Unknown month/day are checked as the first of the month/year. A bad day on a
    real month drops the day; a bad month drops both month and day.
    """
    if not date.year_known:
        return date
    month = date.month if date.month_known else 1
    day = date.day if date.day_known else 1
    if is_calendar_date(date.year, month, day):
        return date
    if 1 <= date.month <= 12:
        return replace(date, day=UNKNOWN_DAY)
    return replace(date, month=UNKNOWN_MONTH, day=UNKNOWN_DAY)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def format_year(year: int) -> str:
    return BLANK_YEAR if year == UNKNOWN_YEAR else f"{year:04d}"


def format_month(month: int) -> str:
    return BLANK_MONTH if month == UNKNOWN_MONTH else f"{month:02d}"


def format_day(day: int) -> str:
    return BLANK_DAY if day == UNKNOWN_DAY else f"{day:02d}"


def format_months(months: int) -> str:
    return f"{months:04d}"
