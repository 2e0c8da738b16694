"""Month token helpers"""

import calendar
import re
from datetime import date
from typing import Tuple
from household_ledger.domain.exceptions import InvalidMonthTokenError

MONTH_TOKEN_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

_MONTH_TOKEN_RE = re.compile(MONTH_TOKEN_PATTERN)


def current_month_year(today: date | None = None) -> str:
    """Month token ("YYYY-MM") for the local wall-clock date"""
    today = today or date.today()
    return f"{today.year}-{today.month:02d}"


def parse_month_year(month_year: str) -> Tuple[int, int]:
    """Split a month token into (year, month)"""
    if not isinstance(month_year, str) or not _MONTH_TOKEN_RE.match(month_year):
        raise InvalidMonthTokenError(f"Invalid month token: {month_year!r} (expected YYYY-MM)")
    year, month = month_year.split("-")
    return int(year), int(month)


def month_name(month_year: str) -> str:
    """Human readable month, e.g. "2024-03" -> "March 2024" """
    year, month = parse_month_year(month_year)
    return f"{calendar.month_name[month]} {year}"


def due_date_for(month_year: str, day_of_month: int) -> date:
    """
    Calendar date a monthly item falls due in the given month.

    Days past the end of the month clamp to its last day, so a bill due on
    the 31st is due on 2024-02-29 in February 2024.
    """
    year, month = parse_month_year(month_year)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, max(1, min(day_of_month, last_day)))
