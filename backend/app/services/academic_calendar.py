"""
Date helpers shared by the student, academic, teacher and admin services.

Academic years run April → March (e.g. "2025-2026" from 1 April 2025 to
31 March 2026). Timetable weekdays use 0 = Sunday … 6 = Saturday.
"""

import calendar
from datetime import date, datetime
from typing import Optional, Tuple

from app.exceptions import ValidationError

ACADEMIC_YEAR_START_MONTH = 4

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def current_academic_year(today: Optional[date] = None) -> str:
    today = today or date.today()
    start = today.year if today.month >= ACADEMIC_YEAR_START_MONTH else today.year - 1
    return f"{start}-{start + 1}"


def month_bounds(today: Optional[date] = None) -> Tuple[date, date]:
    """First and last day of the month containing `today`."""
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def timetable_weekday(day: date) -> int:
    """Python's isoweekday (Mon=1 … Sun=7) mapped onto the timetable's 0..6."""
    return day.isoweekday() % 7


def parse_date(value: str, field: str = "date") -> date:
    """YYYY-MM-DD → date, raising a 400 ValidationError on anything else."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(message=f"invalid {field} format, expected YYYY-MM-DD", field=field)
