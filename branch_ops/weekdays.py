# branch_ops/weekdays.py
"""
Weekday and Calendar Conventions

Inside the application every weekday is ISO 8601: 1=Monday .. 7=Sunday,
the same value `date.isoweekday()` returns.

The backend tables do not agree with each other:
- records.day_of_week, budgets.day_of_week, rrhh_events.recurring_day
  are stored Sunday-based: 0=Sunday .. 6=Saturday
- schedule_assignments.day_of_week, branch_schedule_config.days[].day_of_week
  are stored Monday-based: 1=Monday .. 7=Sunday

Each table converts through the matching pair below, nowhere else.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

MONDAY = 1
SUNDAY = 7
ISO_WEEKDAYS = list(range(MONDAY, SUNDAY + 1))

WEEKDAY_LABELS = {
    1: 'LUNES',
    2: 'MARTES',
    3: 'MIÉRCOLES',
    4: 'JUEVES',
    5: 'VIERNES',
    6: 'SÁBADO',
    7: 'DOMINGO',
}

WEEKS_PER_QUARTER = 13


# =============================================================================
# WIRE CONVERSIONS
# =============================================================================

def from_sunday_based(value) -> Optional[int]:
    """0=Sun..6=Sat (records, budgets, HR recurring days) -> ISO weekday."""
    if value is None or value == '':
        return None
    day = int(value)
    if not 0 <= day <= 6:
        raise ValueError(f"Sunday-based weekday out of range: {value}")
    return SUNDAY if day == 0 else day


def to_sunday_based(iso_day: Optional[int]) -> Optional[int]:
    """ISO weekday -> 0=Sun..6=Sat."""
    if iso_day is None:
        return None
    _check_iso(iso_day)
    return iso_day % 7


def from_monday_based(value) -> Optional[int]:
    """1=Mon..7=Sun (schedule tables) -> ISO weekday."""
    if value is None or value == '':
        return None
    day = int(value)
    _check_iso(day)
    return day


def to_monday_based(iso_day: Optional[int]) -> Optional[int]:
    """ISO weekday -> 1=Mon..7=Sun."""
    if iso_day is None:
        return None
    _check_iso(iso_day)
    return iso_day


def _check_iso(day: int):
    if not MONDAY <= day <= SUNDAY:
        raise ValueError(f"ISO weekday out of range: {day}")


# =============================================================================
# CALENDAR HELPERS
# =============================================================================

def iso_week(day: date) -> Tuple[int, int]:
    """(ISO year, ISO week number) of a date."""
    iso = day.isocalendar()
    return iso[0], iso[1]


def week_monday(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.isoweekday() - 1)


def previous_week(year: int, week: int) -> Tuple[int, int]:
    """(year, week) before the given ISO week; week 1 rolls back to the last week of the previous year."""
    if week > 1:
        return year, week - 1
    return iso_week(date(year - 1, 12, 28))


def date_for_week_day(year: int, week: int, iso_day: int) -> date:
    """Calendar date of an ISO (year, week, weekday)."""
    return date.fromisocalendar(year, week, iso_day)


def week_dates(day: date) -> List[date]:
    """The seven dates (Mon..Sun) of the week containing `day`."""
    monday = week_monday(day)
    return [monday + timedelta(days=i) for i in range(7)]


def days_before(iso_day: int) -> List[int]:
    """
    Weekdays from Monday up to, not including, `iso_day`.

    Sunday (7) yields Monday..Saturday; Monday yields nothing.
    """
    _check_iso(iso_day)
    return list(range(MONDAY, iso_day))


def quarter_of_week(week: int) -> int:
    """Quarter (1-4) of a week number; weeks past 52 belong to Q4."""
    return min(4, (max(1, week) - 1) // WEEKS_PER_QUARTER + 1)


def quarter_week_range(quarter: int) -> Tuple[int, int]:
    """Inclusive (first_week, last_week) of a quarter. Q4 also covers week 53."""
    start = (quarter - 1) * WEEKS_PER_QUARTER + 1
    end = quarter * WEEKS_PER_QUARTER
    if quarter == 4:
        end = 53
    return start, end


def local_today(timezone: Optional[str] = None) -> date:
    """Today in the branch timezone (server local time when None)."""
    if timezone:
        return datetime.now(ZoneInfo(timezone)).date()
    return date.today()


def parse_date(value) -> Optional[date]:
    """Parse 'YYYY-MM-DD' (or an ISO timestamp) into a date; None when empty or malformed."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


__all__ = [
    'MONDAY',
    'SUNDAY',
    'ISO_WEEKDAYS',
    'WEEKDAY_LABELS',
    'from_sunday_based',
    'to_sunday_based',
    'from_monday_based',
    'to_monday_based',
    'iso_week',
    'week_monday',
    'previous_week',
    'date_for_week_day',
    'week_dates',
    'days_before',
    'quarter_of_week',
    'quarter_week_range',
    'parse_date',
    'local_today',
]
