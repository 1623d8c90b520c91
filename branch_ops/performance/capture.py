# branch_ops/performance/capture.py
"""
Record Capture Helpers

Form-side logic of the data entry page:
- validation (every active indicator needs a value, 0 included)
- collision lookup before overwriting an existing capture
- record construction with the calendar date of the captured weekday
- auto-distribution of a weekly total over Monday..yesterday
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from ..constants import FREQ_DAILY, REPORT_INDIVIDUAL
from ..models import Indicator, RecordData, ValidationError
from ..weekdays import MONDAY, date_for_week_day, days_before

logger = logging.getLogger(__name__)


def validate_record_values(
    indicators: List[Indicator],
    form_values: Dict[str, object],
    report_type: str,
    advisor_id: Optional[str] = None,
) -> Dict[str, float]:
    """
    Check a capture form and return its numeric values.

    Raises:
        ValidationError: Individual report without advisor, or empty /
            non-numeric indicator fields (listed in `.fields`)
    """
    if report_type == REPORT_INDIVIDUAL and not advisor_id:
        raise ValidationError("Seleccione un colaborador")

    values: Dict[str, float] = {}
    invalid: List[str] = []
    for indicator in indicators:
        raw = form_values.get(indicator.id)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            invalid.append(indicator.id)
            continue
        try:
            values[indicator.id] = float(raw)
        except (TypeError, ValueError):
            invalid.append(indicator.id)

    if invalid:
        raise ValidationError('Existen campos vacíos. Coloque "0" si no hay valor.', fields=invalid)

    return values


def find_collision(
    records: List[RecordData],
    year: int,
    week: int,
    report_type: str,
    frequency: str,
    advisor_id: Optional[str] = None,
    day_of_week: Optional[int] = None,
    editing_id: Optional[str] = None,
) -> Optional[RecordData]:
    """Existing capture the new one would overwrite (the edited record excluded)."""
    owner = advisor_id if report_type == REPORT_INDIVIDUAL else None
    for record in records:
        if (
            record.id != editing_id
            and record.year == year
            and record.week == week
            and record.type == report_type
            and record.advisor_id == owner
            and record.frequency == frequency
            and (frequency != FREQ_DAILY or record.day_of_week == day_of_week)
        ):
            return record
    return None


def build_record(
    values: Dict[str, float],
    year: int,
    week: int,
    report_type: str,
    frequency: str,
    day_of_week: Optional[int] = None,
    advisor_id: Optional[str] = None,
    record_id: str = '',
) -> RecordData:
    """
    Record for a capture. DAILY rows are dated on their weekday, WEEKLY
    rows on the Monday of the week.
    """
    weekday = day_of_week if frequency == FREQ_DAILY else MONDAY
    return RecordData(
        id=record_id,
        date=date_for_week_day(year, week, weekday),
        year=year,
        week=week,
        type=report_type,
        frequency=frequency,
        day_of_week=day_of_week if frequency == FREQ_DAILY else None,
        advisor_id=advisor_id if report_type == REPORT_INDIVIDUAL else None,
        values=dict(values),
    )


def distribute_weekly_total(
    values: Dict[str, float],
    year: int,
    week: int,
    report_type: str,
    today: date,
    advisor_id: Optional[str] = None,
) -> List[RecordData]:
    """
    Split an accumulated weekly capture evenly into DAILY records from
    Monday up to yesterday. On Mondays the whole total lands on Monday.
    """
    days = days_before(today.isoweekday()) or [MONDAY]
    share = {key: amount / len(days) for key, amount in values.items()}

    records = [
        build_record(share, year, week, report_type, FREQ_DAILY, day_of_week=day, advisor_id=advisor_id)
        for day in days
    ]
    logger.info(f"📊 Distributed weekly total over {len(days)} days (week {week})")
    return records


__all__ = [
    'validate_record_values',
    'find_collision',
    'build_record',
    'distribute_weekly_total',
]
