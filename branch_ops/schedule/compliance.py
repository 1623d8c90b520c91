# branch_ops/schedule/compliance.py
"""
Fenix Protected-Time Compliance

Planned = protected slots assigned to an advisor over the week.
Completed = planned slots with a compliant mark for (advisor, date, slot).
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..models import Advisor, FenixCompliance, ScheduleActivity, ScheduleAssignment
from ..weekdays import week_dates
from .grid import ScheduleGrid

logger = logging.getLogger(__name__)


def compliance_index(compliances: List[FenixCompliance]) -> Dict[Tuple[str, date, str], bool]:
    """(advisor_id, date, slot) -> is_compliant; later rows win."""
    return {c.key: c.is_compliant for c in compliances}


def compliance_percentage(completed: int, planned: int) -> int:
    """Rounded completed/planned percentage, halves up; 0 when nothing is planned."""
    if planned <= 0:
        return 0
    return int(np.floor(completed / planned * 100 + 0.5))


@dataclass
class WeeklyCompliance:
    advisor: Advisor
    planned: int
    completed: int

    @property
    def percentage(self) -> int:
        return compliance_percentage(self.completed, self.planned)


def advisor_week_compliance(
    grid: ScheduleGrid,
    compliances: List[FenixCompliance],
    advisor: Advisor,
    reference_day: date,
) -> WeeklyCompliance:
    """Planned / completed protected slots of the week containing `reference_day`."""
    marks = compliance_index(compliances)
    planned = completed = 0

    for day in week_dates(reference_day):
        for assignment in grid.protected_assignments(advisor.id, day.isoweekday()):
            planned += 1
            if marks.get((advisor.id, day, assignment.start_time)):
                completed += 1

    return WeeklyCompliance(advisor, planned, completed)


def weekly_compliance_frame(
    grid: ScheduleGrid,
    compliances: List[FenixCompliance],
    advisors: List[Advisor],
    reference_day: date,
) -> pd.DataFrame:
    """One row per advisor: advisor, planned, completed, percentage."""
    rows = []
    for advisor in advisors:
        result = advisor_week_compliance(grid, compliances, advisor, reference_day)
        rows.append({
            'advisor': advisor.name,
            'planned': result.planned,
            'completed': result.completed,
            'percentage': result.percentage,
        })
    return pd.DataFrame(rows, columns=['advisor', 'planned', 'completed', 'percentage'])


@dataclass
class ChecklistItem:
    advisor: Advisor
    assignment: ScheduleAssignment
    activity: ScheduleActivity
    is_compliant: Optional[bool] = None


def fenix_checklist(
    grid: ScheduleGrid,
    compliances: List[FenixCompliance],
    advisors: List[Advisor],
    day: date,
) -> List[ChecklistItem]:
    """
    Protected slots scheduled on `day`, ordered by advisor name then start time.

    `is_compliant` is None while the slot has not been marked.
    """
    marks = compliance_index(compliances)
    weekday = day.isoweekday()

    items = []
    for advisor in advisors:
        for assignment in grid.protected_assignments(advisor.id, weekday):
            items.append(ChecklistItem(
                advisor=advisor,
                assignment=assignment,
                activity=grid.activities[assignment.activity_id],
                is_compliant=marks.get((advisor.id, day, assignment.start_time)),
            ))

    items.sort(key=lambda item: (item.advisor.name, item.assignment.start_time))
    return items


__all__ = [
    'compliance_index',
    'compliance_percentage',
    'WeeklyCompliance',
    'advisor_week_compliance',
    'weekly_compliance_frame',
    'ChecklistItem',
    'fenix_checklist',
]
