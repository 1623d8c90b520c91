# branch_ops/schedule/rrhh.py
"""
HR (RRHH) Event Rules

Which events apply on a given date, which of them take an advisor off the
floor, and the HR dashboard lists (active incidents, this month's timeline,
birthdays and hire anniversaries, latest recognitions).

Weekdays are ISO (1=Monday .. 7=Sunday).
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from ..models import Advisor, RRHHEvent
from .constants import (
    BLOCKED_ROW_LABELS,
    BLOCKING_TYPES,
    EVENT_DAY_OFF,
    EVENT_LABELS,
    EVENT_RECOGNITION,
)

logger = logging.getLogger(__name__)


# =============================================================================
# EVENT APPLICABILITY
# =============================================================================

def event_applies_on(event: RRHHEvent, day: date) -> bool:
    """
    True when the event covers `day`.

    Recurring events apply from their start date onwards on the matching
    weekday. Others apply inside [start_date, end_date]; a missing end date
    means a single-day event.
    """
    if event.is_recurring:
        if event.start_date is not None and day < event.start_date:
            return False
        return event.recurring_day == day.isoweekday()

    if event.start_date is None:
        return False
    end = event.end_date or event.start_date
    return event.start_date <= day <= end


def blocking_event_for(events: List[RRHHEvent], advisor_id: str, day: date) -> Optional[RRHHEvent]:
    """First blocking event of the advisor on `day`, or None."""
    for event in events:
        if event.advisor_id != advisor_id or event.type not in BLOCKING_TYPES:
            continue
        if event_applies_on(event, day):
            return event
    return None


def is_absent(events: List[RRHHEvent], advisor_id: str, day: date) -> bool:
    return blocking_event_for(events, advisor_id, day) is not None


def present_advisors(advisors: List[Advisor], events: List[RRHHEvent], day: date) -> List[Advisor]:
    """Advisors without a blocking event on `day` (data entry roster)."""
    return [a for a in advisors if not is_absent(events, a.id, day)]


def blocked_label(event: RRHHEvent) -> str:
    """Text shown over a blocked roster row."""
    return BLOCKED_ROW_LABELS.get(event.type) or event.title or event.type


def event_label(event_type: str) -> str:
    return EVENT_LABELS.get(event_type, event_type)


# =============================================================================
# DASHBOARD LISTS
# =============================================================================

def active_incidents(events: List[RRHHEvent], today: date) -> List[RRHHEvent]:
    """
    Incidents running today.

    DAY_OFF events count when their recurring day is today's weekday;
    everything else when today falls inside its date range, recognitions
    excluded.
    """
    active = []
    for event in events:
        if event.type == EVENT_DAY_OFF:
            if event.recurring_day == today.isoweekday():
                active.append(event)
            continue
        if event.type == EVENT_RECOGNITION or event.start_date is None:
            continue
        end = event.end_date or event.start_date
        if event.start_date <= today <= end:
            active.append(event)
    return active


def month_timeline(events: List[RRHHEvent], today: date) -> List[RRHHEvent]:
    """Non-recurring, non-recognition events starting this month, by start date."""
    selected = [
        e for e in events
        if e.type not in (EVENT_DAY_OFF, EVENT_RECOGNITION)
        and e.start_date is not None
        and e.start_date.year == today.year
        and e.start_date.month == today.month
    ]
    return sorted(selected, key=lambda e: e.start_date)


def recent_recognitions(events: List[RRHHEvent], limit: int = 3) -> List[RRHHEvent]:
    recognitions = [e for e in events if e.type == EVENT_RECOGNITION]
    return recognitions[:limit]


@dataclass
class Celebration:
    advisor: Advisor
    is_birthday: bool
    is_anniversary: bool
    years: int
    day: int


def monthly_celebrations(advisors: List[Advisor], today: date) -> List[Celebration]:
    """
    Birthdays and hire anniversaries falling in today's month, by day.

    `years` is the completed years of service this year; `day` is the
    birthday when it is this month, the anniversary otherwise.
    """
    celebrations = []
    for advisor in advisors:
        birthday = advisor.birth_date is not None and advisor.birth_date.month == today.month
        anniversary = advisor.hire_date is not None and advisor.hire_date.month == today.month
        if not (birthday or anniversary):
            continue

        years = today.year - advisor.hire_date.year if advisor.hire_date else 0
        day = advisor.birth_date.day if birthday else advisor.hire_date.day
        celebrations.append(Celebration(advisor, birthday, anniversary, years, day))

    celebrations.sort(key=lambda c: c.day)
    logger.debug(f"🎂 {len(celebrations)} celebrations in month {today.month}")
    return celebrations


__all__ = [
    'event_applies_on',
    'blocking_event_for',
    'is_absent',
    'present_advisors',
    'blocked_label',
    'event_label',
    'active_incidents',
    'month_timeline',
    'recent_recognitions',
    'Celebration',
    'monthly_celebrations',
]
