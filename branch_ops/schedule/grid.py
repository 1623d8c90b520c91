# branch_ops/schedule/grid.py
"""
Weekly Schedule Grid

Sparse mapping (advisor, ISO weekday, half-hour slot) -> activity over the
branch opening hours.

Features:
- Half-hour time axis from the branch configuration envelope
- Slot painting with upsert / delete / no-op outcomes
- Run merging for display and export
- Protected (Fenix) ranges per advisor and day
- Roster ordering by HR blocking events and shift preference

Usage:
    grid = ScheduleGrid(store.schedule_assignments, store.schedule_activities)
    change = grid.assign_slot(advisor_id, 1, '09:00', activity_id)
    store.apply_slot_changes([change])
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from ..constants import AFFILIATION_ADVISOR, LOAN_ADVISOR
from ..models import Advisor, BranchScheduleConfig, DaySchedule, RRHHEvent, ScheduleActivity, ScheduleAssignment
from ..weekdays import ISO_WEEKDAYS
from .constants import (
    CLOSED_WEEK_CLOSE_TIME,
    CLOSED_WEEK_OPEN_TIME,
    DEFAULT_CLOSE_TIME,
    DEFAULT_OPEN_TIME,
    PRIORITY_BLOCKED,
    PRIORITY_CLOSING,
    PRIORITY_DEFAULT,
    PRIORITY_OPENING,
    SHIFT_CLOSING,
    SHIFT_OPENING,
    SLOT_MINUTES,
)
from .rrhh import blocking_event_for

logger = logging.getLogger(__name__)

CHANGE_UPSERT = 'upsert'
CHANGE_DELETE = 'delete'
CHANGE_NOOP = 'noop'


# =============================================================================
# TIME HELPERS
# =============================================================================

def to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(':')[:2]
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    total %= 24 * 60
    return f"{total // 60:02d}:{total % 60:02d}"


def clock_time(value) -> Optional[str]:
    """'9:00' / '09:00:00' -> '09:00'; None for anything that is not a time of day."""
    if not isinstance(value, str):
        return None
    parts = value.strip().split(':')
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return f"{hours:02d}:{minutes:02d}"


def add_30_minutes(hhmm: str) -> str:
    """'09:30' -> '10:00'; wraps past midnight."""
    return from_minutes(to_minutes(hhmm) + SLOT_MINUTES)


def generate_time_slots(open_time: str, close_time: str) -> List[str]:
    """
    Slot start times from `open_time` (inclusive) to `close_time` (exclusive).

    A blank or malformed bound falls back to the default opening hours.

    Example:
        generate_time_slots('08:30', '10:00') -> ['08:30', '09:00', '09:30']
    """
    start_time, end_time = clock_time(open_time), clock_time(close_time)
    if start_time is None or end_time is None:
        logger.warning(f"⚠️ Invalid opening hours {open_time!r}-{close_time!r}, using defaults")
        start_time = start_time or DEFAULT_OPEN_TIME
        end_time = end_time or DEFAULT_CLOSE_TIME

    start, end = to_minutes(start_time), to_minutes(end_time)
    return [from_minutes(m) for m in range(start, end, SLOT_MINUTES)]


def format_time_12h(hhmm: str) -> str:
    """'13:30' -> '1:30 p.m.', '00:00' -> '12:00 a.m.'"""
    hours, minutes = hhmm.split(':')[:2]
    hour = int(hours)
    suffix = 'p.m.' if hour >= 12 else 'a.m.'
    return f"{hour % 12 or 12}:{minutes} {suffix}"


def contrast_color(hex_color: Optional[str]) -> str:
    """Black or white text for a '#RRGGBB' background (YIQ brightness)."""
    if not hex_color or len(hex_color) < 7:
        return '#ffffff'
    try:
        r = int(hex_color[1:3], 16)
        g = int(hex_color[3:5], 16)
        b = int(hex_color[5:7], 16)
    except ValueError:
        return '#ffffff'
    yiq = (r * 299 + g * 587 + b * 114) / 1000
    return '#000000' if yiq >= 128 else '#ffffff'


# =============================================================================
# BRANCH CONFIGURATION
# =============================================================================

def default_config() -> BranchScheduleConfig:
    """08:30-21:00, every day open."""
    return BranchScheduleConfig(
        open_time=DEFAULT_OPEN_TIME,
        close_time=DEFAULT_CLOSE_TIME,
        days=[DaySchedule(d, DEFAULT_OPEN_TIME, DEFAULT_CLOSE_TIME, True) for d in ISO_WEEKDAYS],
    )


def effective_config(config: Optional[BranchScheduleConfig]) -> BranchScheduleConfig:
    """
    Configuration with every weekday present.

    No configuration gives default_config(); weekdays missing from a saved
    configuration inherit its global open/close times. Blank or malformed
    times fall back to the global times, then to 08:30-21:00.
    """
    if config is None:
        return default_config()

    by_day = {d.day_of_week: d for d in config.days}
    open_time = clock_time(config.open_time) or DEFAULT_OPEN_TIME
    close_time = clock_time(config.close_time) or DEFAULT_CLOSE_TIME

    days = []
    for weekday in ISO_WEEKDAYS:
        saved = by_day.get(weekday)
        if saved is None:
            days.append(DaySchedule(weekday, open_time, close_time, True))
            continue
        days.append(DaySchedule(
            weekday,
            clock_time(saved.open_time) or open_time,
            clock_time(saved.close_time) or close_time,
            saved.is_open,
        ))
    return BranchScheduleConfig(open_time=open_time, close_time=close_time, days=days, id=config.id)


def config_envelope(config: Optional[BranchScheduleConfig]) -> Tuple[str, str]:
    """
    (earliest open, latest close) over the open days.

    Falls back to 09:00-18:00 when every day is closed.
    """
    open_days = [d for d in effective_config(config).days if d.is_open]
    if not open_days:
        return CLOSED_WEEK_OPEN_TIME, CLOSED_WEEK_CLOSE_TIME
    return min(d.open_time for d in open_days), max(d.close_time for d in open_days)


def day_hours(config: Optional[BranchScheduleConfig], weekday: int) -> Optional[DaySchedule]:
    for day in effective_config(config).days:
        if day.day_of_week == weekday:
            return day
    return None


# =============================================================================
# ROSTER ORDER
# =============================================================================

def advisor_priority(advisor: Advisor, events: List[RRHHEvent], day: date) -> int:
    """Blocked that day -> 0, opening shift -> 1, closing shift -> 2, else 3."""
    if blocking_event_for(events, advisor.id, day) is not None:
        return PRIORITY_BLOCKED
    if advisor.shift_preference == SHIFT_OPENING:
        return PRIORITY_OPENING
    if advisor.shift_preference == SHIFT_CLOSING:
        return PRIORITY_CLOSING
    return PRIORITY_DEFAULT


def sort_roster(advisors: List[Advisor], events: List[RRHHEvent], day: date) -> List[Advisor]:
    """Stable sort by advisor_priority."""
    return sorted(advisors, key=lambda a: advisor_priority(a, events, day))


def split_roster(advisors: List[Advisor]) -> Tuple[List[Advisor], List[Advisor]]:
    """(loan advisors, affiliation advisors); managers are not on the grid."""
    loans = [a for a in advisors if a.position == LOAN_ADVISOR]
    affiliations = [a for a in advisors if a.position == AFFILIATION_ADVISOR]
    return loans, affiliations


# =============================================================================
# GRID
# =============================================================================

@dataclass
class SlotChange:
    """Outcome of painting one slot; `assignment` is None for no-ops."""
    kind: str
    assignment: Optional[ScheduleAssignment] = None


@dataclass
class MergedCell:
    """A run of consecutive slots sharing one activity (or all empty)"""
    start_time: str
    end_time: str
    span: int
    activity_id: Optional[str] = None
    activity: Optional[ScheduleActivity] = None

    @property
    def is_empty(self) -> bool:
        return self.activity_id is None


class ScheduleGrid:
    """
    In-memory schedule keyed by (advisor_id, weekday, start_time).

    Duplicated keys from the backend resolve to the last row.
    """

    def __init__(
        self,
        assignments: List[ScheduleAssignment],
        activities: List[ScheduleActivity],
    ):
        self._cells: Dict[Tuple[str, int, str], ScheduleAssignment] = {}
        for assignment in assignments:
            if assignment.day_of_week is None:
                continue
            self._cells[assignment.key] = assignment
        self.activities: Dict[str, ScheduleActivity] = {a.id: a for a in activities}

    def get(self, advisor_id: str, weekday: int, slot: str) -> Optional[ScheduleAssignment]:
        return self._cells.get((advisor_id, weekday, slot))

    def activity_at(self, advisor_id: str, weekday: int, slot: str) -> Optional[ScheduleActivity]:
        assignment = self.get(advisor_id, weekday, slot)
        if assignment is None:
            return None
        return self.activities.get(assignment.activity_id)

    def day_assignments(self, advisor_id: str, weekday: int) -> List[ScheduleAssignment]:
        """Assignments of one advisor and day, by start time."""
        rows = [a for (adv, day, _), a in self._cells.items() if adv == advisor_id and day == weekday]
        return sorted(rows, key=lambda a: a.start_time)

    def all_assignments(self) -> List[ScheduleAssignment]:
        return list(self._cells.values())

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def assign_slot(
        self,
        advisor_id: str,
        weekday: int,
        slot_start: str,
        activity_id: Optional[str] = None,
        eraser: bool = False,
    ) -> SlotChange:
        """
        Paint one slot and return the change to persist.

        - eraser: delete what is there (no-op on an empty slot)
        - same activity already there: no-op
        - otherwise upsert, keeping the existing row id
        """
        key = (advisor_id, weekday, slot_start)
        existing = self._cells.get(key)

        if eraser:
            if existing is None:
                return SlotChange(CHANGE_NOOP)
            del self._cells[key]
            return SlotChange(CHANGE_DELETE, existing)

        if not activity_id:
            return SlotChange(CHANGE_NOOP)
        if existing is not None and existing.activity_id == activity_id:
            return SlotChange(CHANGE_NOOP)

        assignment = ScheduleAssignment(
            id=existing.id if existing is not None else '',
            advisor_id=advisor_id,
            day_of_week=weekday,
            start_time=slot_start,
            end_time=add_30_minutes(slot_start),
            activity_id=activity_id,
        )
        self._cells[key] = assignment
        return SlotChange(CHANGE_UPSERT, assignment)

    def assign_range(
        self,
        advisor_id: str,
        weekday: int,
        slots: List[str],
        activity_id: Optional[str] = None,
        eraser: bool = False,
    ) -> List[SlotChange]:
        """assign_slot over several slots; no-ops are dropped."""
        changes = [self.assign_slot(advisor_id, weekday, s, activity_id, eraser) for s in slots]
        return [c for c in changes if c.kind != CHANGE_NOOP]

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def merge_row(self, advisor_id: str, weekday: int, slots: List[str]) -> List[MergedCell]:
        """
        Collapse a row into runs.

        Consecutive slots assigned to the same activity id merge, and so do
        consecutive empty slots.
        """
        cells: List[MergedCell] = []
        for slot in slots:
            assignment = self.get(advisor_id, weekday, slot)
            activity_id = assignment.activity_id if assignment else None

            if cells and cells[-1].activity_id == activity_id:
                cells[-1].span += 1
                cells[-1].end_time = add_30_minutes(slot)
                continue

            cells.append(MergedCell(
                start_time=slot,
                end_time=add_30_minutes(slot),
                span=1,
                activity_id=activity_id,
                activity=self.activities.get(activity_id) if activity_id else None,
            ))
        return cells

    def protected_assignments(self, advisor_id: str, weekday: int) -> List[ScheduleAssignment]:
        result = []
        for assignment in self.day_assignments(advisor_id, weekday):
            activity = self.activities.get(assignment.activity_id)
            if activity is not None and activity.is_protected:
                result.append(assignment)
        return result

    def protected_ranges(self, advisor_id: str, weekday: int, twelve_hour: bool = True) -> List[Tuple[str, str]]:
        """
        Contiguous protected blocks of one day as (start, end).

        Example:
            09:00, 09:30 and 11:00 protected -> [('9:00 a.m.', '10:00 a.m.'),
                                                 ('11:00 a.m.', '11:30 a.m.')]
        """
        ranges: List[Tuple[str, str]] = []
        for assignment in self.protected_assignments(advisor_id, weekday):
            if ranges and ranges[-1][1] == assignment.start_time:
                ranges[-1] = (ranges[-1][0], assignment.end_time)
            else:
                ranges.append((assignment.start_time, assignment.end_time))

        if twelve_hour:
            return [(format_time_12h(s), format_time_12h(e)) for s, e in ranges]
        return ranges


__all__ = [
    'CHANGE_UPSERT',
    'CHANGE_DELETE',
    'CHANGE_NOOP',
    'to_minutes',
    'clock_time',
    'from_minutes',
    'add_30_minutes',
    'generate_time_slots',
    'format_time_12h',
    'contrast_color',
    'default_config',
    'effective_config',
    'config_envelope',
    'day_hours',
    'advisor_priority',
    'sort_roster',
    'split_roster',
    'SlotChange',
    'MergedCell',
    'ScheduleGrid',
]
