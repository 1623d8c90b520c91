# branch_ops/models.py
"""
Entity Models and Backend Mapping

One dataclass per backend table, each with an explicit `from_row` (backend
snake_case row -> model) and `to_row` (model -> backend row) pair.

Rules:
- Weekdays are converted to ISO (1=Mon..7=Sun) on the way in and back to
  the table's own convention on the way out (see branch_ops.weekdays).
- RecordData.values is an opaque {indicator_id: amount} map. Its keys are
  ids, not field names, and pass through untouched.
- Malformed cells degrade to a neutral default instead of failing the load.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from .constants import (
    APPLIES_ALL,
    FREQ_WEEKLY,
    REPORT_INDIVIDUAL,
    ROLE_READER,
    UNIT_PERCENT,
)
from .weekdays import (
    from_monday_based,
    from_sunday_based,
    parse_date,
    to_monday_based,
    to_sunday_based,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CELL COERCION
# =============================================================================

def _to_float(value, default: float = 0.0) -> float:
    if value is None or value == '':
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_opt_float(value) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value, default: int = 0) -> int:
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 't')
    return bool(value)


def _to_opt_bool(value) -> Optional[bool]:
    if value is None:
        return None
    return _to_bool(value)


def _to_str(value, default: str = '') -> str:
    return default if value is None else str(value)


def _to_opt_str(value) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)


def _to_hhmm(value, default: str = '') -> str:
    """'08:30', '08:30:00' or '8:30' -> '08:30'."""
    if not value:
        return default
    parts = str(value).split(':')
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except (IndexError, ValueError):
        return default
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return default
    return f"{hours:02d}:{minutes:02d}"


def _to_list(value) -> List:
    if value is None or value == '':
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    return list(value) if isinstance(value, (list, tuple)) else []


def _weekday(value, converter: Callable, row: Dict, column: str) -> Optional[int]:
    try:
        return converter(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring malformed {column}={value!r} in row {row.get('id')}")
        return None


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _with_id(row: Dict, row_id: str) -> Dict:
    """New rows without an id let the backend generate one."""
    if row_id:
        row['id'] = row_id
    return row


# =============================================================================
# INDICATORS / ADVISORS
# =============================================================================

@dataclass
class Indicator:
    """Named, unit-typed metric"""
    id: str
    name: str
    applies_to: str = APPLIES_ALL
    roles: List[str] = field(default_factory=list)
    unit: str = '#'
    weight_loan: Optional[float] = None
    weight_affiliation: Optional[float] = None
    is_cumulative: Optional[bool] = None
    is_average: Optional[bool] = None
    group: Optional[str] = None

    @property
    def averages(self) -> bool:
        """Rate-type indicator: averaged across periods, never carried as deficit."""
        return bool(self.is_average) or self.unit == UNIT_PERCENT

    @property
    def cumulative(self) -> bool:
        return self.is_cumulative is not False

    @classmethod
    def from_row(cls, row: Dict) -> 'Indicator':
        return cls(
            id=_to_str(row.get('id')),
            name=_to_str(row.get('name')),
            applies_to=_to_str(row.get('applies_to'), APPLIES_ALL),
            roles=[str(r) for r in _to_list(row.get('roles'))],
            unit=_to_str(row.get('unit'), '#'),
            weight_loan=_to_opt_float(row.get('weight_loan')),
            weight_affiliation=_to_opt_float(row.get('weight_affiliation')),
            is_cumulative=_to_opt_bool(row.get('is_cumulative')),
            is_average=_to_opt_bool(row.get('is_average')),
            group=_to_opt_str(row.get('group')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'name': self.name,
            'applies_to': self.applies_to,
            'roles': list(self.roles),
            'unit': self.unit,
            'weight_loan': self.weight_loan,
            'weight_affiliation': self.weight_affiliation,
            'is_cumulative': self.is_cumulative,
            'is_average': self.is_average,
            'group': self.group,
        }, self.id)


@dataclass
class Advisor:
    """Branch staff member"""
    id: str
    name: str
    position: str
    employee_number: Optional[str] = None
    photo_url: Optional[str] = None
    birth_date: Optional[date] = None
    hire_date: Optional[date] = None
    shift_preference: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> 'Advisor':
        return cls(
            id=_to_str(row.get('id')),
            name=_to_str(row.get('name')),
            position=_to_str(row.get('position')),
            employee_number=_to_opt_str(row.get('employee_number')),
            photo_url=_to_opt_str(row.get('photo_url')),
            birth_date=parse_date(row.get('birth_date')),
            hire_date=parse_date(row.get('hire_date')),
            shift_preference=_to_opt_str(row.get('shift_preference')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'name': self.name,
            'position': self.position,
            'employee_number': self.employee_number,
            'photo_url': self.photo_url,
            'birth_date': _iso(self.birth_date),
            'hire_date': _iso(self.hire_date),
            'shift_preference': self.shift_preference,
        }, self.id)


# =============================================================================
# BUDGETS / RECORDS
# =============================================================================

@dataclass
class BudgetConfig:
    """Target amount for one indicator, owner and week (or one weekday)"""
    indicator_id: str
    target_id: str
    year: int
    week: int
    period_type: str
    amount: float
    day_of_week: Optional[int] = None
    id: str = ''

    @classmethod
    def from_row(cls, row: Dict) -> 'BudgetConfig':
        return cls(
            id=_to_str(row.get('id')),
            indicator_id=_to_str(row.get('indicator_id')),
            target_id=_to_str(row.get('target_id')),
            year=_to_int(row.get('year')),
            week=_to_int(row.get('week')),
            period_type=_to_str(row.get('period_type'), FREQ_WEEKLY),
            day_of_week=_weekday(row.get('day_of_week'), from_sunday_based, row, 'day_of_week'),
            amount=_to_float(row.get('amount')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'indicator_id': self.indicator_id,
            'target_id': self.target_id,
            'year': self.year,
            'week': self.week,
            'period_type': self.period_type,
            'day_of_week': to_sunday_based(self.day_of_week),
            'amount': self.amount,
        }, self.id)


@dataclass
class RecordData:
    """Observed indicator values for one owner and week (or one weekday)"""
    year: int
    week: int
    type: str
    frequency: str
    values: Dict[str, float] = field(default_factory=dict)
    date: Optional[date] = None
    day_of_week: Optional[int] = None
    advisor_id: Optional[str] = None
    id: str = ''

    def value_of(self, indicator_id: str) -> float:
        return self.values.get(indicator_id, 0.0)

    @staticmethod
    def _values_from_wire(raw) -> Dict[str, float]:
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                return {}
        if not isinstance(raw, dict):
            return {}
        # Keys are indicator ids: copied verbatim
        return {str(key): _to_float(amount) for key, amount in raw.items()}

    @classmethod
    def from_row(cls, row: Dict) -> 'RecordData':
        return cls(
            id=_to_str(row.get('id')),
            date=parse_date(row.get('date')),
            year=_to_int(row.get('year')),
            week=_to_int(row.get('week')),
            type=_to_str(row.get('type'), REPORT_INDIVIDUAL),
            frequency=_to_str(row.get('frequency'), FREQ_WEEKLY),
            day_of_week=_weekday(row.get('day_of_week'), from_sunday_based, row, 'day_of_week'),
            advisor_id=_to_opt_str(row.get('advisor_id')),
            values=cls._values_from_wire(row.get('values')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'date': _iso(self.date),
            'year': self.year,
            'week': self.week,
            'type': self.type,
            'frequency': self.frequency,
            'day_of_week': to_sunday_based(self.day_of_week),
            'advisor_id': self.advisor_id,
            'values': dict(self.values),
        }, self.id)


# =============================================================================
# SCHEDULE
# =============================================================================

@dataclass
class ScheduleActivity:
    """Colored work category; protected ones count for Fenix compliance"""
    id: str
    name: str
    color: str = '#EF4444'
    is_protected: bool = False

    @classmethod
    def from_row(cls, row: Dict) -> 'ScheduleActivity':
        return cls(
            id=_to_str(row.get('id')),
            name=_to_str(row.get('name')),
            color=_to_str(row.get('color'), '#EF4444'),
            is_protected=_to_bool(row.get('is_protected')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'name': self.name,
            'color': self.color,
            'is_protected': self.is_protected,
        }, self.id)


@dataclass
class ScheduleAssignment:
    """One advisor, weekday and half-hour slot bound to an activity"""
    advisor_id: str
    day_of_week: int
    start_time: str
    end_time: str
    activity_id: str
    id: str = ''

    @property
    def key(self):
        return (self.advisor_id, self.day_of_week, self.start_time)

    @classmethod
    def from_row(cls, row: Dict) -> 'ScheduleAssignment':
        return cls(
            id=_to_str(row.get('id')),
            advisor_id=_to_str(row.get('advisor_id')),
            day_of_week=_weekday(row.get('day_of_week'), from_monday_based, row, 'day_of_week'),
            start_time=_to_hhmm(row.get('start_time')),
            end_time=_to_hhmm(row.get('end_time')),
            activity_id=_to_str(row.get('activity_id')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'advisor_id': self.advisor_id,
            'day_of_week': to_monday_based(self.day_of_week),
            'start_time': self.start_time,
            'end_time': self.end_time,
            'activity_id': self.activity_id,
        }, self.id)


@dataclass
class DaySchedule:
    """Opening hours of one weekday"""
    day_of_week: int
    open_time: str
    close_time: str
    is_open: bool = True


@dataclass
class BranchScheduleConfig:
    """Per-weekday opening hours plus the global open/close envelope"""
    open_time: str
    close_time: str
    days: List[DaySchedule] = field(default_factory=list)
    id: str = ''

    @classmethod
    def from_row(cls, row: Dict) -> 'BranchScheduleConfig':
        open_time = _to_hhmm(row.get('open_time'))
        close_time = _to_hhmm(row.get('close_time'))
        days = []
        for raw in _to_list(row.get('days')):
            if not isinstance(raw, dict):
                continue
            day = _weekday(raw.get('day_of_week'), from_monday_based, row, 'days.day_of_week')
            if day is None:
                continue
            days.append(DaySchedule(
                day_of_week=day,
                open_time=_to_hhmm(raw.get('open_time'), open_time),
                close_time=_to_hhmm(raw.get('close_time'), close_time),
                is_open=_to_bool(raw.get('is_open', True)),
            ))
        return cls(id=_to_str(row.get('id')), open_time=open_time, close_time=close_time, days=days)

    def to_row(self) -> Dict:
        return _with_id({
            'open_time': self.open_time,
            'close_time': self.close_time,
            'days': [
                {
                    'day_of_week': to_monday_based(d.day_of_week),
                    'open_time': d.open_time,
                    'close_time': d.close_time,
                    'is_open': d.is_open,
                }
                for d in self.days
            ],
        }, self.id)


@dataclass
class FenixCompliance:
    """Whether a protected slot was honored on a given date"""
    advisor_id: str
    date: Optional[date]
    time_slot: str
    is_compliant: bool
    id: str = ''

    @property
    def key(self):
        return (self.advisor_id, self.date, self.time_slot)

    @classmethod
    def from_row(cls, row: Dict) -> 'FenixCompliance':
        return cls(
            id=_to_str(row.get('id')),
            advisor_id=_to_str(row.get('advisor_id')),
            date=parse_date(row.get('date')),
            time_slot=_to_hhmm(row.get('time_slot')),
            is_compliant=_to_bool(row.get('is_compliant')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'advisor_id': self.advisor_id,
            'date': _iso(self.date),
            'time_slot': self.time_slot,
            'is_compliant': self.is_compliant,
        }, self.id)


# =============================================================================
# HR / MANAGEMENT
# =============================================================================

@dataclass
class RRHHEvent:
    """HR incident, absence, day off or celebration"""
    type: str
    title: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    advisor_id: Optional[str] = None
    recurring_day: Optional[int] = None
    description: Optional[str] = None
    status: str = 'PENDING'
    id: str = ''

    @property
    def is_recurring(self) -> bool:
        return self.recurring_day is not None

    @classmethod
    def from_row(cls, row: Dict) -> 'RRHHEvent':
        return cls(
            id=_to_str(row.get('id')),
            advisor_id=_to_opt_str(row.get('advisor_id')),
            type=_to_str(row.get('type')),
            start_date=parse_date(row.get('start_date')),
            end_date=parse_date(row.get('end_date')),
            recurring_day=_weekday(row.get('recurring_day'), from_sunday_based, row, 'recurring_day'),
            title=_to_str(row.get('title')),
            description=_to_opt_str(row.get('description')),
            status=_to_str(row.get('status'), 'PENDING'),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'advisor_id': self.advisor_id,
            'type': self.type,
            'start_date': _iso(self.start_date),
            'end_date': _iso(self.end_date),
            'recurring_day': to_sunday_based(self.recurring_day),
            'title': self.title,
            'description': self.description,
            'status': self.status,
        }, self.id)


@dataclass
class SupervisionLog:
    """Floor supervision finding"""
    advisor_id: str
    type: str
    details: str
    date: Optional[date] = None
    indicator_name: str = ''
    photo_url: Optional[str] = None
    timestamp: Optional[str] = None
    id: str = ''

    @classmethod
    def from_row(cls, row: Dict) -> 'SupervisionLog':
        return cls(
            id=_to_str(row.get('id')),
            date=parse_date(row.get('date')),
            advisor_id=_to_str(row.get('advisor_id')),
            type=_to_str(row.get('type'), 'FAILURE'),
            indicator_name=_to_str(row.get('indicator_name')),
            details=_to_str(row.get('details')),
            photo_url=_to_opt_str(row.get('photo_url')),
            timestamp=_to_opt_str(row.get('timestamp')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'date': _iso(self.date),
            'advisor_id': self.advisor_id,
            'type': self.type,
            'indicator_name': self.indicator_name,
            'details': self.details,
            'photo_url': self.photo_url,
            'timestamp': self.timestamp,
        }, self.id)


@dataclass
class CoachingSession:
    """Coaching minute (LEVEL_2) or performance plan (LEVEL_3)"""
    advisor_id: str
    level: str
    problem: str
    date: Optional[date] = None
    agreements: List[str] = field(default_factory=list)
    manager_commitment: str = ''
    review_date: Optional[date] = None
    id: str = ''

    @classmethod
    def from_row(cls, row: Dict) -> 'CoachingSession':
        return cls(
            id=_to_str(row.get('id')),
            date=parse_date(row.get('date')),
            advisor_id=_to_str(row.get('advisor_id')),
            level=_to_str(row.get('level'), 'LEVEL_2'),
            problem=_to_str(row.get('problem')),
            agreements=[str(a) for a in _to_list(row.get('agreements'))],
            manager_commitment=_to_str(row.get('manager_commitment')),
            review_date=parse_date(row.get('review_date')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'date': _iso(self.date),
            'advisor_id': self.advisor_id,
            'level': self.level,
            'problem': self.problem,
            'agreements': list(self.agreements),
            'manager_commitment': self.manager_commitment,
            'review_date': _iso(self.review_date),
        }, self.id)


@dataclass
class AuditLogEntry:
    user_id: str
    username: str
    action: str
    details: str
    timestamp: str
    id: str = ''

    @classmethod
    def from_row(cls, row: Dict) -> 'AuditLogEntry':
        return cls(
            id=_to_str(row.get('id')),
            user_id=_to_str(row.get('user_id')),
            username=_to_str(row.get('username')),
            action=_to_str(row.get('action')),
            details=_to_str(row.get('details')),
            timestamp=_to_str(row.get('timestamp')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'user_id': self.user_id,
            'username': self.username,
            'action': self.action,
            'details': self.details,
            'timestamp': self.timestamp,
        }, self.id)


@dataclass
class Profile:
    """Signed-in user's profile row"""
    id: str
    username: str
    role: str = ROLE_READER
    photo_url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> 'Profile':
        return cls(
            id=_to_str(row.get('id')),
            username=_to_str(row.get('username')),
            role=_to_str(row.get('role'), ROLE_READER),
            photo_url=_to_opt_str(row.get('photo_url')),
        )

    def to_row(self) -> Dict:
        return _with_id({
            'username': self.username,
            'role': self.role,
            'photo_url': self.photo_url,
        }, self.id)


# Collection name -> model class
ENTITY_MODELS: Dict[str, Any] = {
    "advisors": Advisor,
    "indicators": Indicator,
    "budgets": BudgetConfig,
    "records": RecordData,
    "rrhh_events": RRHHEvent,
    "supervision_logs": SupervisionLog,
    "coaching_sessions": CoachingSession,
    "audit_logs": AuditLogEntry,
    "profiles": Profile,
    "schedule_activities": ScheduleActivity,
    "schedule_assignments": ScheduleAssignment,
    "fenix_compliances": FenixCompliance,
}


# =============================================================================
# FORM VALIDATION
# =============================================================================

class ValidationError(ValueError):
    """User input rejected at the form boundary."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []
