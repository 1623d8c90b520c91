# branch_ops/schedule/__init__.py
"""
Branch Schedule Module

Weekly half-hour schedule grid, Fenix protected-time compliance and the HR
rules that take advisors off the floor.

Components:
- grid: Time axis, slot painting, run merging, roster ordering
- compliance: Weekly compliance and the daily Fenix checklist
- rrhh: HR event applicability, incidents, celebrations
- export: Formatted Excel schedule workbook

Usage:
    from branch_ops.schedule import ScheduleGrid, generate_time_slots, config_envelope

    grid = ScheduleGrid(store.schedule_assignments, store.schedule_activities)
    slots = generate_time_slots(*config_envelope(store.branch_config))
"""

from .grid import (
    MergedCell,
    ScheduleGrid,
    SlotChange,
    add_30_minutes,
    advisor_priority,
    config_envelope,
    contrast_color,
    day_hours,
    effective_config,
    format_time_12h,
    generate_time_slots,
    sort_roster,
    split_roster,
)
from .compliance import (
    ChecklistItem,
    WeeklyCompliance,
    advisor_week_compliance,
    compliance_percentage,
    fenix_checklist,
    weekly_compliance_frame,
)
from .rrhh import (
    Celebration,
    active_incidents,
    blocking_event_for,
    is_absent,
    month_timeline,
    monthly_celebrations,
    present_advisors,
    recent_recognitions,
)
from .export import ScheduleExport

__all__ = [
    # Classes
    'ScheduleGrid',
    'SlotChange',
    'MergedCell',
    'WeeklyCompliance',
    'ChecklistItem',
    'Celebration',
    'ScheduleExport',

    # Grid
    'add_30_minutes',
    'generate_time_slots',
    'format_time_12h',
    'contrast_color',
    'effective_config',
    'config_envelope',
    'day_hours',
    'advisor_priority',
    'sort_roster',
    'split_roster',

    # Compliance
    'compliance_percentage',
    'advisor_week_compliance',
    'weekly_compliance_frame',
    'fenix_checklist',

    # HR
    'blocking_event_for',
    'is_absent',
    'present_advisors',
    'active_incidents',
    'month_timeline',
    'recent_recognitions',
    'monthly_celebrations',
]
