# branch_ops/schedule/constants.py
"""
Constants for the Schedule Module

- Default opening hours
- HR event types (blocking vs informative) and labels
- Shift preferences and roster priority
- Activity color presets
"""

# =====================================================================
# SLOTS / OPENING HOURS
# =====================================================================

SLOT_MINUTES = 30

# Used when no branch configuration exists at all
DEFAULT_OPEN_TIME = '08:30'
DEFAULT_CLOSE_TIME = '21:00'

# Envelope used when a configuration exists but every day is closed
CLOSED_WEEK_OPEN_TIME = '09:00'
CLOSED_WEEK_CLOSE_TIME = '18:00'

# =====================================================================
# HR EVENTS
# =====================================================================

EVENT_VACATION = 'VACATION'
EVENT_PERMIT = 'PERMIT'
EVENT_INCAPACITY = 'INCAPACITY'
EVENT_ABSENCE = 'ABSENCE'
EVENT_DAY_OFF = 'DAY_OFF'
EVENT_RECOGNITION = 'RECOGNITION'
EVENT_ACTIVITY = 'ACTIVITY'

EVENT_TYPES = [
    EVENT_VACATION,
    EVENT_PERMIT,
    EVENT_INCAPACITY,
    EVENT_ABSENCE,
    EVENT_DAY_OFF,
    EVENT_RECOGNITION,
    EVENT_ACTIVITY,
]

# Events that take the advisor off the floor for the day
BLOCKING_TYPES = frozenset([
    EVENT_VACATION,
    EVENT_INCAPACITY,
    EVENT_ABSENCE,
    EVENT_PERMIT,
    EVENT_DAY_OFF,
])

EVENT_LABELS = {
    EVENT_VACATION: 'VACACIONES',
    EVENT_PERMIT: 'PERMISO',
    EVENT_INCAPACITY: 'INCAPACIDAD',
    EVENT_ABSENCE: 'FALTA',
    EVENT_DAY_OFF: 'DESCANSO',
    EVENT_RECOGNITION: 'RECONOCIMIENTO',
    EVENT_ACTIVITY: 'ACTIVIDAD',
}

# Labels printed over a blocked roster row; other types show the event title
BLOCKED_ROW_LABELS = {
    EVENT_VACATION: 'VACACIONES',
    EVENT_DAY_OFF: 'DESCANSO',
    EVENT_INCAPACITY: 'INCAPACIDAD',
}

EVENT_STATUSES = ['PENDING', 'APPROVED', 'REJECTED', 'DONE']

# =====================================================================
# SHIFTS
# =====================================================================

SHIFT_OPENING = 'OPENING'
SHIFT_CLOSING = 'CLOSING'

SHIFT_LABELS = {
    SHIFT_OPENING: 'Apertura',
    SHIFT_CLOSING: 'Cierre',
    None: 'Sin preferencia',
}

PRIORITY_BLOCKED = 0
PRIORITY_OPENING = 1
PRIORITY_CLOSING = 2
PRIORITY_DEFAULT = 3

# =====================================================================
# COLORS
# =====================================================================

DEFAULT_ACTIVITY_COLOR = '#EF4444'

PRESET_COLORS = [
    '#EF4444', '#F97316', '#EAB308', '#22C55E', '#3B82F6',
    '#6366F1', '#A855F7', '#D946EF', '#1F2937', '#000000',
]

BLOCKED_FILL_COLOR = '000000'
EMPTY_FILL_COLOR = 'FFFFFF'
