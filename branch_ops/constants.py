# branch_ops/constants.py
"""
Shared Constants for Branch Operations

Centralized definitions for:
- Backend table names and upsert conflict keys
- Positions, report types, indicator applicability
- Target ids (branch singleton, position-wide prefix)
- User roles
"""

# =====================================================================
# BACKEND TABLES
# =====================================================================

TABLES = {
    "advisors": "advisors",
    "indicators": "indicators",
    "budgets": "budgets",
    "records": "records",
    "rrhh_events": "rrhh_events",
    "supervision_logs": "supervision_logs",
    "coaching_sessions": "coaching_sessions",
    "audit_logs": "audit_logs",
    "profiles": "profiles",
    "schedule_activities": "schedule_activities",
    "schedule_assignments": "schedule_assignments",
    "branch_schedule_config": "branch_schedule_config",
    "fenix_compliances": "fenix_compliance",
}

CONFLICT_KEYS = {
    "fenix_compliance": "advisor_id,date,time_slot",
    "schedule_assignments": "advisor_id,day_of_week,start_time",
}

# =====================================================================
# POSITIONS
# =====================================================================

LOAN_ADVISOR = 'Asesor de Préstamos'
AFFILIATION_ADVISOR = 'Asesor de Afiliación'
BRANCH_MANAGER = 'Gerente de Sucursal'

POSITIONS = [LOAN_ADVISOR, AFFILIATION_ADVISOR, BRANCH_MANAGER]

# =====================================================================
# REPORT TYPES / FREQUENCIES
# =====================================================================

REPORT_INDIVIDUAL = 'Individual'
REPORT_BRANCH = 'Sucursal'

FREQ_WEEKLY = 'WEEKLY'
FREQ_DAILY = 'DAILY'

# =====================================================================
# INDICATOR APPLICABILITY
# =====================================================================

APPLIES_LOAN = 'Asesores de Préstamos'
APPLIES_AFFILIATION = 'Asesores de Afiliación'
APPLIES_BRANCH = 'Sucursal'
APPLIES_ALL = 'Todos'

# Role string used in Indicator.roles for branch-level indicators
ROLE_BRANCH = 'BRANCH'

UNIT_CURRENCY = '$'
UNIT_PERCENT = '%'
UNIT_COUNT = '#'

# =====================================================================
# TARGET IDS
# =====================================================================

BRANCH_GLOBAL = 'BRANCH_GLOBAL'
POSITION_TARGET_PREFIX = 'POS_'


def position_target_id(position: str) -> str:
    """Position-wide target id, e.g. 'POS_Asesor de Préstamos'."""
    return f"{POSITION_TARGET_PREFIX}{position}"


# =====================================================================
# USER ROLES
# =====================================================================

ROLE_ADMIN = 'ADMIN'
ROLE_EDITOR = 'EDITOR'
ROLE_READER = 'LECTOR'

WRITE_ROLES = [ROLE_ADMIN, ROLE_EDITOR]
