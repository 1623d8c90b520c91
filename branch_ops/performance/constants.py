# branch_ops/performance/constants.py
"""
Constants for Branch Performance Module

Centralized configuration for:
- Period types and views
- Indicator groups
- Color schemes
- Chart and export settings
"""

# =====================================================================
# PERIODS / VIEWS
# =====================================================================

PERIOD_DAY = 'DAY'
PERIOD_WEEK = 'WEEK'
PERIOD_TRIMESTER = 'TRIMESTER'
PERIOD_YEAR = 'YEAR'

PERIOD_TYPES = [PERIOD_DAY, PERIOD_WEEK, PERIOD_TRIMESTER, PERIOD_YEAR]

PERIOD_LABELS = {
    PERIOD_DAY: 'Día',
    PERIOD_WEEK: 'Semana',
    PERIOD_TRIMESTER: 'Trimestre',
    PERIOD_YEAR: 'Año',
}

VIEW_BRANCH = 'BRANCH'
VIEW_ADVISOR = 'ADVISOR'

WEEKS_PER_YEAR = 52

# Dashboard target mode
TARGET_STANDARD = 'STANDARD'
TARGET_ADJUSTED = 'ADJUSTED'

# =====================================================================
# INDICATOR GROUPS
# =====================================================================

GROUP_COLOCACION = 'COLOCACION'
GROUP_CAPTACION = 'CAPTACION'
GROUP_TOTAL_SAN = 'TOTAL_SAN'
GROUP_OTHER = 'OTHER'

GROUP_ORDER = [GROUP_COLOCACION, GROUP_CAPTACION, GROUP_TOTAL_SAN, GROUP_OTHER]

GROUP_TITLES = {
    GROUP_COLOCACION: 'BANCO',
    GROUP_CAPTACION: 'CAPTACIÓN',
    GROUP_TOTAL_SAN: 'TOTAL SAN',
    GROUP_OTHER: 'OTROS',
}

# TOTAL_SAN indicators also report the gap to this share of target
TOTAL_SAN_THRESHOLD = 0.8

# =====================================================================
# COLOR SCHEME
# =====================================================================

COLORS = {
    "target": "#d62728",               # Red
    "actual": "#1f77b4",               # Blue
    "achievement_good": "#28a745",     # Green (>=100%)
    "achievement_warn": "#f0ad4e",     # Amber (>=80%)
    "achievement_bad": "#dc3545",      # Red (<80%)
    "deficit": "#dc3545",
    "text_dark": "#333333",
    "grid": "#e0e0e0",
}


def achievement_color(percentage: float) -> str:
    """Traffic-light color for an achievement percentage."""
    if percentage >= 100:
        return COLORS["achievement_good"]
    if percentage >= 80:
        return COLORS["achievement_warn"]
    return COLORS["achievement_bad"]


# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_WIDTH = 800
CHART_HEIGHT = 400

# =====================================================================
# EXPORT SETTINGS
# =====================================================================

EXCEL_STYLES = {
    "header_fill_color": "1F2937",
    "header_font_color": "FFFFFF",
    "number_format": '#,##0',
    "currency_format": '$#,##0',
    "percent_format": '0.0%',
}
