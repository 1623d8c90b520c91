# branch_ops/performance/__init__.py
"""
Branch Performance Module

Indicator targets, actuals and derived KPIs for the dashboard and the
commitments/budget pages.

Components:
- targets: Budget target resolution (owner fallback, period aggregation)
- actuals: Record aggregation per view and period
- metrics: Adjusted daily commitment, dashboard metrics, ranking, mute advisors
- commitments: Weekly branch commitments table
- budgets: Budget editing / propagation / sync helpers
- capture: Record form validation and auto-distribution
- charts: Altair visualizations
- export: Formatted Excel report generation

Usage:
    from branch_ops.performance import (
        BranchMetrics,
        Period,
        TargetCalculator,
        ActualsCalculator,
        BranchCharts,
        CommitmentsExport,
    )
"""

from .targets import TargetCalculator
from .actuals import ActualsCalculator
from .metrics import (
    AdvisorScore,
    BranchMetrics,
    CommitmentResult,
    IndicatorMetric,
    Period,
    format_commitment_message,
    indicator_applies,
)
from .commitments import CommitmentRow, weekly_commitments, commitments_to_dataframe
from .budgets import (
    daily_budget_configs,
    propagate_budgets,
    sync_commitment_budgets,
    weekly_budget_config,
)
from .capture import (
    build_record,
    distribute_weekly_total,
    find_collision,
    validate_record_values,
)
from .charts import BranchCharts
from .export import CommitmentsExport

# Constants
from .constants import (
    COLORS,
    GROUP_ORDER,
    GROUP_TITLES,
    PERIOD_TYPES,
    PERIOD_LABELS,
    VIEW_BRANCH,
    VIEW_ADVISOR,
    TARGET_STANDARD,
    TARGET_ADJUSTED,
)

__all__ = [
    # Classes
    'TargetCalculator',
    'ActualsCalculator',
    'BranchMetrics',
    'BranchCharts',
    'CommitmentsExport',
    'Period',
    'CommitmentResult',
    'IndicatorMetric',
    'AdvisorScore',
    'CommitmentRow',

    # Functions
    'indicator_applies',
    'format_commitment_message',
    'weekly_commitments',
    'commitments_to_dataframe',
    'weekly_budget_config',
    'daily_budget_configs',
    'propagate_budgets',
    'sync_commitment_budgets',
    'validate_record_values',
    'find_collision',
    'build_record',
    'distribute_weekly_total',

    # Constants
    'COLORS',
    'GROUP_ORDER',
    'GROUP_TITLES',
    'PERIOD_TYPES',
    'PERIOD_LABELS',
    'VIEW_BRANCH',
    'VIEW_ADVISOR',
    'TARGET_STANDARD',
    'TARGET_ADJUSTED',
]

__version__ = '1.0.0'
