# branch_ops/performance/targets.py
"""
Budget Target Resolution

Resolves the target amount of an indicator for an owner (branch, advisor
or position) over a day, week, quarter or year from the budget configs.

Rules:
- Configs for the owner itself win; an advisor with none falls back to the
  position-wide configs (POS_<position>). The branch never falls back.
- Duplicate configs are tolerated; the last one in fetch order wins.
- WEEK:      WEEKLY amount, else the DAILY amounts (one per weekday) summed
- DAY:       DAILY amount of that weekday, else the WEEKLY amount
             (as-is for rate indicators, divided by 7 otherwise)
- TRIMESTER / YEAR: one WEEKLY amount per week, summed (averaged for rates)
"""

import logging
from dataclasses import asdict
from typing import Dict, List, Optional

import pandas as pd

from ..constants import BRANCH_GLOBAL, FREQ_DAILY, FREQ_WEEKLY, position_target_id
from ..models import BudgetConfig, Indicator
from ..weekdays import quarter_of_week, quarter_week_range
from .constants import PERIOD_DAY, PERIOD_TRIMESTER, PERIOD_WEEK, PERIOD_YEAR

logger = logging.getLogger(__name__)

BUDGET_COLUMNS = [
    'id', 'indicator_id', 'target_id', 'year', 'week',
    'period_type', 'day_of_week', 'amount',
]


def budgets_to_frame(budgets: List[BudgetConfig]) -> pd.DataFrame:
    """Budget configs as a DataFrame, preserving fetch order."""
    if not budgets:
        return pd.DataFrame(columns=BUDGET_COLUMNS)
    df = pd.DataFrame([asdict(b) for b in budgets], columns=BUDGET_COLUMNS)
    df['amount'] = pd.to_numeric(df['amount'], errors='coerce').fillna(0.0)
    return df.reset_index(drop=True)


class TargetCalculator:
    """
    Target lookups over a fixed set of budget configs.

    Usage:
        targets = TargetCalculator(store.budgets, store.indicators)
        weekly = targets.compute_target(ind.id, BRANCH_GLOBAL, None, 'WEEK', 2025, week=12)
        monday = targets.compute_target(ind.id, advisor.id, advisor.position, 'DAY', 2025, week=12, weekday=1)
    """

    def __init__(self, budgets: List[BudgetConfig], indicators: Optional[List[Indicator]] = None):
        self.budgets_df = budgets_to_frame(budgets)
        self.indicators: Dict[str, Indicator] = {i.id: i for i in (indicators or [])}

    def is_average(self, indicator_id: str) -> bool:
        indicator = self.indicators.get(indicator_id)
        return indicator.averages if indicator else False

    # =========================================================================
    # OWNER RESOLUTION
    # =========================================================================

    def owner_rows(self, indicator_id: str, target_id: str, position: Optional[str] = None) -> pd.DataFrame:
        """Configs of the owner, or of its position when the owner has none."""
        df = self.budgets_df
        if df.empty:
            return df

        by_indicator = df[df['indicator_id'] == indicator_id]
        rows = by_indicator[by_indicator['target_id'] == target_id]

        if rows.empty and target_id != BRANCH_GLOBAL and position:
            rows = by_indicator[by_indicator['target_id'] == position_target_id(position)]

        return rows

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def find_target(
        self,
        indicator_id: str,
        target_id: str,
        position: Optional[str],
        period_type: str,
        year: int,
        week: Optional[int] = None,
        quarter: Optional[int] = None,
        weekday: Optional[int] = None,
    ) -> Optional[float]:
        """
        Target for one indicator, owner and period.

        Args:
            indicator_id: Indicator id
            target_id: BRANCH_GLOBAL, an advisor id or POS_<position>
            position: Advisor position used for the fallback
            period_type: DAY / WEEK / TRIMESTER / YEAR
            year, week: Calendar context (week required for DAY / WEEK)
            quarter: 1-4 for TRIMESTER (derived from week when omitted)
            weekday: ISO weekday for DAY

        Returns:
            The amount, or None when nothing is configured for the period
        """
        rows = self.owner_rows(indicator_id, target_id, position)
        if rows.empty:
            return None

        averages = self.is_average(indicator_id)

        if period_type in (PERIOD_WEEK, PERIOD_DAY):
            rows = rows[(rows['year'] == year) & (rows['week'] == week)]
            weekly = rows[rows['period_type'] == FREQ_WEEKLY]
            daily = rows[rows['period_type'] == FREQ_DAILY]

            if period_type == PERIOD_WEEK:
                if not weekly.empty:
                    return float(weekly['amount'].iloc[-1])
                if not daily.empty:
                    per_day = daily.drop_duplicates('day_of_week', keep='last')
                    return float(per_day['amount'].sum())
                return None

            same_day = daily[daily['day_of_week'] == weekday]
            if not same_day.empty:
                return float(same_day['amount'].iloc[-1])
            if not weekly.empty:
                amount = float(weekly['amount'].iloc[-1])
                return amount if averages else amount / 7
            return None

        if period_type in (PERIOD_TRIMESTER, PERIOD_YEAR):
            rows = rows[(rows['year'] == year) & (rows['period_type'] == FREQ_WEEKLY)]
            if period_type == PERIOD_TRIMESTER:
                if quarter is None:
                    quarter = quarter_of_week(week or 1)
                first, last = quarter_week_range(quarter)
                rows = rows[rows['week'].between(first, last)]

            per_week = rows.drop_duplicates('week', keep='last')
            if per_week.empty:
                return None
            return float(per_week['amount'].mean() if averages else per_week['amount'].sum())

        logger.warning(f"Unknown period type: {period_type}")
        return None

    def compute_target(
        self,
        indicator_id: str,
        target_id: str,
        position: Optional[str],
        period_type: str,
        year: int,
        week: Optional[int] = None,
        quarter: Optional[int] = None,
        weekday: Optional[int] = None,
    ) -> float:
        """find_target with 0.0 for "not configured"; never raises."""
        try:
            amount = self.find_target(
                indicator_id, target_id, position, period_type, year,
                week=week, quarter=quarter, weekday=weekday,
            )
        except Exception as e:
            logger.error(f"Error resolving target {indicator_id}/{target_id} ({period_type}): {e}")
            return 0.0
        return amount if amount is not None else 0.0

    def daily_targets(
        self,
        indicator_id: str,
        target_id: str,
        position: Optional[str],
        year: int,
        week: int,
    ) -> Dict[int, float]:
        """DAY target of every ISO weekday of a week."""
        return {
            day: self.compute_target(indicator_id, target_id, position, PERIOD_DAY, year, week=week, weekday=day)
            for day in range(1, 8)
        }


__all__ = [
    'BUDGET_COLUMNS',
    'budgets_to_frame',
    'TargetCalculator',
]
