# branch_ops/performance/actuals.py
"""
Actual (Observed) Indicator Values

Aggregates captured records into the actual value of an indicator for the
branch or one advisor over a day, week, quarter or year.

Aggregation:
1. Filter records to the period (DAY by date, WEEK by year/week,
   TRIMESTER by week range, YEAR by year)
2. Select the view's rows. BRANCH: every 'Individual' row is dropped first,
   then only 'Sucursal' rows without an advisor remain. ADVISOR: that
   advisor's 'Individual' rows.
3. Per (advisor, year, week): DAILY rows deduped by weekday (last wins) and
   summed. A WEEKLY row (last wins) stands in only when the group has no
   DAILY rows, and never in WEEK-scoped views.
4. Groups are summed (rate indicators: averaged), then rounded up.
"""

import logging
import math
from dataclasses import asdict
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from ..constants import FREQ_DAILY, FREQ_WEEKLY, REPORT_BRANCH, REPORT_INDIVIDUAL
from ..models import Indicator, RecordData
from ..weekdays import quarter_of_week, quarter_week_range
from .constants import (
    PERIOD_DAY,
    PERIOD_TRIMESTER,
    PERIOD_WEEK,
    PERIOD_YEAR,
    VIEW_ADVISOR,
    VIEW_BRANCH,
)

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    'id', 'date', 'year', 'week', 'type', 'frequency',
    'day_of_week', 'advisor_id', 'values',
]

GROUP_KEYS = ['advisor_key', 'year', 'week']


def records_to_frame(records: List[RecordData]) -> pd.DataFrame:
    """Records as a DataFrame, preserving fetch order."""
    if not records:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    df = pd.DataFrame([asdict(r) for r in records], columns=RECORD_COLUMNS)
    return df.reset_index(drop=True)


def filter_records_for_period(
    df: pd.DataFrame,
    period_type: str,
    year: int,
    week: Optional[int] = None,
    quarter: Optional[int] = None,
    day: Optional[date] = None,
) -> pd.DataFrame:
    """Rows of the records frame that fall inside a period."""
    if df.empty:
        return df

    if period_type == PERIOD_DAY:
        return df[df['date'] == day]

    if period_type == PERIOD_WEEK:
        return df[(df['year'] == year) & (df['week'] == week)]

    if period_type == PERIOD_TRIMESTER:
        if quarter is None:
            quarter = quarter_of_week(week or 1)
        first, last = quarter_week_range(quarter)
        return df[(df['year'] == year) & df['week'].between(first, last)]

    if period_type == PERIOD_YEAR:
        return df[df['year'] == year]

    logger.warning(f"Unknown period type: {period_type}")
    return df.iloc[0:0]


def select_view(df: pd.DataFrame, view: str, advisor_id: Optional[str] = None) -> pd.DataFrame:
    """Rows visible to the branch view or to one advisor."""
    if df.empty:
        return df

    if view == VIEW_BRANCH:
        df = df[df['type'] != REPORT_INDIVIDUAL]
        return df[(df['type'] == REPORT_BRANCH) & df['advisor_id'].isna()]

    if not advisor_id:
        return df.iloc[0:0]
    return df[(df['type'] == REPORT_INDIVIDUAL) & (df['advisor_id'] == advisor_id)]


def aggregate_values(df: pd.DataFrame, indicator_id: str, include_weekly: bool = True, averages: bool = False) -> float:
    """
    Collapse view/period-filtered records into one raw (unrounded) value.

    Missing indicator keys count as 0 and still take part in the dedupe.
    """
    if df.empty:
        return 0.0

    df = df.assign(
        value=df['values'].map(lambda values: float((values or {}).get(indicator_id, 0.0))),
        advisor_key=df['advisor_id'].fillna(''),
    )

    daily = df[(df['frequency'] == FREQ_DAILY) & df['day_of_week'].notna()]
    daily = daily.drop_duplicates(GROUP_KEYS + ['day_of_week'], keep='last')
    groups = daily.groupby(GROUP_KEYS)['value'].sum()

    if include_weekly:
        weekly = df[df['frequency'] == FREQ_WEEKLY].drop_duplicates(GROUP_KEYS, keep='last')
        weekly = weekly.set_index(GROUP_KEYS)['value']
        if not groups.empty:
            weekly = weekly[~weekly.index.isin(list(groups.index))]
        if not weekly.empty:
            groups = weekly if groups.empty else pd.concat([groups, weekly])

    if groups.empty:
        return 0.0

    return float(groups.mean() if averages else groups.sum())


class ActualsCalculator:
    """
    Actual values over a fixed set of records.

    Usage:
        actuals = ActualsCalculator(store.records, store.indicators)
        branch_week = actuals.compute_actual(ind.id, 'BRANCH', 'WEEK', 2025, week=12)
        advisor_day = actuals.compute_actual(ind.id, 'ADVISOR', 'DAY', 2025, day=date(2025, 3, 19), advisor_id=a.id)
    """

    def __init__(self, records: List[RecordData], indicators: Optional[List[Indicator]] = None):
        self.records_df = records_to_frame(records)
        self.indicators: Dict[str, Indicator] = {i.id: i for i in (indicators or [])}

    def is_average(self, indicator_id: str) -> bool:
        indicator = self.indicators.get(indicator_id)
        return indicator.averages if indicator else False

    def compute_actual(
        self,
        indicator_id: str,
        view: str,
        period_type: str,
        year: int,
        week: Optional[int] = None,
        quarter: Optional[int] = None,
        day: Optional[date] = None,
        advisor_id: Optional[str] = None,
    ) -> int:
        """
        Actual value for the branch (view='BRANCH') or one advisor
        (view='ADVISOR'), rounded up. Never raises; errors count as 0.
        """
        if view == VIEW_ADVISOR and not advisor_id:
            return 0
        try:
            df = filter_records_for_period(self.records_df, period_type, year, week, quarter, day)
            df = select_view(df, view, advisor_id)
            raw = aggregate_values(
                df, indicator_id,
                include_weekly=period_type != PERIOD_WEEK,
                averages=self.is_average(indicator_id),
            )
        except Exception as e:
            logger.error(f"Error aggregating actual {indicator_id} ({view}/{period_type}): {e}")
            return 0
        return math.ceil(raw)

    def actual_for_weekday(
        self,
        indicator_id: str,
        view: str,
        year: int,
        week: int,
        weekday: int,
        advisor_id: Optional[str] = None,
    ) -> float:
        """Raw DAILY actual of one ISO weekday of a week (no rounding)."""
        df = self.records_df
        if df.empty:
            return 0.0
        try:
            df = df[
                (df['year'] == year)
                & (df['week'] == week)
                & (df['frequency'] == FREQ_DAILY)
                & (df['day_of_week'] == weekday)
            ]
            df = select_view(df, view, advisor_id)
            return aggregate_values(df, indicator_id, include_weekly=False)
        except Exception as e:
            logger.error(f"Error reading daily actual {indicator_id} day {weekday}: {e}")
            return 0.0

    def week_total(
        self,
        indicator_id: str,
        view: str,
        year: int,
        week: int,
        advisor_id: Optional[str] = None,
    ) -> float:
        """
        Raw week total counting a WEEKLY capture when the week has no DAILY
        rows (history tables, mute advisors).
        """
        try:
            df = filter_records_for_period(self.records_df, PERIOD_WEEK, year, week)
            return aggregate_values(
                select_view(df, view, advisor_id), indicator_id,
                include_weekly=True, averages=self.is_average(indicator_id),
            )
        except Exception as e:
            logger.error(f"Error totalling week {week} of {indicator_id}: {e}")
            return 0.0

    def advisor_week_totals(self, indicator_id: str, advisor_ids: List[str], year: int, week: int) -> Dict[str, float]:
        """Week total of each advisor."""
        return {
            advisor_id: self.week_total(indicator_id, VIEW_ADVISOR, year, week, advisor_id)
            for advisor_id in advisor_ids
        }


__all__ = [
    'RECORD_COLUMNS',
    'records_to_frame',
    'filter_records_for_period',
    'select_view',
    'aggregate_values',
    'ActualsCalculator',
]
