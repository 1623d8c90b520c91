# branch_ops/performance/commitments.py
"""
Weekly Commitments Table

Branch budget of every indicator laid out Monday..Sunday with a week total.

- DAILY configs present: one amount per weekday (last wins), total is the
  sum for cumulative indicators, the largest day otherwise
- WEEKLY config only: the weekly amount split evenly over 7 days for
  cumulative indicators, repeated on every day otherwise
"""

from dataclasses import dataclass, field
from typing import Dict, List

import pandas as pd

from ..constants import BRANCH_GLOBAL, FREQ_DAILY, FREQ_WEEKLY
from ..models import BudgetConfig, Indicator
from ..weekdays import ISO_WEEKDAYS, WEEKDAY_LABELS
from .constants import GROUP_ORDER, GROUP_OTHER, GROUP_TITLES


@dataclass
class CommitmentRow:
    indicator: Indicator
    daily_values: Dict[int, float] = field(default_factory=dict)
    total: float = 0.0


def commitment_row(indicator: Indicator, budgets: List[BudgetConfig], year: int, week: int) -> CommitmentRow:
    relevant = [
        b for b in budgets
        if b.indicator_id == indicator.id
        and b.target_id == BRANCH_GLOBAL
        and b.year == year
        and b.week == week
    ]

    daily: Dict[int, float] = {}
    for budget in relevant:
        if budget.period_type == FREQ_DAILY and budget.day_of_week is not None:
            daily[budget.day_of_week] = budget.amount

    if daily:
        values = {day: daily.get(day, 0.0) for day in ISO_WEEKDAYS}
        total = sum(daily.values()) if indicator.cumulative else max(daily.values())
        return CommitmentRow(indicator, values, total)

    weekly = [b for b in relevant if b.period_type == FREQ_WEEKLY]
    if not weekly:
        return CommitmentRow(indicator, {day: 0.0 for day in ISO_WEEKDAYS}, 0.0)

    total = weekly[-1].amount
    per_day = total / 7 if indicator.cumulative else total
    return CommitmentRow(indicator, {day: per_day for day in ISO_WEEKDAYS}, total)


def weekly_commitments(
    indicators: List[Indicator],
    budgets: List[BudgetConfig],
    year: int,
    week: int,
) -> Dict[str, List[CommitmentRow]]:
    """Commitment rows of every indicator, bucketed by group in display order."""
    groups: Dict[str, List[CommitmentRow]] = {key: [] for key in GROUP_ORDER}
    for indicator in indicators:
        key = indicator.group if indicator.group in GROUP_TITLES else GROUP_OTHER
        groups[key].append(commitment_row(indicator, budgets, year, week))
    return groups


def commitments_to_dataframe(groups: Dict[str, List[CommitmentRow]]) -> pd.DataFrame:
    """Flat table: group, indicator, unit, one column per weekday, total."""
    rows = []
    for key, items in groups.items():
        for item in items:
            row = {
                'group': GROUP_TITLES[key],
                'indicator': item.indicator.name,
                'unit': item.indicator.unit,
            }
            for day in ISO_WEEKDAYS:
                row[WEEKDAY_LABELS[day]] = item.daily_values.get(day, 0.0)
            row['TOTAL'] = item.total
            rows.append(row)

    columns = ['group', 'indicator', 'unit'] + [WEEKDAY_LABELS[d] for d in ISO_WEEKDAYS] + ['TOTAL']
    return pd.DataFrame(rows, columns=columns)


__all__ = [
    'CommitmentRow',
    'commitment_row',
    'weekly_commitments',
    'commitments_to_dataframe',
]
