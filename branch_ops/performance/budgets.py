# branch_ops/performance/budgets.py
"""
Budget Editing Helpers

Builds the BudgetConfig rows a budget edit writes. Existing rows are looked
up so their ids are reused and the write updates instead of duplicating.

- Weekly edit:  one WEEKLY row
- Daily edit:   seven DAILY rows plus the derived WEEKLY row
                (sum for cumulative indicators, max otherwise)
- Propagation:  a week's rows copied to every week of its quarter or year
- Sync:         today's adjusted commitments written back as DAILY rows
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from ..constants import FREQ_DAILY, FREQ_WEEKLY
from ..models import BudgetConfig, Indicator
from ..weekdays import ISO_WEEKDAYS, iso_week, quarter_of_week, quarter_week_range
from .constants import PERIOD_TRIMESTER, PERIOD_YEAR, WEEKS_PER_YEAR

logger = logging.getLogger(__name__)


def find_budget(
    budgets: List[BudgetConfig],
    indicator_id: str,
    target_id: str,
    year: int,
    week: int,
    period_type: str,
    day_of_week: Optional[int] = None,
) -> Optional[BudgetConfig]:
    """Last stored config for the slot (weekday only matters for DAILY)."""
    match = None
    for budget in budgets:
        if (
            budget.indicator_id == indicator_id
            and budget.target_id == target_id
            and budget.year == year
            and budget.week == week
            and budget.period_type == period_type
            and (period_type == FREQ_WEEKLY or budget.day_of_week == day_of_week)
        ):
            match = budget
    return match


def _reusing_id(budgets: List[BudgetConfig], config: BudgetConfig) -> BudgetConfig:
    existing = find_budget(
        budgets, config.indicator_id, config.target_id, config.year, config.week,
        config.period_type, config.day_of_week,
    )
    config.id = existing.id if existing else ''
    return config


def weekly_budget_config(
    budgets: List[BudgetConfig],
    indicator_id: str,
    target_id: str,
    year: int,
    week: int,
    amount: float,
) -> BudgetConfig:
    """WEEKLY row for a weekly edit."""
    return _reusing_id(budgets, BudgetConfig(
        indicator_id=indicator_id,
        target_id=target_id,
        year=year,
        week=week,
        period_type=FREQ_WEEKLY,
        amount=float(amount or 0),
    ))


def daily_budget_configs(
    budgets: List[BudgetConfig],
    indicator: Indicator,
    target_id: str,
    year: int,
    week: int,
    daily_amounts: Dict[int, float],
) -> List[BudgetConfig]:
    """
    DAILY rows for every ISO weekday plus the derived WEEKLY row.

    Args:
        daily_amounts: {iso_weekday: amount}; missing days are written as 0
    """
    amounts = {day: float(daily_amounts.get(day) or 0) for day in ISO_WEEKDAYS}

    configs = [
        _reusing_id(budgets, BudgetConfig(
            indicator_id=indicator.id,
            target_id=target_id,
            year=year,
            week=week,
            period_type=FREQ_DAILY,
            day_of_week=day,
            amount=amount,
        ))
        for day, amount in amounts.items()
    ]

    weekly_amount = sum(amounts.values()) if indicator.cumulative else max(amounts.values())
    configs.append(weekly_budget_config(budgets, indicator.id, target_id, year, week, weekly_amount))
    return configs


def propagate_budgets(
    budgets: List[BudgetConfig],
    configs: List[BudgetConfig],
    mode: str,
) -> List[BudgetConfig]:
    """
    Copy one week's configs to every week of its quarter (TRIMESTER) or
    to weeks 1-52 (YEAR), reusing the ids already stored for each week.
    """
    if not configs:
        return []

    source_week = configs[0].week
    if mode == PERIOD_TRIMESTER:
        first, last = quarter_week_range(quarter_of_week(source_week))
        last = min(last, WEEKS_PER_YEAR)
    elif mode == PERIOD_YEAR:
        first, last = 1, WEEKS_PER_YEAR
    else:
        return list(configs)

    propagated = []
    for week in range(first, last + 1):
        for config in configs:
            propagated.append(_reusing_id(budgets, BudgetConfig(
                indicator_id=config.indicator_id,
                target_id=config.target_id,
                year=config.year,
                week=week,
                period_type=config.period_type,
                day_of_week=config.day_of_week,
                amount=config.amount,
            )))

    logger.info(f"📋 Propagated {len(configs)} configs to weeks {first}-{last} ({len(propagated)} rows)")
    return propagated


def sync_commitment_budgets(
    metrics,
    budgets: List[BudgetConfig],
    indicators: List[Indicator],
    target_id: str,
    position: Optional[str],
    reference_date: date,
) -> List[BudgetConfig]:
    """
    DAILY budget rows holding the adjusted commitment of `reference_date`
    for each indicator with a positive commitment.

    Args:
        metrics: BranchMetrics instance used to compute the commitments
    """
    year, week = iso_week(reference_date)
    day = reference_date.isoweekday()

    configs = []
    for indicator in indicators:
        commitment = metrics.adjusted_daily_commitment(indicator, target_id, position, reference_date)
        if commitment.value <= 0:
            continue
        configs.append(_reusing_id(budgets, BudgetConfig(
            indicator_id=indicator.id,
            target_id=target_id,
            year=year,
            week=week,
            period_type=FREQ_DAILY,
            day_of_week=day,
            amount=float(commitment.value),
        )))
    return configs


__all__ = [
    'find_budget',
    'weekly_budget_config',
    'daily_budget_configs',
    'propagate_budgets',
    'sync_commitment_budgets',
]
