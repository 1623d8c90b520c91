# branch_ops/performance/metrics.py
"""
KPI Calculations for Branch Performance

Handles all metric calculations:
- Indicator applicability per view / position
- Adjusted daily commitment (deficit carry-forward)
- Dashboard metrics: actual vs target, remaining, weekly pace, groups
- Advisor composite score and ranking
- Mute advisors (zero-activity indicators)
- Daily / weekly history of one indicator
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from ..constants import (
    AFFILIATION_ADVISOR,
    APPLIES_AFFILIATION,
    APPLIES_ALL,
    APPLIES_BRANCH,
    APPLIES_LOAN,
    BRANCH_GLOBAL,
    LOAN_ADVISOR,
    ROLE_BRANCH,
)
from ..models import Advisor, BudgetConfig, Indicator, RecordData
from ..weekdays import WEEKDAY_LABELS, days_before, iso_week, previous_week, quarter_of_week, quarter_week_range
from .actuals import ActualsCalculator
from .constants import (
    GROUP_ORDER,
    GROUP_OTHER,
    GROUP_TITLES,
    GROUP_TOTAL_SAN,
    PERIOD_DAY,
    PERIOD_TRIMESTER,
    PERIOD_WEEK,
    PERIOD_YEAR,
    TARGET_ADJUSTED,
    TARGET_STANDARD,
    TOTAL_SAN_THRESHOLD,
    VIEW_ADVISOR,
    VIEW_BRANCH,
    WEEKS_PER_YEAR,
)
from .targets import TargetCalculator

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class CommitmentResult:
    """Today's commitment and whether it carries an earlier deficit"""
    value: float
    is_deficit: bool = False


@dataclass
class IndicatorMetric:
    indicator: Indicator
    actual: int
    target: float
    percentage: float
    remaining: float
    pace: int = 0
    remaining_80: int = 0
    is_deficit: bool = False

    @property
    def group(self) -> str:
        return self.indicator.group if self.indicator.group in GROUP_TITLES else GROUP_OTHER


@dataclass
class AdvisorScore:
    advisor: Advisor
    percentage: int
    score_points: int
    max_points: float = 100.0
    details: Dict[str, float] = field(default_factory=dict)


@dataclass
class Period:
    """Dashboard period selection"""
    period_type: str
    year: int
    week: Optional[int] = None
    quarter: Optional[int] = None
    day: Optional[date] = None

    @classmethod
    def for_day(cls, day: date) -> 'Period':
        year, week = iso_week(day)
        return cls(PERIOD_DAY, year, week=week, quarter=quarter_of_week(week), day=day)

    @property
    def weekday(self) -> Optional[int]:
        return self.day.isoweekday() if self.day else None

    def resolved(self) -> 'Period':
        """DAY periods take year/week from their date; quarters default from week."""
        if self.period_type == PERIOD_DAY and self.day:
            return Period.for_day(self.day)
        quarter = self.quarter or (quarter_of_week(self.week) if self.week else None)
        return Period(self.period_type, self.year, week=self.week, quarter=quarter, day=self.day)


# =============================================================================
# APPLICABILITY
# =============================================================================

def indicator_applies(indicator: Indicator, position: Optional[str] = None) -> bool:
    """
    Whether an indicator is tracked for an advisor position, or for the
    branch when `position` is None. A non-empty roles list wins over the
    legacy applies_to value.
    """
    if indicator.roles:
        return (position or ROLE_BRANCH) in indicator.roles

    if position is None:
        return indicator.applies_to in (APPLIES_BRANCH, APPLIES_ALL)
    if position == LOAN_ADVISOR:
        return indicator.applies_to in (APPLIES_LOAN, APPLIES_ALL)
    if position == AFFILIATION_ADVISOR:
        return indicator.applies_to in (APPLIES_AFFILIATION, APPLIES_ALL)
    return False


def achievement_percentage(actual: float, target: float) -> float:
    """actual / target * 100; 100 for any activity against a zero target."""
    if target > 0:
        return actual / target * 100
    return 100.0 if actual > 0 else 0.0


def remaining_weeks(period_type: str, quarter: Optional[int], today: date) -> int:
    """Weeks left in the period (at least 1) for the weekly pace."""
    current_week = iso_week(today)[1]
    if period_type == PERIOD_YEAR:
        return max(1, WEEKS_PER_YEAR - current_week)
    if period_type == PERIOD_TRIMESTER:
        end_week = quarter_week_range(quarter or quarter_of_week(current_week))[1]
        return max(1, min(end_week, WEEKS_PER_YEAR) - current_week)
    return 1


# =============================================================================
# METRICS ENGINE
# =============================================================================

class BranchMetrics:
    """
    KPI calculations for branch performance.

    Usage:
        metrics = BranchMetrics(store.indicators, store.advisors, store.budgets, store.records)

        commitment = metrics.adjusted_daily_commitment(ind, BRANCH_GLOBAL, None, date.today())
        cards = metrics.display_metrics(VIEW_BRANCH, Period('WEEK', 2025, week=12))
        ranking = metrics.advisor_ranking(Period('WEEK', 2025, week=12))
    """

    def __init__(
        self,
        indicators: List[Indicator],
        advisors: List[Advisor],
        budgets: List[BudgetConfig],
        records: List[RecordData],
    ):
        self.indicators = list(indicators)
        self.advisors = list(advisors)
        self.targets = TargetCalculator(budgets, indicators)
        self.actuals = ActualsCalculator(records, indicators)

    def get_advisor(self, advisor_id: Optional[str]) -> Optional[Advisor]:
        return next((a for a in self.advisors if a.id == advisor_id), None)

    def applicable_indicators(self, position: Optional[str] = None) -> List[Indicator]:
        return [i for i in self.indicators if indicator_applies(i, position)]

    # =========================================================================
    # ADJUSTED DAILY COMMITMENT
    # =========================================================================

    def adjusted_daily_commitment(
        self,
        indicator: Indicator,
        target_id: str,
        position: Optional[str],
        reference_date: date,
    ) -> CommitmentResult:
        """
        Today's target plus whatever the week is behind so far.

        Target and actual are accumulated over Monday up to the day before
        `reference_date` (Sunday looks back over Monday..Saturday). A
        shortfall is added to today's base target; rate indicators never
        carry a shortfall. Only the final value is rounded up.
        """
        try:
            year, week = iso_week(reference_date)
            day = reference_date.isoweekday()

            today_base = self.targets.compute_target(
                indicator.id, target_id, position, PERIOD_DAY, year, week=week, weekday=day,
            )
            if indicator.averages:
                return CommitmentResult(today_base, False)

            view, advisor_id = self._view_of(target_id)
            accum_target = 0.0
            accum_real = 0.0
            for previous in days_before(day):
                accum_target += self.targets.compute_target(
                    indicator.id, target_id, position, PERIOD_DAY, year, week=week, weekday=previous,
                )
                accum_real += self.actuals.actual_for_weekday(
                    indicator.id, view, year, week, previous, advisor_id=advisor_id,
                )

            difference = accum_real - accum_target
            if difference < 0:
                logger.debug(
                    f"Commitment {indicator.name}: base {today_base} + deficit {abs(difference)} "
                    f"(target {accum_target}, real {accum_real})"
                )
                return CommitmentResult(math.ceil(today_base + abs(difference)), True)

            return CommitmentResult(math.ceil(today_base), False)

        except Exception as e:
            logger.error(f"Error computing commitment for {indicator.id}/{target_id}: {e}")
            return CommitmentResult(0, False)

    @staticmethod
    def _view_of(target_id: str):
        if target_id == BRANCH_GLOBAL:
            return VIEW_BRANCH, None
        return VIEW_ADVISOR, target_id

    # =========================================================================
    # DASHBOARD METRICS
    # =========================================================================

    def display_metrics(
        self,
        view: str,
        period: Period,
        advisor_id: Optional[str] = None,
        target_mode: str = TARGET_STANDARD,
        today: Optional[date] = None,
    ) -> List[IndicatorMetric]:
        """
        Per applicable indicator: actual, target, percentage, remaining,
        weekly pace (TRIMESTER / YEAR, standard mode, non-rate indicators)
        and the 80% gap for TOTAL_SAN. Sorted by percentage, best first.

        In TARGET_ADJUSTED mode the target is the adjusted daily commitment
        of the period's day (or `today` outside DAY periods).
        """
        today = today or date.today()
        period = period.resolved()

        position = None
        target_id = BRANCH_GLOBAL
        if view == VIEW_ADVISOR:
            advisor = self.get_advisor(advisor_id)
            if advisor is None:
                return []
            position = advisor.position
            target_id = advisor.id

        weeks_left = remaining_weeks(period.period_type, period.quarter, today)
        reference_date = period.day if period.period_type == PERIOD_DAY and period.day else today

        results = []
        for indicator in self.applicable_indicators(position):
            actual = self.actuals.compute_actual(
                indicator.id, view, period.period_type, period.year,
                week=period.week, quarter=period.quarter, day=period.day, advisor_id=advisor_id,
            )

            is_deficit = False
            if target_mode == TARGET_ADJUSTED:
                commitment = self.adjusted_daily_commitment(indicator, target_id, position, reference_date)
                target, is_deficit = commitment.value, commitment.is_deficit
            else:
                target = self.targets.compute_target(
                    indicator.id, target_id, position, period.period_type, period.year,
                    week=period.week, quarter=period.quarter, weekday=period.weekday,
                )

            remaining = max(0.0, target - actual)

            pace = 0
            if (
                target_mode == TARGET_STANDARD
                and not indicator.averages
                and period.period_type in (PERIOD_TRIMESTER, PERIOD_YEAR)
                and remaining > 0
            ):
                pace = math.ceil(remaining / weeks_left)

            remaining_80 = 0
            if indicator.group == GROUP_TOTAL_SAN and target > 0:
                remaining_80 = max(0, math.ceil(target * TOTAL_SAN_THRESHOLD) - actual)

            results.append(IndicatorMetric(
                indicator=indicator,
                actual=actual,
                target=target,
                percentage=achievement_percentage(actual, target),
                remaining=remaining,
                pace=pace,
                remaining_80=remaining_80,
                is_deficit=is_deficit,
            ))

        return sorted(results, key=lambda m: m.percentage, reverse=True)

    @staticmethod
    def group_metrics(metrics: List[IndicatorMetric]) -> Dict[str, List[IndicatorMetric]]:
        """Metrics bucketed by indicator group, in display order."""
        groups: Dict[str, List[IndicatorMetric]] = {key: [] for key in GROUP_ORDER}
        for metric in metrics:
            groups[metric.group].append(metric)
        return groups

    @staticmethod
    def metrics_to_dataframe(metrics: List[IndicatorMetric]) -> pd.DataFrame:
        return pd.DataFrame([
            {
                'indicator_id': m.indicator.id,
                'indicator': m.indicator.name,
                'unit': m.indicator.unit,
                'group': m.group,
                'actual': m.actual,
                'target': m.target,
                'percentage': m.percentage,
                'remaining': m.remaining,
                'pace': m.pace,
                'remaining_80': m.remaining_80,
                'is_deficit': m.is_deficit,
            }
            for m in metrics
        ])

    # =========================================================================
    # ADVISOR SCORE / RANKING
    # =========================================================================

    def advisor_composite(self, advisor: Advisor, period: Period) -> AdvisorScore:
        """
        Weighted achievement over the advisor's applicable indicators.

        Each indicator contributes actual/target (0 without a target) times
        its weight for the advisor's role; with no weights configured the
        100 points are spread evenly. May exceed 100.
        """
        period = period.resolved()
        indicators = self.applicable_indicators(advisor.position)
        if not indicators:
            return AdvisorScore(advisor, 0, 0)

        def role_weight(indicator: Indicator) -> float:
            weight = indicator.weight_loan if advisor.position == LOAN_ADVISOR else indicator.weight_affiliation
            return weight if weight and weight > 0 else 0.0

        configured = sum(role_weight(i) for i in indicators)
        max_points = configured if configured > 0 else 100.0
        even_weight = 100.0 / len(indicators)

        total_points = 0.0
        details: Dict[str, float] = {}
        for indicator in indicators:
            actual = self.actuals.compute_actual(
                indicator.id, VIEW_ADVISOR, period.period_type, period.year,
                week=period.week, quarter=period.quarter, day=period.day, advisor_id=advisor.id,
            )
            target = self.targets.compute_target(
                indicator.id, advisor.id, advisor.position, period.period_type, period.year,
                week=period.week, quarter=period.quarter, weekday=period.weekday,
            )
            weight = role_weight(indicator) if configured > 0 else even_weight
            points = actual / target * weight if target > 0 else 0.0
            details[indicator.id] = points
            total_points += points

        return AdvisorScore(
            advisor=advisor,
            percentage=math.ceil(total_points / max_points * 100),
            score_points=math.ceil(total_points),
            max_points=max_points,
            details=details,
        )

    def advisor_ranking(self, period: Period, position: Optional[str] = None) -> List[AdvisorScore]:
        """Composite scores, best first, optionally for one position."""
        advisors = [a for a in self.advisors if position is None or a.position == position]
        scores = [self.advisor_composite(a, period) for a in advisors]
        return sorted(scores, key=lambda s: s.percentage, reverse=True)

    # =========================================================================
    # MUTE ADVISORS
    # =========================================================================

    def mute_advisors(self, year: int, week: int) -> Dict[str, List[Advisor]]:
        """
        Per indicator, the advisors with nothing (<= 0) captured in the week.
        Indicators without mute advisors are left out.
        """
        result: Dict[str, List[Advisor]] = {}
        for indicator in self.indicators:
            candidates = [a for a in self.advisors if indicator_applies(indicator, a.position)]
            if not candidates:
                continue
            totals = self.actuals.advisor_week_totals(indicator.id, [a.id for a in candidates], year, week)
            mute = [a for a in candidates if totals.get(a.id, 0.0) <= 0]
            if mute:
                result[indicator.id] = mute
        return result

    def mute_summary(self, year: int, week: int) -> Dict:
        """
        Zero-indicator count per advisor plus the best (fewest zeros) and
        worst (most zeros) advisor. Ties keep roster order.
        """
        counts = {a.id: 0 for a in self.advisors}
        for advisors in self.mute_advisors(year, week).values():
            for advisor in advisors:
                counts[advisor.id] += 1

        if not counts:
            return {'counts': counts, 'best': None, 'worst': None}

        best_id = min(counts, key=counts.get)
        worst_id = max(counts, key=counts.get)
        best = self.get_advisor(best_id)
        return {
            'counts': counts,
            'best': best,
            'best_total_active': len(self.applicable_indicators(best.position)) if best else 0,
            'worst': self.get_advisor(worst_id),
        }

    # =========================================================================
    # INDICATOR HISTORY
    # =========================================================================

    def indicator_history(
        self,
        indicator: Indicator,
        view: str,
        period: Period,
        advisor_id: Optional[str] = None,
    ) -> pd.DataFrame:
        """
        Breakdown of one indicator: one row per weekday for WEEK periods,
        one row per week otherwise, each with target, real and the
        previous period's real.
        """
        period = period.resolved()
        target_id, position = BRANCH_GLOBAL, None
        if view == VIEW_ADVISOR:
            advisor = self.get_advisor(advisor_id)
            if advisor is None:
                return pd.DataFrame(columns=['label', 'target', 'real', 'prev', 'diff', 'diff_pct'])
            target_id, position = advisor.id, advisor.position

        rows = []
        if period.period_type in (PERIOD_WEEK, PERIOD_DAY):
            prev_year, prev_week = previous_week(period.year, period.week)
            for day in range(1, 8):
                rows.append({
                    'label': WEEKDAY_LABELS[day].capitalize(),
                    'target': self.targets.compute_target(
                        indicator.id, target_id, position, PERIOD_DAY, period.year, week=period.week, weekday=day,
                    ),
                    'real': self.actuals.actual_for_weekday(
                        indicator.id, view, period.year, period.week, day, advisor_id=advisor_id,
                    ),
                    'prev': self.actuals.actual_for_weekday(
                        indicator.id, view, prev_year, prev_week, day, advisor_id=advisor_id,
                    ),
                })
        else:
            if period.period_type == PERIOD_TRIMESTER:
                first, last = quarter_week_range(period.quarter or 1)
            else:
                first, last = 1, WEEKS_PER_YEAR
            for week in range(first, last + 1):
                prev_year, prev_week = previous_week(period.year, week)
                rows.append({
                    'label': f"Sem {week}",
                    'target': math.ceil(self.targets.compute_target(
                        indicator.id, target_id, position, PERIOD_WEEK, period.year, week=week,
                    )),
                    'real': math.ceil(self.actuals.week_total(indicator.id, view, period.year, week, advisor_id)),
                    'prev': math.ceil(self.actuals.week_total(indicator.id, view, prev_year, prev_week, advisor_id)),
                })

        df = pd.DataFrame(rows)
        df['diff'] = df['real'] - df['target']
        df['diff_pct'] = [
            (real / target - 1) if target > 0 else 0.0
            for real, target in zip(df['real'], df['target'])
        ]
        return df


# =============================================================================
# SHARE TEXT
# =============================================================================

GROUP_SHARE_LABELS = {
    'COLOCACION': '💰 _Colocación_',
    'CAPTACION': '💸 _Captación_',
    'TOTAL_SAN': '🏦 _Total SAN_',
    'OTHER': '📂 _Otros_',
}


def format_amount(value: float, unit: str) -> str:
    if unit == '$':
        return f"${value:,.0f}"
    if unit == '%':
        return f"{value:.0f}%"
    return f"#{value:,.0f}"


def format_commitment_message(metrics: List[IndicatorMetric], day: date) -> str:
    """Messaging-app text of the day's commitments, grouped; 🔴 marks a carried deficit."""
    text = f"*Compromiso {WEEKDAY_LABELS[day.isoweekday()]}*\n\n"
    for key, items in BranchMetrics.group_metrics(metrics).items():
        if not items:
            continue
        text += f"*{GROUP_TITLES[key]}:*\n\n{GROUP_SHARE_LABELS[key]}\n"
        for item in items:
            name = item.indicator.name
            dots = "." * max(1, 15 - len(name))
            emoji = "🔴" if item.is_deficit else "🟢"
            text += f"- {emoji} {name}{dots} *{format_amount(item.target, item.indicator.unit)}*\n"
        text += "\n"
    return text


__all__ = [
    'CommitmentResult',
    'IndicatorMetric',
    'AdvisorScore',
    'Period',
    'indicator_applies',
    'achievement_percentage',
    'remaining_weeks',
    'BranchMetrics',
    'format_amount',
    'format_commitment_message',
]
