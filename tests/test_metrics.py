# tests/test_metrics.py
from datetime import date

import pytest

from branch_ops.constants import BRANCH_GLOBAL, LOAN_ADVISOR, position_target_id
from branch_ops.models import Indicator
from branch_ops.performance.metrics import (
    BranchMetrics,
    Period,
    achievement_percentage,
    format_commitment_message,
    indicator_applies,
    remaining_weeks,
)

from .conftest import MONDAY, WEDNESDAY, WEEK, YEAR


def metrics_for(indicators, advisors, budgets, records):
    return BranchMetrics(indicators, advisors, budgets, records)


# =============================================================================
# ADJUSTED DAILY COMMITMENT
# =============================================================================

class TestAdjustedCommitment:
    @pytest.fixture
    def daily_budgets(self, make_budget):
        return [make_budget('ind_loans', 100, day=day) for day in (1, 2, 3)]

    def test_deficit_carried_into_today(self, indicators, advisors, daily_budgets, make_record, loans_indicator):
        records = [make_record({'ind_loans': 60}, day=1), make_record({'ind_loans': 100}, day=2)]
        metrics = metrics_for(indicators, advisors, daily_budgets, records)

        result = metrics.adjusted_daily_commitment(loans_indicator, BRANCH_GLOBAL, None, WEDNESDAY)
        assert result.value == 140
        assert result.is_deficit

    def test_monday_has_nothing_to_carry(self, indicators, advisors, daily_budgets, loans_indicator):
        metrics = metrics_for(indicators, advisors, daily_budgets, [])
        result = metrics.adjusted_daily_commitment(loans_indicator, BRANCH_GLOBAL, None, MONDAY)
        assert result.value == 100
        assert not result.is_deficit

    def test_surplus_is_not_subtracted(self, indicators, advisors, make_budget, make_record, loans_indicator):
        records = [make_record({'ind_loans': 200}, day=1), make_record({'ind_loans': 200}, day=2)]
        metrics = metrics_for(indicators, advisors, [make_budget('ind_loans', 100)], records)

        result = metrics.adjusted_daily_commitment(loans_indicator, BRANCH_GLOBAL, None, WEDNESDAY)
        # 100 / 7 rounded up
        assert result.value == 15
        assert not result.is_deficit

    def test_rate_indicator_never_carries(self, indicators, advisors, make_budget, rate_indicator):
        metrics = metrics_for(indicators, advisors, [make_budget('ind_rate', 90)], [])
        result = metrics.adjusted_daily_commitment(rate_indicator, BRANCH_GLOBAL, None, WEDNESDAY)
        assert result.value == 90
        assert not result.is_deficit

    def test_advisor_commitment_uses_advisor_records(self, indicators, advisors, make_budget, make_record, loans_indicator):
        budgets = [make_budget('ind_loans', 50, day=d, target_id='adv_1') for d in (1, 2, 3)]
        records = [
            make_record({'ind_loans': 50}, day=1, advisor_id='adv_1'),
            make_record({'ind_loans': 30}, day=2, advisor_id='adv_1'),
            make_record({'ind_loans': 500}, day=2),
        ]
        metrics = metrics_for(indicators, advisors, budgets, records)
        result = metrics.adjusted_daily_commitment(loans_indicator, 'adv_1', LOAN_ADVISOR, WEDNESDAY)
        assert result.value == 70
        assert result.is_deficit


# =============================================================================
# APPLICABILITY / DASHBOARD
# =============================================================================

class TestApplicability:
    def test_roles_list_wins(self, loans_indicator):
        assert indicator_applies(loans_indicator, LOAN_ADVISOR)
        assert indicator_applies(loans_indicator, None)
        assert not indicator_applies(loans_indicator, 'Asesor de Afiliación')

    def test_legacy_applies_to(self):
        branch_only = Indicator(id='x', name='x', applies_to='Sucursal')
        assert indicator_applies(branch_only, None)
        assert not indicator_applies(branch_only, LOAN_ADVISOR)

    def test_achievement_percentage(self):
        assert achievement_percentage(50, 200) == 25
        assert achievement_percentage(3, 0) == 100
        assert achievement_percentage(0, 0) == 0

    def test_remaining_weeks_never_below_one(self):
        assert remaining_weeks('YEAR', None, date(2025, 12, 24)) == 1
        assert remaining_weeks('YEAR', None, WEDNESDAY) == 40
        assert remaining_weeks('TRIMESTER', 1, WEDNESDAY) == 1
        assert remaining_weeks('WEEK', None, WEDNESDAY) == 1


def test_display_metrics_week(indicators, advisors, make_budget, make_record):
    budgets = [make_budget('ind_loans', 400), make_budget('ind_accounts', 10)]
    records = [make_record({'ind_loans': 100, 'ind_accounts': 10, 'ind_rate': 0}, day=1)]
    metrics = metrics_for(indicators, advisors, budgets, records)

    cards = metrics.display_metrics('BRANCH', Period('WEEK', YEAR, week=WEEK), today=WEDNESDAY)
    by_id = {m.indicator.id: m for m in cards}

    assert by_id['ind_loans'].actual == 100
    assert by_id['ind_loans'].percentage == 25
    assert by_id['ind_loans'].remaining == 300
    assert cards[0].indicator.id == 'ind_accounts'


def test_display_metrics_year_pace(indicators, advisors, make_budget):
    budgets = [make_budget('ind_loans', 400, week=w) for w in (12, 13)]
    metrics = metrics_for(indicators, advisors, budgets, [])

    cards = metrics.display_metrics('BRANCH', Period('YEAR', YEAR), today=WEDNESDAY)
    loans = next(m for m in cards if m.indicator.id == 'ind_loans')
    # 800 remaining over 52 - 12 weeks
    assert loans.pace == 20


def test_unknown_advisor_has_no_metrics(indicators, advisors):
    metrics = metrics_for(indicators, advisors, [], [])
    assert metrics.display_metrics('ADVISOR', Period('WEEK', YEAR, week=WEEK), advisor_id='ghost') == []


def test_history_of_first_week_compares_with_last_week_of_previous_year(indicators, advisors, make_record, loans_indicator):
    records = [
        make_record({'ind_loans': 80}, day=1, year=2024, week=52),
        make_record({'ind_loans': 30}, day=1, year=2025, week=1),
    ]
    metrics = metrics_for(indicators, advisors, [], records)

    week_rows = metrics.indicator_history(loans_indicator, 'BRANCH', Period('WEEK', 2025, week=1))
    assert (week_rows.iloc[0]['real'], week_rows.iloc[0]['prev']) == (30, 80)

    year_rows = metrics.indicator_history(loans_indicator, 'BRANCH', Period('YEAR', 2025))
    assert (year_rows.iloc[0]['real'], year_rows.iloc[0]['prev']) == (30, 80)


# =============================================================================
# SCORING
# =============================================================================

class TestScoring:
    @pytest.fixture
    def scored(self, indicators, advisors, make_budget, make_record):
        budgets = [
            make_budget('ind_loans', 1000, target_id='adv_1'),
            make_budget('ind_accounts', 10, target_id='adv_1'),
            make_budget('ind_loans', 1000, target_id=position_target_id(LOAN_ADVISOR)),
        ]
        records = [
            make_record({'ind_loans': 500, 'ind_accounts': 5}, day=1, advisor_id='adv_1'),
            make_record({'ind_loans': 1000}, day=2, advisor_id='adv_2'),
        ]
        return metrics_for(indicators, advisors, budgets, records)

    def test_composite_uses_role_weights(self, scored, advisors):
        score = scored.advisor_composite(advisors[0], Period('WEEK', YEAR, week=WEEK))
        # loans 50% of 60 points + accounts 50% of 40 points
        assert score.score_points == 50
        assert score.percentage == 50
        assert score.max_points == 100

    def test_position_budget_used_for_advisor_without_own(self, scored, advisors):
        score = scored.advisor_composite(advisors[1], Period('WEEK', YEAR, week=WEEK))
        assert score.percentage == 60

    def test_ranking_best_first(self, scored):
        ranking = scored.advisor_ranking(Period('WEEK', YEAR, week=WEEK))
        assert [s.advisor.id for s in ranking] == ['adv_2', 'adv_1', 'adv_3']

    def test_ranking_filtered_by_position(self, scored):
        ranking = scored.advisor_ranking(Period('WEEK', YEAR, week=WEEK), position=LOAN_ADVISOR)
        assert {s.advisor.id for s in ranking} == {'adv_1', 'adv_2'}

    def test_even_weights_without_configuration(self, advisors, make_budget, make_record):
        unweighted = [Indicator(id='a', name='A', roles=[LOAN_ADVISOR]), Indicator(id='b', name='B', roles=[LOAN_ADVISOR])]
        budgets = [make_budget('a', 10, target_id='adv_1'), make_budget('b', 10, target_id='adv_1')]
        records = [make_record({'a': 10, 'b': 20}, day=1, advisor_id='adv_1')]
        metrics = metrics_for(unweighted, advisors, budgets, records)

        score = metrics.advisor_composite(advisors[0], Period('WEEK', YEAR, week=WEEK))
        assert score.percentage == 150


# =============================================================================
# MUTE ADVISORS / SHARE TEXT
# =============================================================================

def test_mute_advisors_count_weekly_captures(indicators, advisors, make_record):
    records = [
        make_record({'ind_loans': 500, 'ind_accounts': 5}, day=1, advisor_id='adv_1'),
        make_record({'ind_loans': 800}, advisor_id='adv_2'),
    ]
    metrics = metrics_for(indicators, advisors, [], records)

    mute = metrics.mute_advisors(YEAR, WEEK)
    assert 'ind_loans' not in mute
    assert [a.id for a in mute['ind_accounts']] == ['adv_2', 'adv_3']

    summary = metrics.mute_summary(YEAR, WEEK)
    assert summary['best'].id == 'adv_1'
    assert summary['worst'].id == 'adv_2'


def test_commitment_message_marks_deficit(indicators, advisors, make_budget, make_record):
    budgets = [make_budget('ind_loans', 100, day=d) for d in (1, 2, 3)]
    records = [make_record({'ind_loans': 60}, day=1), make_record({'ind_loans': 100}, day=2)]
    metrics = metrics_for(indicators, advisors, budgets, records)

    cards = metrics.display_metrics(
        'BRANCH', Period.for_day(WEDNESDAY), target_mode='ADJUSTED', today=WEDNESDAY,
    )
    text = format_commitment_message(cards, WEDNESDAY)
    assert text.startswith('*Compromiso MIÉRCOLES*')
    assert '🔴 Colocación' in text
    assert '$140' in text
