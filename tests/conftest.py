# tests/conftest.py
"""
Shared fixtures: a small branch (three advisors, three indicators) around
ISO week 12 of 2025 (Monday 2025-03-17 .. Sunday 2025-03-23), plus a fake
backend built on unittest.mock.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest

from branch_ops.constants import (
    AFFILIATION_ADVISOR,
    APPLIES_ALL,
    BRANCH_GLOBAL,
    FREQ_DAILY,
    FREQ_WEEKLY,
    LOAN_ADVISOR,
    REPORT_BRANCH,
    REPORT_INDIVIDUAL,
    ROLE_BRANCH,
)
from branch_ops.db import BackendClient
from branch_ops.models import Advisor, BudgetConfig, Indicator, RecordData
from branch_ops.weekdays import date_for_week_day

YEAR = 2025
WEEK = 12
MONDAY = date(2025, 3, 17)
WEDNESDAY = date(2025, 3, 19)


@pytest.fixture
def loans_indicator():
    return Indicator(
        id='ind_loans', name='Colocación', unit='$', group='COLOCACION',
        roles=[LOAN_ADVISOR, ROLE_BRANCH], weight_loan=60.0, is_cumulative=True,
    )


@pytest.fixture
def accounts_indicator():
    return Indicator(
        id='ind_accounts', name='Cuentas', unit='#', group='CAPTACION',
        roles=[LOAN_ADVISOR, AFFILIATION_ADVISOR, ROLE_BRANCH], weight_loan=40.0, weight_affiliation=100.0,
    )


@pytest.fixture
def rate_indicator():
    return Indicator(id='ind_rate', name='Recuperación', unit='%', applies_to=APPLIES_ALL, is_cumulative=False)


@pytest.fixture
def indicators(loans_indicator, accounts_indicator, rate_indicator):
    return [loans_indicator, accounts_indicator, rate_indicator]


@pytest.fixture
def advisors():
    return [
        Advisor(id='adv_1', name='Ana López', position=LOAN_ADVISOR, shift_preference='CLOSING'),
        Advisor(id='adv_2', name='Bruno Díaz', position=LOAN_ADVISOR, shift_preference='OPENING'),
        Advisor(id='adv_3', name='Carla Ruiz', position=AFFILIATION_ADVISOR),
    ]


@pytest.fixture
def make_budget():
    """Factory: make_budget(indicator_id, amount, day=None, target_id=BRANCH_GLOBAL, week=WEEK)"""
    def _make(indicator_id, amount, day=None, target_id=BRANCH_GLOBAL, week=WEEK, year=YEAR, budget_id=''):
        return BudgetConfig(
            indicator_id=indicator_id,
            target_id=target_id,
            year=year,
            week=week,
            period_type=FREQ_DAILY if day else FREQ_WEEKLY,
            day_of_week=day,
            amount=amount,
            id=budget_id,
        )
    return _make


@pytest.fixture
def make_record():
    """Factory: make_record(values, day=None, advisor_id=None, week=WEEK)"""
    def _make(values, day=None, advisor_id=None, week=WEEK, year=YEAR, record_id=''):
        return RecordData(
            id=record_id,
            date=date_for_week_day(year, week, day or 1),
            year=year,
            week=week,
            type=REPORT_INDIVIDUAL if advisor_id else REPORT_BRANCH,
            frequency=FREQ_DAILY if day else FREQ_WEEKLY,
            day_of_week=day,
            advisor_id=advisor_id,
            values=dict(values),
        )
    return _make


@pytest.fixture
def fake_backend():
    """BackendClient double; `tables` maps table name -> rows returned by fetch_all."""
    backend = MagicMock(spec=BackendClient)
    backend.tables = {}
    backend.fetch_all.side_effect = lambda table, **kwargs: list(backend.tables.get(table, []))
    backend.insert.side_effect = lambda table, rows: rows
    backend.upsert.side_effect = lambda table, rows, on_conflict=None: rows
    backend.delete_by_id.return_value = []
    backend.delete_where.return_value = []
    return backend
