# tests/test_schedule.py
from datetime import date

import pytest

from branch_ops.models import (
    Advisor,
    BranchScheduleConfig,
    DaySchedule,
    RRHHEvent,
    ScheduleActivity,
    ScheduleAssignment,
)
from branch_ops.schedule.grid import (
    CHANGE_DELETE,
    CHANGE_NOOP,
    CHANGE_UPSERT,
    ScheduleGrid,
    add_30_minutes,
    advisor_priority,
    config_envelope,
    contrast_color,
    effective_config,
    format_time_12h,
    generate_time_slots,
    sort_roster,
    split_roster,
)

from .conftest import WEDNESDAY


@pytest.fixture
def activities():
    return [
        ScheduleActivity(id='fenix', name='Fénix', color='#EF4444', is_protected=True),
        ScheduleActivity(id='caja', name='Caja', color='#FDE047'),
    ]


def slot(advisor_id, weekday, start, activity_id, assignment_id=''):
    return ScheduleAssignment(
        id=assignment_id, advisor_id=advisor_id, day_of_week=weekday,
        start_time=start, end_time=add_30_minutes(start), activity_id=activity_id,
    )


# =============================================================================
# TIME HELPERS
# =============================================================================

class TestTimeHelpers:
    def test_slots_close_exclusive(self):
        assert generate_time_slots('08:30', '10:00') == ['08:30', '09:00', '09:30']
        assert generate_time_slots('10:00', '10:00') == []

    def test_add_30_minutes(self):
        assert add_30_minutes('09:30') == '10:00'
        assert add_30_minutes('23:30') == '00:00'

    def test_twelve_hour_format(self):
        assert format_time_12h('13:30') == '1:30 p.m.'
        assert format_time_12h('00:00') == '12:00 a.m.'
        assert format_time_12h('12:00') == '12:00 p.m.'

    def test_contrast_color(self):
        assert contrast_color('#FDE047') == '#000000'
        assert contrast_color('#EF4444') == '#ffffff'
        assert contrast_color('#1F2937') == '#ffffff'
        assert contrast_color('red') == '#ffffff'
        assert contrast_color(None) == '#ffffff'


class TestBranchConfig:
    def test_no_config_is_default(self):
        assert config_envelope(None) == ('08:30', '21:00')

    def test_envelope_over_open_days(self):
        config = BranchScheduleConfig(open_time='09:00', close_time='19:00', days=[
            DaySchedule(1, '08:00', '18:00', True),
            DaySchedule(6, '09:00', '14:00', True),
            DaySchedule(7, '06:00', '23:00', False),
        ])
        assert config_envelope(config) == ('08:00', '19:00')

    def test_missing_days_inherit_global_hours(self):
        config = effective_config(BranchScheduleConfig(open_time='09:00', close_time='19:00'))
        assert len(config.days) == 7
        assert all(d.open_time == '09:00' and d.close_time == '19:00' for d in config.days)

    def test_every_day_closed(self):
        config = BranchScheduleConfig(
            open_time='09:00', close_time='19:00',
            days=[DaySchedule(d, '09:00', '19:00', False) for d in range(1, 8)],
        )
        assert config_envelope(config) == ('09:00', '18:00')

    def test_saved_row_without_global_hours(self):
        config = BranchScheduleConfig.from_row({'days': [{'day_of_week': 1, 'is_open': True}]})
        assert config_envelope(config) == ('08:30', '21:00')
        assert generate_time_slots(*config_envelope(config))[0] == '08:30'

    def test_malformed_times_fall_back(self):
        config = effective_config(BranchScheduleConfig(open_time='09:00', close_time='abc', days=[
            DaySchedule(2, '', '18:00', True),
            DaySchedule(3, '25:00', '9:30:00', True),
        ]))
        assert config.close_time == '21:00'
        assert (config.days[1].open_time, config.days[1].close_time) == ('09:00', '18:00')
        assert (config.days[2].open_time, config.days[2].close_time) == ('09:00', '09:30')

    def test_slots_tolerate_malformed_bounds(self):
        assert generate_time_slots('', '') == generate_time_slots('08:30', '21:00')
        assert generate_time_slots('20:00', 'abc') == ['20:00', '20:30']


class TestRoster:
    def test_priority_order(self, advisors):
        events = [RRHHEvent(type='VACATION', title='Vacaciones', advisor_id='adv_3', start_date=WEDNESDAY)]
        ordered = sort_roster(advisors, events, WEDNESDAY)
        assert [a.id for a in ordered] == ['adv_3', 'adv_2', 'adv_1']
        assert advisor_priority(advisors[2], [], WEDNESDAY) == 3

    def test_ties_keep_roster_order(self):
        team = [Advisor(id=str(i), name=str(i), position='Asesor de Préstamos') for i in range(4)]
        assert sort_roster(team, [], WEDNESDAY) == team

    def test_split_roster(self, advisors):
        manager = Advisor(id='m', name='Gerente', position='Gerente de Sucursal')
        loans, affiliations = split_roster(advisors + [manager])
        assert [a.id for a in loans] == ['adv_1', 'adv_2']
        assert [a.id for a in affiliations] == ['adv_3']


# =============================================================================
# GRID EDITING
# =============================================================================

class TestGridEditing:
    def test_upsert_new_slot(self, activities):
        grid = ScheduleGrid([], activities)
        change = grid.assign_slot('adv_1', 3, '09:00', 'caja')
        assert change.kind == CHANGE_UPSERT
        assert change.assignment.end_time == '09:30'
        assert change.assignment.id == ''
        assert grid.activity_at('adv_1', 3, '09:00').name == 'Caja'

    def test_same_activity_is_noop(self, activities):
        grid = ScheduleGrid([slot('adv_1', 3, '09:00', 'caja', 's1')], activities)
        assert grid.assign_slot('adv_1', 3, '09:00', 'caja').kind == CHANGE_NOOP
        assert len(grid.all_assignments()) == 1

    def test_repaint_keeps_row_id(self, activities):
        grid = ScheduleGrid([slot('adv_1', 3, '09:00', 'caja', 's1')], activities)
        change = grid.assign_slot('adv_1', 3, '09:00', 'fenix')
        assert change.kind == CHANGE_UPSERT
        assert change.assignment.id == 's1'
        assert len(grid.all_assignments()) == 1

    def test_eraser(self, activities):
        grid = ScheduleGrid([slot('adv_1', 3, '09:00', 'caja', 's1')], activities)
        assert grid.assign_slot('adv_1', 3, '09:30', eraser=True).kind == CHANGE_NOOP
        change = grid.assign_slot('adv_1', 3, '09:00', eraser=True)
        assert change.kind == CHANGE_DELETE
        assert change.assignment.id == 's1'
        assert grid.get('adv_1', 3, '09:00') is None

    def test_range_drops_noops(self, activities):
        grid = ScheduleGrid([slot('adv_1', 1, '10:00', 'fenix')], activities)
        changes = grid.assign_range('adv_1', 1, ['09:30', '10:00', '10:30'], 'fenix')
        assert [c.assignment.start_time for c in changes] == ['09:30', '10:30']

    def test_duplicate_rows_last_wins(self, activities):
        grid = ScheduleGrid([
            slot('adv_1', 1, '10:00', 'caja', 'old'),
            slot('adv_1', 1, '10:00', 'fenix', 'new'),
        ], activities)
        assert grid.get('adv_1', 1, '10:00').id == 'new'


# =============================================================================
# DISPLAY
# =============================================================================

def test_merge_row_runs(activities):
    grid = ScheduleGrid([slot('adv_1', 2, s, 'caja') for s in ('09:00', '09:30', '10:00')], activities)
    cells = grid.merge_row('adv_1', 2, generate_time_slots('09:00', '11:00'))

    assert [c.span for c in cells] == [3, 1]
    assert cells[0].activity.name == 'Caja'
    assert cells[0].end_time == '10:30'
    assert cells[1].is_empty


def test_merge_row_trailing_empty_run(activities):
    grid = ScheduleGrid([slot('adv_1', 2, s, 'caja') for s in ('09:00', '09:30', '10:00')], activities)
    cells = grid.merge_row('adv_1', 2, generate_time_slots('09:00', '11:30'))

    assert [c.span for c in cells] == [3, 2]
    assert cells[1].is_empty
    assert cells[1].start_time == '10:30'


def test_merge_row_leading_empty_run(activities):
    grid = ScheduleGrid([slot('adv_1', 2, '10:00', 'fenix')], activities)
    cells = grid.merge_row('adv_1', 2, ['09:00', '09:30', '10:00'])
    assert [(c.span, c.activity_id) for c in cells] == [(2, None), (1, 'fenix')]


def test_protected_ranges(activities):
    grid = ScheduleGrid([
        slot('adv_1', 4, '09:00', 'fenix'),
        slot('adv_1', 4, '09:30', 'fenix'),
        slot('adv_1', 4, '10:00', 'caja'),
        slot('adv_1', 4, '11:00', 'fenix'),
    ], activities)
    assert grid.protected_ranges('adv_1', 4) == [
        ('9:00 a.m.', '10:00 a.m.'),
        ('11:00 a.m.', '11:30 a.m.'),
    ]
    assert grid.protected_ranges('adv_1', 4, twelve_hour=False)[0] == ('09:00', '10:00')
    assert grid.protected_ranges('adv_1', 5) == []


def test_sunday_cells_are_weekday_seven(activities):
    grid = ScheduleGrid([slot('adv_1', 7, '09:00', 'caja')], activities)
    assert grid.day_assignments('adv_1', 7)[0].day_of_week == 7
    assert grid.day_assignments('adv_1', date(2025, 3, 23).isoweekday())
