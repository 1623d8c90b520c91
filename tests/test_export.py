# tests/test_export.py
from openpyxl import load_workbook

from branch_ops.models import (
    BranchScheduleConfig,
    DaySchedule,
    RRHHEvent,
    ScheduleActivity,
    ScheduleAssignment,
)
from branch_ops.performance.commitments import weekly_commitments
from branch_ops.performance.export import CommitmentsExport
from branch_ops.schedule.export import ScheduleExport
from branch_ops.schedule.grid import ScheduleGrid

from .conftest import WEDNESDAY, WEEK, YEAR


def test_commitments_workbook(indicators, make_budget):
    groups = weekly_commitments(indicators, [make_budget('ind_loans', 700)], YEAR, WEEK)
    output = CommitmentsExport(branch_name="Centro").create_report(groups, YEAR, WEEK)

    wb = load_workbook(output)
    assert wb.sheetnames == [f"Semana {WEEK}"]
    ws = wb.active
    values = [cell.value for row in ws.iter_rows() for cell in row if cell.value is not None]
    assert 'Colocación' in values
    assert 700 in values


def test_schedule_workbook(advisors):
    activities = [ScheduleActivity(id='caja', name='Caja', color='#FDE047')]
    assignments = [
        ScheduleAssignment('adv_1', 3, start, end, 'caja')
        for start, end in (('09:00', '09:30'), ('09:30', '10:00'), ('10:00', '10:30'))
    ]
    config = BranchScheduleConfig(
        open_time='09:00', close_time='11:00',
        days=[DaySchedule(d, '09:00', '11:00', True) for d in range(1, 8)],
    )
    events = [RRHHEvent(type='VACATION', title='Vacaciones', advisor_id='adv_2', start_date=WEDNESDAY)]

    output = ScheduleExport("Centro").create_report(ScheduleGrid(assignments, activities), advisors, events, config, WEDNESDAY)
    wb = load_workbook(output)

    assert wb.sheetnames == ['LUNES', 'MARTES', 'MIÉRCOLES', 'JUEVES', 'VIERNES', 'SÁBADO', 'DOMINGO']

    ws = wb['MIÉRCOLES']
    assert [ws.cell(row=3, column=c).value for c in range(2, 6)] == ['09:00', '09:30', '10:00', '10:30']

    # PRÉSTAMOS title on row 4, blocked adv_2 first, then adv_1
    assert ws['A4'].value == 'PRÉSTAMOS'
    assert ws['A5'].value == 'Bruno Díaz'
    assert ws['B5'].value == 'VACACIONES'
    assert ws['B5'].fill.start_color.rgb.endswith('000000')
    assert ws['A6'].value == 'Ana López'
    assert ws['B6'].value == 'Caja'

    merged = {str(r) for r in ws.merged_cells.ranges}
    assert 'B5:E5' in merged
    assert 'B6:D6' in merged

    assert wb['LUNES']['B5'].value is None
