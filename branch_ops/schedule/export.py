# branch_ops/schedule/export.py
"""
Formatted Excel Export for the Weekly Schedule

One sheet per weekday. Each sheet has the half-hour axis as columns and one
row per advisor (loan advisors first, then affiliation advisors, each block
in roster priority order). Runs of the same activity are merged and filled
with the activity color; advisors with a blocking HR event get a single
black row with the event label.

Uses openpyxl for formatting capabilities.
"""

import logging
from io import BytesIO
from datetime import date
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..models import Advisor, BranchScheduleConfig, RRHHEvent
from ..performance.constants import EXCEL_STYLES
from ..weekdays import WEEKDAY_LABELS, iso_week, week_dates
from .constants import BLOCKED_FILL_COLOR, EMPTY_FILL_COLOR
from .grid import ScheduleGrid, config_envelope, contrast_color, generate_time_slots, sort_roster, split_roster
from .rrhh import blocked_label, blocking_event_for

logger = logging.getLogger(__name__)


def _fill(hex_color: str) -> PatternFill:
    color = (hex_color or '').lstrip('#').upper()
    if len(color) != 6 or any(c not in '0123456789ABCDEF' for c in color):
        color = EMPTY_FILL_COLOR
    return PatternFill(start_color=color, end_color=color, fill_type='solid')


class ScheduleExport:
    """
    Excel workbook of a branch week schedule.

    Usage:
        exporter = ScheduleExport(branch_name="Sucursal Centro")
        excel_bytes = exporter.create_report(grid, advisors, events, config, today)
    """

    FIRST_SLOT_COLUMN = 2

    def __init__(self, branch_name: str = ""):
        self.branch_name = branch_name
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        """Initialize reusable styles."""
        self.header_fill = _fill(EXCEL_STYLES['header_fill_color'])
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=9)
        self.title_font = Font(bold=True, size=14)
        self.section_font = Font(bold=True, size=11)
        self.blocked_fill = _fill(BLOCKED_FILL_COLOR)
        self.blocked_font = Font(bold=True, color='FFFFFF', size=9)
        self.empty_fill = _fill(EMPTY_FILL_COLOR)

        thin = Side(style='thin', color='9CA3AF')
        self.cell_border = Border(left=thin, right=thin, top=thin, bottom=thin)

        self.center_align = Alignment(horizontal='center', vertical='center', wrap_text=True)

    def create_report(
        self,
        grid: ScheduleGrid,
        advisors: List[Advisor],
        events: List[RRHHEvent],
        config: Optional[BranchScheduleConfig],
        reference_day: date,
    ) -> BytesIO:
        """
        Build the workbook for the week containing `reference_day`.

        Returns:
            BytesIO containing Excel file
        """
        self.wb = Workbook()
        open_time, close_time = config_envelope(config)
        slots = generate_time_slots(open_time, close_time)
        loans, affiliations = split_roster(advisors)

        for day in week_dates(reference_day):
            ws = self.wb.create_sheet(WEEKDAY_LABELS[day.isoweekday()])
            self._write_day(ws, grid, day, slots, loans, affiliations, events)

        if 'Sheet' in self.wb.sheetnames:
            del self.wb['Sheet']

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        year, week = iso_week(reference_day)
        logger.info(f"📄 Schedule workbook created for {year}-W{week} ({len(slots)} slots/day)")
        return output

    def _write_day(self, ws, grid, day, slots, loans, affiliations, events):
        last_col = get_column_letter(self.FIRST_SLOT_COLUMN + max(len(slots), 1) - 1)

        ws['A1'] = f"{self.branch_name} {WEEKDAY_LABELS[day.isoweekday()]} {day.strftime('%d/%m/%Y')}".strip()
        ws['A1'].font = self.title_font
        ws.merge_cells(f'A1:{last_col}1')

        ws.cell(row=3, column=1, value='Asesor')
        for offset, slot in enumerate(slots):
            ws.cell(row=3, column=self.FIRST_SLOT_COLUMN + offset, value=slot)
        for col in range(1, self.FIRST_SLOT_COLUMN + len(slots)):
            cell = ws.cell(row=3, column=col)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border

        row = 4
        for title, block in (('PRÉSTAMOS', loans), ('AFILIACIÓN', affiliations)):
            if not block:
                continue
            ws.cell(row=row, column=1, value=title).font = self.section_font
            row += 1
            for advisor in sort_roster(block, events, day):
                self._write_advisor_row(ws, row, grid, advisor, day, slots, events)
                row += 1
            row += 1

        ws.column_dimensions['A'].width = 24
        for offset in range(len(slots)):
            ws.column_dimensions[get_column_letter(self.FIRST_SLOT_COLUMN + offset)].width = 7
        ws.freeze_panes = ws.cell(row=4, column=self.FIRST_SLOT_COLUMN)

    def _write_advisor_row(self, ws, row, grid, advisor, day, slots, events):
        name_cell = ws.cell(row=row, column=1, value=advisor.name)
        name_cell.border = self.cell_border
        if not slots:
            return

        first = self.FIRST_SLOT_COLUMN
        blocking = blocking_event_for(events, advisor.id, day)
        if blocking is not None:
            cell = ws.cell(row=row, column=first, value=blocked_label(blocking).upper())
            cell.fill = self.blocked_fill
            cell.font = self.blocked_font
            cell.alignment = self.center_align
            if len(slots) > 1:
                ws.merge_cells(start_row=row, start_column=first, end_row=row, end_column=first + len(slots) - 1)
            return

        col = first
        for merged in grid.merge_row(advisor.id, day.isoweekday(), slots):
            cell = ws.cell(row=row, column=col)
            cell.border = self.cell_border
            cell.alignment = self.center_align
            if merged.activity is not None:
                cell.value = merged.activity.name
                cell.fill = _fill(merged.activity.color)
                cell.font = Font(bold=True, size=8, color=contrast_color(merged.activity.color).lstrip('#').upper())
            else:
                cell.fill = self.empty_fill
            if merged.span > 1:
                ws.merge_cells(start_row=row, start_column=col, end_row=row, end_column=col + merged.span - 1)
            col += merged.span


__all__ = ['ScheduleExport']
