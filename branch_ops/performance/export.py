# branch_ops/performance/export.py
"""
Formatted Excel Export for Branch Commitments

One sheet with the week's branch commitments: a title block, then one
section per indicator group with Monday..Sunday columns and the total.

Uses openpyxl for formatting capabilities.
"""

import logging
from io import BytesIO
from typing import Dict, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..constants import UNIT_CURRENCY, UNIT_PERCENT
from ..weekdays import ISO_WEEKDAYS, WEEKDAY_LABELS
from .commitments import CommitmentRow
from .constants import EXCEL_STYLES, GROUP_TITLES

logger = logging.getLogger(__name__)


class CommitmentsExport:
    """
    Excel report generator for weekly commitments.

    Usage:
        exporter = CommitmentsExport()
        excel_bytes = exporter.create_report(weekly_commitments(...), year, week)

        st.download_button(
            label="Descargar",
            data=excel_bytes,
            file_name=f"compromisos_{year}_S{week}.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self, branch_name: str = ""):
        self.branch_name = branch_name
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        """Initialize reusable styles."""
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=16)
        self.group_font = Font(bold=True, size=12)

        thin = Side(style='thin', color='000000')
        self.cell_border = Border(left=thin, right=thin, top=thin, bottom=thin)

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.left_align = Alignment(horizontal='left', vertical='center')

    def _number_format(self, unit: str) -> str:
        if unit == UNIT_CURRENCY:
            return EXCEL_STYLES['currency_format']
        if unit == UNIT_PERCENT:
            return '0"%"'
        return EXCEL_STYLES['number_format']

    def create_report(self, groups: Dict[str, List[CommitmentRow]], year: int, week: int) -> BytesIO:
        """
        Build the commitments workbook.

        Args:
            groups: weekly_commitments() output
            year, week: Week shown in the title

        Returns:
            BytesIO containing Excel file
        """
        self.wb = Workbook()
        ws = self.wb.active
        ws.title = f"Semana {week}"

        headers = ['Indicador'] + [WEEKDAY_LABELS[d] for d in ISO_WEEKDAYS] + ['TOTAL']
        last_col = get_column_letter(len(headers))

        ws['A1'] = f"Compromisos {self.branch_name}".strip()
        ws['A1'].font = self.title_font
        ws.merge_cells(f'A1:{last_col}1')
        ws['A2'] = f"Año {year} - Semana {week}"
        ws.merge_cells(f'A2:{last_col}2')

        row = 4
        for key, items in groups.items():
            if not items:
                continue

            ws.cell(row=row, column=1, value=GROUP_TITLES[key]).font = self.group_font
            row += 1

            for col, header in enumerate(headers, start=1):
                cell = ws.cell(row=row, column=col, value=header)
                cell.fill = self.header_fill
                cell.font = self.header_font
                cell.alignment = self.center_align
                cell.border = self.cell_border
            row += 1

            for item in items:
                number_format = self._number_format(item.indicator.unit)
                values = [item.daily_values.get(d, 0.0) for d in ISO_WEEKDAYS] + [item.total]

                name_cell = ws.cell(row=row, column=1, value=item.indicator.name)
                name_cell.alignment = self.left_align
                name_cell.border = self.cell_border

                for offset, value in enumerate(values, start=2):
                    cell = ws.cell(row=row, column=offset, value=value)
                    cell.number_format = number_format
                    cell.border = self.cell_border
                    cell.alignment = self.center_align
                ws.cell(row=row, column=len(headers)).font = Font(bold=True)
                row += 1

            row += 1

        ws.column_dimensions['A'].width = 28
        for col in range(2, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col)].width = 13

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info(f"📄 Commitments workbook created for {year}-W{week}")
        return output


__all__ = ['CommitmentsExport']
