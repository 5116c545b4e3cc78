from __future__ import annotations
from typing import Optional

from openpyxl import Workbook
from openpyxl.comments import Comment
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..triage.rules import Severity
from .base import COLUMNS, ReportGenerator, register

_NUMERIC_FROM = 6  # Restarts onward


@register
class ExcelReport(ReportGenerator):
    """Workbook with one sheet; rows filled by severity, reasons as cell comments."""
    type_name = 'excel'
    file_extension = '.xlsx'
    requires_out = True

    def generate(self, outcome, out_path: Optional[str] = None) -> None:
        if not out_path:
            raise ValueError('excel output requires an output path')
        wb = Workbook()
        ws = wb.active
        ws.title = "Triage"

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        fills = {
            Severity.CRITICAL: PatternFill(start_color="F8D7DA", end_color="F8D7DA", fill_type="solid"),
            Severity.WARNING: PatternFill(start_color="FFF3CD", end_color="FFF3CD", fill_type="solid"),
        }
        fonts = {
            Severity.CRITICAL: Font(color="721C24", bold=True),
            Severity.WARNING: Font(color="856404", bold=True),
        }
        totals_fill = PatternFill(start_color="F5F5F5", end_color="F5F5F5", fill_type="solid")

        headers = [h for h, _ in COLUMNS] + ['Severity']
        ncols = len(headers)
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=ncols)
        title_cell = ws.cell(row=1, column=1, value=f"Container triage: {outcome.namespace}")
        title_cell.font = Font(bold=True, size=16)
        title_cell.alignment = Alignment(horizontal='center')

        for col_num, header in enumerate(headers, 1):
            cell = ws.cell(row=3, column=col_num, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = border
            cell.alignment = Alignment(horizontal='center')

        current_row = 4
        for item in outcome.rows:
            values = [getattr(item.row, attr) for _, attr in COLUMNS] + [item.severity.value]
            for col_num, value in enumerate(values, 1):
                cell = ws.cell(row=current_row, column=col_num, value=value)
                cell.border = border
                if item.row.is_total:
                    cell.fill = totals_fill
                    cell.font = Font(bold=True)
                elif item.severity in fills:
                    cell.fill = fills[item.severity]
                    cell.font = fonts[item.severity]
                if col_num >= _NUMERIC_FROM and col_num < ncols:
                    cell.alignment = Alignment(horizontal='right')
            if item.reason and not item.row.is_total:
                ws.cell(row=current_row, column=ncols).comment = Comment(item.reason, "kube-triage")
            current_row += 1

        for col_num, header in enumerate(headers, 1):
            width = max([len(header)] + [len(str(ws.cell(row=r, column=col_num).value or '')) for r in range(4, current_row)])
            ws.column_dimensions[get_column_letter(col_num)].width = min(width + 2, 60)
        ws.freeze_panes = 'A4'
        wb.save(out_path)
