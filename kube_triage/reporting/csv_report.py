from __future__ import annotations
import csv
import io

from .base import COLUMNS, TextReportGenerator, register


@register
class CsvReport(TextReportGenerator):
    type_name = 'csv'
    file_extension = '.csv'

    def render(self, outcome) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator='\n')
        writer.writerow([h for h, _ in COLUMNS] + ['Severity'])
        for item in outcome.rows:
            values = ['' if getattr(item.row, attr) is None else getattr(item.row, attr) for _, attr in COLUMNS]
            writer.writerow(values + [item.severity.value])
        return buf.getvalue()
