from __future__ import annotations
from typing import List

import click

from ..triage.rules import Severity
from .base import COLUMNS, TextReportGenerator, format_value, register

_SEVERITY_COLORS = {
    Severity.CRITICAL: 'red',
    Severity.WARNING: 'yellow',
}

_NUMERIC = {'restarts', 'cpu_m', 'cpu_limit_m', 'cpu_pct', 'mem_mi', 'mem_limit_mi', 'mem_pct'}


def _cells(outcome) -> List[List[str]]:
    return [[format_value(getattr(item.row, attr)) for _, attr in COLUMNS] for item in outcome.rows]


@register
class TableReport(TextReportGenerator):
    """Aligned terminal table; rows are colored by severity, totals in bold."""
    type_name = 'table'
    color = True

    def render(self, outcome) -> str:
        headers = [h for h, _ in COLUMNS]
        body = _cells(outcome)
        widths = [len(h) for h in headers]
        for cells in body:
            for i, cell in enumerate(cells):
                widths[i] = max(widths[i], len(cell))

        def fmt(cells):
            parts = []
            for (_, attr), cell, width in zip(COLUMNS, cells, widths):
                parts.append(cell.rjust(width) if attr in _NUMERIC else cell.ljust(width))
            return '  '.join(parts).rstrip()

        lines = [click.style(fmt(headers), bold=True) if self.color else fmt(headers)]
        for item, cells in zip(outcome.rows, body):
            line = fmt(cells)
            if self.color:
                if item.row.is_total:
                    line = click.style(line, bold=True)
                elif item.severity in _SEVERITY_COLORS:
                    line = click.style(line, fg=_SEVERITY_COLORS[item.severity])
            lines.append(line)
        return '\n'.join(lines) + '\n'


@register
class PlainTableReport(TableReport):
    type_name = 'plain'
    color = False
