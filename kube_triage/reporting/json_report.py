from __future__ import annotations
import json

from .base import TextReportGenerator, register


@register
class JsonReport(TextReportGenerator):
    type_name = 'json'
    file_extension = '.json'

    def render(self, outcome) -> str:
        rows = []
        for item in outcome.rows:
            rec = item.row.to_dict()
            rec['severity'] = item.severity.value
            rows.append(rec)
        doc = {
            'namespace': outcome.namespace,
            'status': outcome.status.value,
            'rows': rows,
            'dropped_lines': list(outcome.dropped_lines),
        }
        return json.dumps(doc, indent=2) + '\n'
