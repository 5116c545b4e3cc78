from typing import Optional
from .base import RuleResult, Severity, NORMAL
from .registry import RuleRegistry


class SeverityEngine:
    """Evaluate registered rules against a row and keep the most severe result.

    A terminal result ends evaluation immediately. Summary (totals) rows are
    never triage targets and always classify as NORMAL.
    """

    def __init__(self, registry: Optional[RuleRegistry] = None):
        self.registry = registry or RuleRegistry()

    def evaluate_row(self, row) -> RuleResult:
        if getattr(row, 'is_total', False):
            return NORMAL
        highest = NORMAL
        for rule in self.registry.get_applicable_rules(row):
            result = rule.evaluate(row)
            if result.terminal:
                return result
            if result.severity.rank > highest.severity.rank:
                highest = result
        return highest

    def classify(self, row) -> Severity:
        return self.evaluate_row(row).severity
