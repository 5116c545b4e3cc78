from dataclasses import dataclass
from typing import Optional
from .base import Rule, RuleResult, Severity, NORMAL
from .engine import SeverityEngine
from .registry import RuleRegistry


@dataclass
class Thresholds:
    mem_pct_warn: float = 50
    mem_pct_crit: float = 80
    cpu_pct_warn: float = 85
    cpu_pct_crit: float = 95
    cpu_m_warn: int = 500
    cpu_m_crit: int = 1000
    # absolute memory thresholds are off unless set
    mem_mi_warn: int = 0
    mem_mi_crit: int = 0

    def validate(self) -> None:
        for name, value in self.__dict__.items():
            if value is None or value < 0:
                raise ValueError(f'Threshold {name} must be >= 0')
        for warn, crit in (('mem_pct_warn', 'mem_pct_crit'), ('cpu_pct_warn', 'cpu_pct_crit'),
                           ('cpu_m_warn', 'cpu_m_crit'), ('mem_mi_warn', 'mem_mi_crit')):
            w, c = getattr(self, warn), getattr(self, crit)
            if w and c and w > c:
                raise ValueError(f'Threshold {warn} ({w}) must not exceed {crit} ({c})')


def _tiered(value: float, warn: float, crit: float, rule: str, label: str) -> RuleResult:
    # 0 disables a tier; comparisons are inclusive
    if crit and value >= crit:
        return RuleResult(Severity.CRITICAL, message=f"{label} {value} >= {crit}", matched_rule=rule)
    if warn and value >= warn:
        return RuleResult(Severity.WARNING, message=f"{label} {value} >= {warn}", matched_rule=rule)
    return NORMAL


class RestartsRule(Rule):
    def __init__(self):
        super().__init__(name="restarts", description="Any container restart: CRITICAL, stops evaluation")
    def applies_to(self, row) -> bool:
        return True
    def evaluate(self, row) -> RuleResult:
        if row.restarts > 0:
            return RuleResult(Severity.CRITICAL, message=f"{row.restarts} restart(s)", matched_rule=self.name, terminal=True)
        return NORMAL


class MemoryAbsoluteRule(Rule):
    def __init__(self, warn_mi: int = 0, crit_mi: int = 0):
        super().__init__(name="memory_absolute", description="Memory usage (Mi) over configured thresholds")
        self.warn_mi = warn_mi
        self.crit_mi = crit_mi
    def applies_to(self, row) -> bool:
        return bool(self.warn_mi or self.crit_mi)
    def evaluate(self, row) -> RuleResult:
        return _tiered(row.mem_mi, self.warn_mi, self.crit_mi, self.name, "memory Mi")


class MemoryPercentRule(Rule):
    def __init__(self, warn_pct: float = 50, crit_pct: float = 80):
        super().__init__(name="memory_percent", description="Memory usage as percent of limit")
        self.warn_pct = warn_pct
        self.crit_pct = crit_pct
    def applies_to(self, row) -> bool:
        return row.mem_pct is not None
    def evaluate(self, row) -> RuleResult:
        return _tiered(row.mem_pct, self.warn_pct, self.crit_pct, self.name, "memory %")


class CpuPercentRule(Rule):
    def __init__(self, warn_pct: float = 85, crit_pct: float = 95):
        super().__init__(name="cpu_percent", description="CPU usage as percent of limit")
        self.warn_pct = warn_pct
        self.crit_pct = crit_pct
    def applies_to(self, row) -> bool:
        return row.cpu_pct is not None
    def evaluate(self, row) -> RuleResult:
        return _tiered(row.cpu_pct, self.warn_pct, self.crit_pct, self.name, "CPU %")


class CpuAbsoluteRule(Rule):
    """Fallback for containers without a CPU limit (no cpu_pct to judge)."""
    def __init__(self, warn_m: int = 500, crit_m: int = 1000):
        super().__init__(name="cpu_absolute", description="CPU millicores when no CPU limit is set")
        self.warn_m = warn_m
        self.crit_m = crit_m
    def applies_to(self, row) -> bool:
        return row.cpu_pct is None and bool(self.warn_m or self.crit_m)
    def evaluate(self, row) -> RuleResult:
        return _tiered(row.cpu_m, self.warn_m, self.crit_m, self.name, "CPU m")


def register_threshold_rules(registry: RuleRegistry, thresholds: Optional[Thresholds] = None) -> None:
    t = thresholds or Thresholds()
    for rule in [
        RestartsRule(),
        MemoryAbsoluteRule(t.mem_mi_warn, t.mem_mi_crit),
        MemoryPercentRule(t.mem_pct_warn, t.mem_pct_crit),
        CpuPercentRule(t.cpu_pct_warn, t.cpu_pct_crit),
        CpuAbsoluteRule(t.cpu_m_warn, t.cpu_m_crit),
    ]:
        registry.register(rule)


def build_engine(thresholds: Optional[Thresholds] = None) -> SeverityEngine:
    registry = RuleRegistry()
    register_threshold_rules(registry, thresholds)
    return SeverityEngine(registry)
