from abc import ABC, abstractmethod
from enum import Enum
from dataclasses import dataclass
from typing import Optional


class Severity(Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RANK[self]


_RANK = {Severity.NORMAL: 0, Severity.WARNING: 1, Severity.CRITICAL: 2}


@dataclass
class RuleResult:
    severity: Severity
    message: Optional[str] = None
    matched_rule: Optional[str] = None
    # stop evaluating further rules
    terminal: bool = False

    def __bool__(self) -> bool:
        return self.severity is not Severity.NORMAL


NORMAL = RuleResult(Severity.NORMAL)


class Rule(ABC):
    def __init__(self, name: str, description: str, enabled: bool = True):
        self.name = name
        self.description = description
        self.enabled = enabled

    @abstractmethod
    def evaluate(self, row) -> RuleResult:  # pragma: no cover
        pass

    @abstractmethod
    def applies_to(self, row) -> bool:  # pragma: no cover
        pass
