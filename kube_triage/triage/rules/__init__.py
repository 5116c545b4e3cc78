"""Severity rules package exports."""
from .engine import SeverityEngine
from .registry import RuleRegistry
from .base import Rule, RuleResult, Severity
from .threshold_rules import Thresholds, register_threshold_rules, build_engine

__all__ = [
    'SeverityEngine',
    'RuleRegistry',
    'Rule',
    'RuleResult',
    'Severity',
    'Thresholds',
    'register_threshold_rules',
    'build_engine',
]
