from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

import click

COLUMNS = [
    ('Namespace', 'namespace'),
    ('OwnerKind', 'owner_kind'),
    ('Owner', 'owner_name'),
    ('Pod', 'pod'),
    ('Container', 'container'),
    ('Restarts', 'restarts'),
    ('PodAge', 'pod_age'),
    ('ContainerAge', 'container_age'),
    ('CpuM', 'cpu_m'),
    ('CpuLimitM', 'cpu_limit_m'),
    ('CpuPct', 'cpu_pct'),
    ('MemMi', 'mem_mi'),
    ('MemLimitMi', 'mem_limit_mi'),
    ('MemPct', 'mem_pct'),
]


def format_value(value) -> str:
    if value is None:
        return '-'
    if isinstance(value, float):
        return f'{value:.1f}'
    return str(value)


class ReportGenerator(ABC):
    """Abstract base for triage output generators."""

    # A short unique type name (e.g. 'table', 'csv')
    type_name: str
    # Default file extension including dot
    file_extension: str = '.txt'
    requires_out: bool = False

    @abstractmethod
    def generate(self, outcome, out_path: Optional[str] = None) -> None:  # pragma: no cover - interface
        pass


class TextReportGenerator(ReportGenerator):
    """Generators whose output is text.

    render() returns the document; generate() writes it to out_path or, without
    one, to stdout.
    """

    @abstractmethod
    def render(self, outcome) -> str:  # pragma: no cover - interface
        pass

    def generate(self, outcome, out_path: Optional[str] = None) -> None:
        text = self.render(outcome)
        if out_path:
            with open(out_path, 'w', encoding='utf-8', newline='') as f:
                f.write(text)
        else:
            click.echo(text, nl=not text.endswith('\n'))


_registry: Dict[str, Type[ReportGenerator]] = {}


def register(generator_cls: Type[ReportGenerator]):
    name = getattr(generator_cls, 'type_name', None)
    if not name:
        raise ValueError('ReportGenerator subclass must define type_name')
    _registry[name] = generator_cls
    return generator_cls


def get_report_types() -> List[str]:
    return sorted(_registry.keys())


def get_generator(type_name: str) -> ReportGenerator:
    cls = _registry.get(type_name)
    if not cls:
        raise ValueError(f'Unknown output format: {type_name}. Available: {", ".join(get_report_types())}')
    return cls()
