from __future__ import annotations
from typing import Iterable

from .quantity import percentage
from .rows import Row

TOTAL_LABEL = 'TOTAL'


def _sum_limits(values) -> int:
    return sum(v for v in values if v is not None)


def build_totals_row(rows: Iterable[Row], namespace: str) -> Row:
    """Synthetic summary row over rows (post-filter).

    Unset limits contribute 0. A zero total limit leaves the total
    percentage unset, like any row without a usable limit.
    """
    rows = [r for r in rows if not r.is_total]
    cpu_m = sum(r.cpu_m for r in rows)
    mem_mi = sum(r.mem_mi for r in rows)
    cpu_limit_m = _sum_limits(r.cpu_limit_m for r in rows)
    mem_limit_mi = _sum_limits(r.mem_limit_mi for r in rows)
    return Row(
        namespace=namespace,
        owner_kind='',
        owner_name='',
        pod=TOTAL_LABEL,
        container='',
        restarts=sum(r.restarts for r in rows),
        pod_age='',
        container_age='',
        cpu_m=cpu_m,
        cpu_limit_m=cpu_limit_m,
        cpu_pct=percentage(cpu_m, cpu_limit_m),
        mem_mi=mem_mi,
        mem_limit_mi=mem_limit_mi,
        mem_pct=percentage(mem_mi, mem_limit_mi),
        is_total=True,
    )
