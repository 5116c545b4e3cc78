from __future__ import annotations
import fnmatch
from typing import Callable, Iterable, List, Optional, Sequence

from .rows import Row

RowPredicate = Callable[[Row], bool]

SORT_FIELDS = (
    'owner_kind', 'owner_name', 'pod', 'restarts',
    'cpu_m', 'cpu_limit_m', 'cpu_pct',
    'mem_mi', 'mem_limit_mi', 'mem_pct',
)


def filter_containers(rows: Iterable[Row], patterns: Optional[Sequence[str]]) -> List[Row]:
    """Keep rows whose container name matches any glob (case-sensitive)."""
    rows = list(rows)
    if not patterns:
        return rows
    return [r for r in rows if any(fnmatch.fnmatchcase(r.container, p) for p in patterns)]


def filter_rows(rows: Iterable[Row], predicate: Optional[RowPredicate]) -> List[Row]:
    rows = list(rows)
    if predicate is None:
        return rows
    return [r for r in rows if predicate(r)]


def sort_rows(rows: Iterable[Row], field: str, descending: bool = False) -> List[Row]:
    """Group by container, order each group by field, break ties by pod.

    Built from successive stable sorts, least significant key first. Rows
    with an unset value for field always land at the end of their group.
    """
    if field not in SORT_FIELDS:
        raise ValueError(f'Unknown sort field: {field}. Available: {", ".join(SORT_FIELDS)}')
    ordered = sorted(rows, key=lambda r: r.pod)
    present = [r for r in ordered if getattr(r, field) is not None]
    absent = [r for r in ordered if getattr(r, field) is None]
    ordered = sorted(present, key=lambda r: getattr(r, field), reverse=descending) + absent
    return sorted(ordered, key=lambda r: r.container)
