"""Join live usage, ownership, cached limits and pod status into triage rows."""
from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..errors import ListingParseError, payload_excerpt
from ..util import logging as log
from .limits_cache import WorkloadLimits, lookup_limits
from .owner import EMPTY_OWNER, OwnerRef, resolve_owner
from .quantity import parse_cpu, parse_memory, percentage


@dataclass(frozen=True)
class Row:
    namespace: str
    owner_kind: str
    owner_name: str
    pod: str
    container: str
    restarts: int
    pod_age: str
    container_age: str
    cpu_m: int
    cpu_limit_m: Optional[int]
    cpu_pct: Optional[float]
    mem_mi: int
    mem_limit_mi: Optional[int]
    mem_pct: Optional[float]
    is_total: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


ROW_FIELDS = tuple(f.name for f in fields(Row) if f.name != 'is_total')


@dataclass(frozen=True)
class UsageSample:
    pod: str
    container: str
    cpu_m: int
    mem_mi: int


@dataclass(frozen=True)
class ContainerStatus:
    restart_count: int = 0
    started_at: Optional[datetime] = None


@dataclass
class PodInfo:
    name: str
    owner: OwnerRef = EMPTY_OWNER
    start_time: Optional[datetime] = None
    containers: Dict[str, ContainerStatus] = field(default_factory=dict)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def container_started_at(status: Dict[str, Any]) -> Optional[datetime]:
    """Running start time, else last terminated start, else current terminated start."""
    state = status.get('state') or {}
    last_state = status.get('lastState') or {}
    for candidate in (
        (state.get('running') or {}).get('startedAt'),
        (last_state.get('terminated') or {}).get('startedAt'),
        (state.get('terminated') or {}).get('startedAt'),
    ):
        ts = parse_timestamp(candidate)
        if ts is not None:
            return ts
    return None


def parse_pod(item: Any) -> PodInfo:
    if not isinstance(item, dict):
        raise ListingParseError('pod listing', 'item is not an object', payload_excerpt(item))
    meta = item.get('metadata') or {}
    name = meta.get('name')
    if not name:
        raise ListingParseError('pod listing', 'item without metadata.name', payload_excerpt(item))
    status = item.get('status') or {}
    containers: Dict[str, ContainerStatus] = {}
    for cs in status.get('containerStatuses') or []:
        if not isinstance(cs, dict) or not cs.get('name'):
            raise ListingParseError('pod listing', f'pod {name} has a container status without a name', payload_excerpt(item))
        try:
            restarts = int(cs.get('restartCount') or 0)
        except (TypeError, ValueError):
            raise ListingParseError('pod listing', f'pod {name} has a non-numeric restartCount', payload_excerpt(item))
        containers[cs['name']] = ContainerStatus(restart_count=max(restarts, 0), started_at=container_started_at(cs))
    return PodInfo(
        name=name,
        owner=resolve_owner(meta.get('ownerReferences')),
        start_time=parse_timestamp(status.get('startTime')),
        containers=containers,
    )


def index_pods(items: Iterable[Any]) -> Dict[str, PodInfo]:
    pods: Dict[str, PodInfo] = {}
    for item in items:
        info = parse_pod(item)
        pods[info.name] = info
    return pods


def parse_usage_lines(lines: Iterable[str]) -> Tuple[List[UsageSample], List[str]]:
    """Parse 'pod container cpu mem' lines.

    Returns (samples, dropped). Lines that do not have exactly four fields or whose
    quantities cannot be read are dropped instead of failing the batch.
    """
    samples: List[UsageSample] = []
    dropped: List[str] = []
    for line in lines:
        if not line or not line.strip():
            continue
        parts = line.split()
        if len(parts) != 4:
            log.debug('dropping usage line', line=line, reason='expected 4 fields')
            dropped.append(line)
            continue
        pod, container, cpu_raw, mem_raw = parts
        cpu_m = parse_cpu(cpu_raw)
        mem_mi = parse_memory(mem_raw)
        if cpu_m is None or mem_mi is None:
            log.debug('dropping usage line', line=line, reason='unparseable quantity')
            dropped.append(line)
            continue
        samples.append(UsageSample(pod=pod, container=container, cpu_m=cpu_m, mem_mi=mem_mi))
    return samples, dropped


def format_age(start: Optional[datetime], now: datetime) -> str:
    if start is None:
        return ''
    elapsed = now - start
    if elapsed < timedelta(0):
        return ''
    seconds = int(elapsed.total_seconds())
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days >= 1:
        return f'{days}d{hours}h'
    if hours >= 1:
        return f'{hours}h{minutes}m'
    return f'{minutes}m'


def build_rows(namespace: str, samples: Iterable[UsageSample], pods: Dict[str, PodInfo],
               limits: WorkloadLimits, now: Optional[datetime] = None) -> List[Row]:
    now = now or datetime.now(timezone.utc)
    rows: List[Row] = []
    for sample in samples:
        pod = pods.get(sample.pod)
        owner = pod.owner if pod else EMPTY_OWNER
        lim = lookup_limits(limits, owner.kind, owner.name, sample.container)
        status = pod.containers.get(sample.container) if pod else None
        rows.append(Row(
            namespace=namespace,
            owner_kind=owner.kind,
            owner_name=owner.name,
            pod=sample.pod,
            container=sample.container,
            restarts=status.restart_count if status else 0,
            pod_age=format_age(pod.start_time if pod else None, now),
            container_age=format_age(status.started_at if status else None, now),
            cpu_m=sample.cpu_m,
            cpu_limit_m=lim.cpu_limit_m,
            cpu_pct=percentage(sample.cpu_m, lim.cpu_limit_m),
            mem_mi=sample.mem_mi,
            mem_limit_mi=lim.mem_limit_mi,
            mem_pct=percentage(sample.mem_mi, lim.mem_limit_mi),
        ))
    return rows
