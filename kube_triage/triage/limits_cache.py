"""Session-scoped cache of declared container limits per workload.

Workload specs change far less often than pods, so limits are kept for a
bounded time per namespace while pods and usage are fetched on every run.
"""
from __future__ import annotations
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..errors import ListingParseError, payload_excerpt
from ..util import logging as log
from .quantity import parse_cpu, parse_memory

WORKLOAD_KINDS = ('Deployment', 'StatefulSet', 'DaemonSet')


@dataclass(frozen=True)
class ContainerLimits:
    cpu_limit_m: Optional[int] = None
    mem_limit_mi: Optional[int] = None


# kind -> workload name -> container name -> limits
WorkloadLimits = Dict[str, Dict[str, Dict[str, ContainerLimits]]]

NO_LIMITS = ContainerLimits()


def lookup_limits(limits: WorkloadLimits, kind: str, name: str, container: str) -> ContainerLimits:
    return limits.get(kind, {}).get(name, {}).get(container, NO_LIMITS)


def extract_pod_spec(kind: str, manifest: dict) -> Optional[dict]:
    spec = manifest.get('spec') or {}
    if kind in WORKLOAD_KINDS:
        return (spec.get('template') or {}).get('spec')
    return None


def container_limits_from_workload(kind: str, manifest: Any) -> Tuple[str, Dict[str, ContainerLimits]]:
    """Return (workload name, container -> limits) for one workload object."""
    if not isinstance(manifest, dict):
        raise ListingParseError(f'{kind} listing', 'item is not an object', payload_excerpt(manifest))
    name = (manifest.get('metadata') or {}).get('name')
    if not name:
        raise ListingParseError(f'{kind} listing', 'item without metadata.name', payload_excerpt(manifest))
    pod_spec = extract_pod_spec(kind, manifest) or {}
    containers = pod_spec.get('containers') or []
    if not isinstance(containers, list):
        raise ListingParseError(f'{kind} listing', f'{kind}/{name} has malformed containers', payload_excerpt(manifest))
    out: Dict[str, ContainerLimits] = {}
    for cdef in containers:
        if not isinstance(cdef, dict) or not cdef.get('name'):
            raise ListingParseError(f'{kind} listing', f'{kind}/{name} has a container without a name', payload_excerpt(manifest))
        lim = (cdef.get('resources') or {}).get('limits') or {}
        out[cdef['name']] = ContainerLimits(
            cpu_limit_m=parse_cpu(lim.get('cpu')),
            mem_limit_mi=parse_memory(lim.get('memory')),
        )
    return name, out


@dataclass
class _Entry:
    built_at: float
    data: WorkloadLimits


class LimitsCache:
    """Per-namespace store of WorkloadLimits with an age-based refresh policy.

    The clock is injectable (seconds, monotonic) so expiry can be tested
    without sleeping. Refreshes of the same namespace are serialized.
    """

    def __init__(self, reader, clock: Callable[[], float] = time.monotonic):
        self.reader = reader
        self.clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, namespace: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(namespace)
            if lock is None:
                lock = self._locks[namespace] = threading.Lock()
            return lock

    def get_or_refresh(self, namespace: str, max_age: Union[timedelta, float]) -> WorkloadLimits:
        max_age_s = max_age.total_seconds() if isinstance(max_age, timedelta) else float(max_age)
        with self._lock_for(namespace):
            entry = self._entries.get(namespace)
            now = self.clock()
            if entry is not None and now - entry.built_at <= max_age_s:
                log.debug('limits cache hit', namespace=namespace, age_s=round(now - entry.built_at, 1))
                return entry.data
            data = self._build(namespace)
            self._entries[namespace] = _Entry(built_at=now, data=data)
            return data

    def _build(self, namespace: str) -> WorkloadLimits:
        log.info('refreshing workload limits', namespace=namespace)
        data: WorkloadLimits = {}
        for kind in WORKLOAD_KINDS:
            items = self.reader.list_workload(kind, namespace)
            per_kind: Dict[str, Dict[str, ContainerLimits]] = {}
            for item in items:
                name, containers = container_limits_from_workload(kind, item)
                per_kind[name] = containers
            data[kind] = per_kind
            log.debug('collected workload limits', namespace=namespace, kind=kind, count=len(per_kind))
        return data

    def invalidate(self, namespace: Optional[str] = None) -> None:
        with self._guard:
            if namespace is None:
                self._entries.clear()
            else:
                self._entries.pop(namespace, None)

    def age(self, namespace: str) -> Optional[float]:
        entry = self._entries.get(namespace)
        if entry is None:
            return None
        return self.clock() - entry.built_at

    def namespaces(self) -> List[str]:
        return sorted(self._entries.keys())
