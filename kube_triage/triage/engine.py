"""One triage invocation: fetch, join, filter, sort, classify, total."""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional, Sequence

from ..util import logging as log
from .limits_cache import LimitsCache
from .pipeline import RowPredicate, filter_containers, filter_rows, sort_rows
from .rows import Row, build_rows, index_pods, parse_usage_lines
from .rules import Severity, SeverityEngine, Thresholds, build_engine
from .totals import build_totals_row

DEFAULT_CACHE_MAX_AGE_MINUTES = 60
MIN_CACHE_MAX_AGE_MINUTES = 1
MAX_CACHE_MAX_AGE_MINUTES = 1440


class OutcomeStatus(Enum):
    OK = "ok"
    NO_DATA = "no_data"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class ClassifiedRow:
    row: Row
    severity: Severity
    reason: Optional[str] = None


@dataclass
class TriageOptions:
    namespace: str = 'default'
    containers: Sequence[str] = ()
    predicate: Optional[RowPredicate] = None
    sort_field: str = 'mem_pct'
    descending: bool = True
    include_totals: bool = False
    cache_max_age_minutes: int = DEFAULT_CACHE_MAX_AGE_MINUTES
    thresholds: Thresholds = field(default_factory=Thresholds)
    parallel_fetch: bool = False

    def validate(self) -> None:
        if not self.namespace:
            raise ValueError('namespace must not be empty')
        if not (MIN_CACHE_MAX_AGE_MINUTES <= self.cache_max_age_minutes <= MAX_CACHE_MAX_AGE_MINUTES):
            raise ValueError(f'limits cache max age must be between {MIN_CACHE_MAX_AGE_MINUTES} '
                             f'and {MAX_CACHE_MAX_AGE_MINUTES} minutes')
        self.thresholds.validate()


@dataclass
class TriageOutcome:
    status: OutcomeStatus
    namespace: str
    rows: List[ClassifiedRow] = field(default_factory=list)
    dropped_lines: List[str] = field(default_factory=list)
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK


class TriageEngine:
    """Joins the three cluster feeds into a classified triage table.

    The limits cache is owned by the caller so it survives across
    invocations (e.g. watch mode) while pods and usage never do.
    """

    def __init__(self, reader, cache: Optional[LimitsCache] = None,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.reader = reader
        self.cache = cache if cache is not None else LimitsCache(reader)
        self.clock = clock

    def _fetch(self, opts: TriageOptions):
        ns = opts.namespace
        max_age = timedelta(minutes=opts.cache_max_age_minutes)
        if opts.parallel_fetch:
            log.debug('fetching cluster feeds in parallel', namespace=ns)
            with ThreadPoolExecutor(max_workers=3) as executor:
                pods_f = executor.submit(self.reader.list_pods, ns)
                limits_f = executor.submit(self.cache.get_or_refresh, ns, max_age)
                usage_f = executor.submit(self.reader.get_container_usage, ns)
                # all three must complete before the join
                return pods_f.result(), limits_f.result(), usage_f.result()
        pods = self.reader.list_pods(ns)
        limits = self.cache.get_or_refresh(ns, max_age)
        usage = self.reader.get_container_usage(ns)
        return pods, limits, usage

    def run(self, opts: TriageOptions, classifier: Optional[SeverityEngine] = None) -> TriageOutcome:
        opts.validate()
        ns = opts.namespace
        pod_items, limits, usage_lines = self._fetch(opts)
        pods = index_pods(pod_items)
        samples, dropped = parse_usage_lines(usage_lines)
        if dropped:
            log.warn('dropped unparseable usage lines', namespace=ns, count=len(dropped))
        log.info('fetched cluster feeds', namespace=ns, pods=len(pods), usage_samples=len(samples))
        if not samples:
            return TriageOutcome(OutcomeStatus.NO_DATA, ns, dropped_lines=dropped,
                                 message=f'No usage data returned for namespace {ns}')

        rows = build_rows(ns, samples, pods, limits, now=self.clock())
        rows = filter_containers(rows, opts.containers)
        rows = filter_rows(rows, opts.predicate)
        if not rows:
            return TriageOutcome(OutcomeStatus.NO_MATCH, ns, dropped_lines=dropped,
                                 message='No rows matched filters')
        rows = sort_rows(rows, opts.sort_field, opts.descending)
        if opts.include_totals:
            rows.append(build_totals_row(rows, ns))

        classifier = classifier or build_engine(opts.thresholds)
        classified = []
        for r in rows:
            result = classifier.evaluate_row(r)
            classified.append(ClassifiedRow(r, result.severity, result.message))
        return TriageOutcome(OutcomeStatus.OK, ns, rows=classified, dropped_lines=dropped,
                             message=f'{len(classified)} row(s)')
