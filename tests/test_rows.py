from datetime import datetime, timedelta, timezone

import pytest

from kube_triage.errors import ListingParseError
from kube_triage.triage.limits_cache import ContainerLimits
from kube_triage.triage.rows import (
    build_rows, container_started_at, format_age, index_pods, parse_pod, parse_usage_lines, UsageSample,
)
from fakes import pod

NOW = datetime(2024, 1, 3, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize('delta,expected', [
    (timedelta(days=2, hours=5, minutes=3), '2d5h'),
    (timedelta(days=1), '1d0h'),
    (timedelta(hours=3, minutes=7), '3h7m'),
    (timedelta(hours=1), '1h0m'),
    (timedelta(minutes=59, seconds=59), '59m'),
    (timedelta(seconds=30), '0m'),
])
def test_format_age(delta, expected):
    assert format_age(NOW - delta, NOW) == expected


def test_format_age_guards_clock_skew_and_absence():
    assert format_age(NOW + timedelta(minutes=5), NOW) == ''
    assert format_age(NOW + timedelta(milliseconds=500), NOW) == ''
    assert format_age(NOW, NOW) == '0m'
    assert format_age(None, NOW) == ''


def test_container_started_at_precedence():
    running = '2024-01-03T10:00:00Z'
    last = '2024-01-02T10:00:00Z'
    current = '2024-01-01T10:00:00Z'
    status = {
        'state': {'running': {'startedAt': running}, 'terminated': {'startedAt': current}},
        'lastState': {'terminated': {'startedAt': last}},
    }
    assert container_started_at(status) == datetime(2024, 1, 3, 10, tzinfo=timezone.utc)
    status['state'].pop('running')
    assert container_started_at(status) == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    status['lastState'] = {}
    assert container_started_at(status) == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert container_started_at({'state': {'waiting': {'reason': 'CrashLoopBackOff'}}}) is None


def test_parse_pod_status_and_owner():
    info = parse_pod(pod('web-abc123-xyz', 'ReplicaSet', 'web-abc123', containers=[('app', 3, '2024-01-03T11:00:00Z')]))
    assert info.owner.kind == 'Deployment'
    assert info.owner.name == 'web'
    assert info.containers['app'].restart_count == 3
    assert info.start_time == datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize('item', [
    'not-a-dict',
    {'metadata': {}},
    {'metadata': {'name': 'p'}, 'status': {'containerStatuses': [{'restartCount': 1}]}},
    {'metadata': {'name': 'p'}, 'status': {'containerStatuses': [{'name': 'c', 'restartCount': 'many'}]}},
])
def test_undecodable_pod_is_fatal(item):
    with pytest.raises(ListingParseError):
        index_pods([item])


def test_parse_usage_lines_drops_bad_lines():
    samples, dropped = parse_usage_lines([
        'web-1 app 250m 256Mi',
        'web-1 sidecar 5m 12Mi',
        '',
        'garbage',
        'web-2 app 10m',
        'web-2 app ??? 10Mi',
        'web-3 app 1e1000000 5Mi',
        'web-3 app 1e5000 5Mi',
        'web-1 app 10m 5Mi extra',
    ])
    assert samples == [UsageSample('web-1', 'app', 250, 256), UsageSample('web-1', 'sidecar', 5, 12)]
    assert dropped == [
        'garbage', 'web-2 app 10m', 'web-2 app ??? 10Mi',
        'web-3 app 1e1000000 5Mi', 'web-3 app 1e5000 5Mi', 'web-1 app 10m 5Mi extra',
    ]


def test_build_rows_joins_limits_status_and_owner():
    pods = index_pods([pod('web-abc123', 'ReplicaSet', 'web-5d8f', containers=[('app', 0, '2024-01-03T09:30:00Z')])])
    limits = {'Deployment': {'web': {'app': ContainerLimits(500, 512)}}}
    rows = build_rows('shop', [UsageSample('web-abc123', 'app', 250, 256)], pods, limits, now=NOW)
    assert len(rows) == 1
    row = rows[0]
    assert (row.owner_kind, row.owner_name) == ('Deployment', 'web')
    assert (row.cpu_m, row.cpu_limit_m, row.cpu_pct) == (250, 500, 50.0)
    assert (row.mem_mi, row.mem_limit_mi, row.mem_pct) == (256, 512, 50.0)
    assert row.restarts == 0
    assert row.pod_age == '2d12h'
    assert row.container_age == '2h30m'
    assert row.namespace == 'shop'
    assert row.is_total is False


def test_build_rows_unknown_pod_and_missing_limits():
    rows = build_rows('shop', [UsageSample('orphan', 'app', 100, 64)], {}, {}, now=NOW)
    row = rows[0]
    assert (row.owner_kind, row.owner_name) == ('', '')
    assert row.cpu_limit_m is None and row.cpu_pct is None
    assert row.mem_limit_mi is None and row.mem_pct is None
    assert row.restarts == 0
    assert row.pod_age == '' and row.container_age == ''


def test_zero_limit_gives_unset_percentage():
    pods = index_pods([pod('db-0', 'StatefulSet', 'db', containers=[('pg', 1, None)])])
    limits = {'StatefulSet': {'db': {'pg': ContainerLimits(0, 0)}}}
    row = build_rows('shop', [UsageSample('db-0', 'pg', 100, 100)], pods, limits, now=NOW)[0]
    assert row.cpu_limit_m == 0 and row.cpu_pct is None
    assert row.mem_limit_mi == 0 and row.mem_pct is None
    assert row.restarts == 1


def test_rows_are_immutable():
    row = build_rows('shop', [UsageSample('p', 'c', 1, 1)], {}, {}, now=NOW)[0]
    with pytest.raises(Exception):
        row.cpu_m = 5
