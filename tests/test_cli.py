import csv
import os

import pytest
from click.testing import CliRunner

from kube_triage import run
from kube_triage.errors import ClusterReaderError
from fakes import FakeReader, pod, workload

CONFIG = """
triage:
  namespace: shop
logging:
  level: ERROR
  format: text
"""


def _reader(**overrides):
    kwargs = dict(
        pods=[pod('web-abc123-xyz', 'ReplicaSet', 'web-abc123', containers=[('app', 0, '2024-01-01T01:00:00Z')])],
        workloads={'Deployment': [workload('web', [('app', '1', '256Mi')])]},
        usage=['web-abc123-xyz app 250m 128Mi'],
    )
    kwargs.update(overrides)
    return FakeReader(**kwargs)


@pytest.fixture
def cfg_path(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(CONFIG)
    return str(path)


def _invoke(monkeypatch, cfg_path, args, reader=None):
    reader = reader or _reader()
    monkeypatch.setattr(run, 'build_reader', lambda cluster_cfg: reader)
    result = CliRunner().invoke(run.cli, ['--config', cfg_path] + args)
    return result, reader


def test_top_plain_table(monkeypatch, cfg_path):
    result, _ = _invoke(monkeypatch, cfg_path, ['top', '--format', 'plain'])
    assert result.exit_code == 0, result.output
    assert 'MemPct' in result.output
    assert 'web-abc123-xyz' in result.output
    assert '50.0' in result.output


def test_top_csv_to_file(monkeypatch, cfg_path, tmp_path):
    out = tmp_path / 'out.csv'
    result, _ = _invoke(monkeypatch, cfg_path, ['top', '--format', 'csv', '--out', str(out), '--totals'])
    assert result.exit_code == 0, result.output
    assert 'Wrote csv output to' in result.output
    with open(out, newline='') as f:
        rows = list(csv.DictReader(f))
    assert rows[0]['Owner'] == 'web'
    assert rows[0]['Severity'] == 'warning'
    assert rows[-1]['Pod'] == 'TOTAL'


def test_threshold_override(monkeypatch, cfg_path, tmp_path):
    out = tmp_path / 'out.csv'
    result, _ = _invoke(monkeypatch, cfg_path, ['top', '--format', 'csv', '--out', str(out), '--mem-warn', '60'])
    assert result.exit_code == 0, result.output
    with open(out, newline='') as f:
        assert list(csv.DictReader(f))[0]['Severity'] == 'normal'


def test_where_no_match_is_not_an_error(monkeypatch, cfg_path):
    result, _ = _invoke(monkeypatch, cfg_path, ['top', '--where', 'mem_pct >= 90'])
    assert result.exit_code == 0
    assert 'No rows matched filters' in result.output


def test_no_usage_reports_no_data(monkeypatch, cfg_path):
    result, _ = _invoke(monkeypatch, cfg_path, ['top', '-n', 'empty'], reader=_reader(usage=[]))
    assert result.exit_code == 0
    assert 'No usage data returned for namespace empty' in result.output


def test_bad_where_is_usage_error(monkeypatch, cfg_path):
    result, _ = _invoke(monkeypatch, cfg_path, ['top', '--where', 'mem_pct >= lots'])
    assert result.exit_code == 2


def test_reader_failure_exits_nonzero(monkeypatch, cfg_path):
    reader = _reader(fail={'pods': ClusterReaderError('listing pods in shop', 'Unauthorized')})
    result, _ = _invoke(monkeypatch, cfg_path, ['top'], reader=reader)
    assert result.exit_code == 1
    assert 'Unauthorized' in result.output


def test_excel_requires_out(monkeypatch, cfg_path):
    result, _ = _invoke(monkeypatch, cfg_path, ['top', '--format', 'excel'])
    assert result.exit_code == 1
    assert 'requires --out' in result.output


def test_diagnostic_lists_dropped_lines(monkeypatch, cfg_path):
    reader = _reader(usage=['web-abc123-xyz app 250m 128Mi', 'garbled'])
    result, _ = _invoke(monkeypatch, cfg_path, ['top', '--format', 'plain', '--diagnostic'], reader=reader)
    assert result.exit_code == 0, result.output
    assert 'garbled' in result.output


def test_watch_reuses_limits_cache(monkeypatch, cfg_path):
    sleeps = []
    monkeypatch.setattr(run.time, 'sleep', lambda s: sleeps.append(s))
    result, reader = _invoke(monkeypatch, cfg_path, ['top', '--format', 'plain', '--watch', '5', '--count', '3'])
    assert result.exit_code == 0, result.output
    assert sleeps == [5.0, 5.0]
    assert reader.calls['usage'] == 3
    assert reader.calls['Deployment'] == 1


def test_list_formats():
    result = CliRunner().invoke(run.cli, ['top', '--list-formats'])
    assert result.exit_code == 0
    for name in ('table', 'plain', 'csv', 'json', 'excel'):
        assert f'  {name}' in result.output


def test_fields_and_help():
    runner = CliRunner()
    result = runner.invoke(run.cli, ['fields'])
    assert 'mem_pct (sortable)' in result.output
    assert 'container\n' in result.output
    result = runner.invoke(run.cli, ['help'])
    assert 'top' in result.output
    result = runner.invoke(run.cli, ['help', 'top'])
    assert '--cache-max-age' in result.output


def test_missing_config_file():
    result = CliRunner().invoke(run.cli, ['--config', '/nonexistent.yaml', 'top'])
    assert result.exit_code == 1
    assert 'Config file not found' in result.output
