from kube_triage.config import load_config, validate_config, default_config, ClusterCredentials
import tempfile
import textwrap
import os

import pytest


def _load(text):
    with tempfile.TemporaryDirectory() as td:
        path = os.path.join(td, 'cfg.yaml')
        with open(path, 'w') as f:
            f.write(textwrap.dedent(text))
        return load_config(path)


def test_full_config_parsing():
    cfg = _load("""
    cluster:
      reader: kubectl
      kubeconfig: ~/.kube/shop
      context: prod
      kubectl_path: /usr/local/bin/kubectl
      request_timeout: 15
    triage:
      namespace: shop
      containers: [app, 'side*', app]
      sort: cpu_pct
      descending: false
      include_totals: true
      limits_cache_max_age_minutes: 30
      parallel_fetch: true
    thresholds:
      mem_pct_warn: 60
      mem_mi_crit: 2048
    logging:
      level: DEBUG
      format: text
    """)
    assert cfg.cluster.reader == 'kubectl'
    assert cfg.cluster.kubeconfig == os.path.expanduser('~/.kube/shop')
    assert cfg.cluster.request_timeout == 15
    assert cfg.triage.namespace == 'shop'
    assert cfg.triage.containers == ['app', 'side*']  # duplicate removed
    assert cfg.triage.sort == 'cpu_pct'
    assert cfg.triage.descending is False
    assert cfg.triage.include_totals is True
    assert cfg.triage.limits_cache_max_age_minutes == 30
    assert cfg.thresholds.mem_pct_warn == 60
    assert cfg.thresholds.mem_pct_crit == 80
    assert cfg.thresholds.mem_mi_crit == 2048
    assert cfg.logging.level == 'DEBUG'
    assert cfg.logging.format == 'text'


def test_empty_file_gives_defaults():
    cfg = _load("")
    assert cfg.cluster.reader == 'api'
    assert cfg.triage.namespace == 'default'
    assert cfg.triage.limits_cache_max_age_minutes == 60
    assert cfg.thresholds == default_config().thresholds


def test_credentials_section():
    cfg = _load("""
    cluster:
      credentials:
        host: https://api.example:6443
        token: abc
        verify_ssl: false
    """)
    assert cfg.cluster.credentials.host == 'https://api.example:6443'
    assert cfg.cluster.credentials.verify_ssl is False


@pytest.mark.parametrize('text,fragment', [
    ("cluster:\n  reader: ssh\n", 'cluster.reader'),
    ("triage:\n  sort: colour\n", 'triage.sort'),
    ("triage:\n  limits_cache_max_age_minutes: 0\n", 'limits_cache_max_age_minutes'),
    ("triage:\n  limits_cache_max_age_minutes: 1441\n", 'limits_cache_max_age_minutes'),
    ("thresholds:\n  disk_warn: 3\n", 'Unknown threshold'),
    ("thresholds:\n  cpu_pct_warn: 99\n  cpu_pct_crit: 90\n", 'must not exceed'),
    ("cluster:\n  kubeconfig: /k\n  credentials:\n    host: https://x\n", 'both kubeconfig and credentials'),
    ("cluster:\n  reader: kubectl\n  credentials:\n    host: https://x\n", 'api reader'),
    ("- a\n- b\n", 'mapping'),
])
def test_invalid_configs(text, fragment):
    with pytest.raises(ValueError) as e:
        _load(text)
    assert fragment in str(e.value)


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config('/nonexistent/kube-triage.yaml')


def test_validate_rejects_credentials_without_host():
    cfg = default_config()
    cfg.cluster.credentials = ClusterCredentials(host='')
    with pytest.raises(ValueError):
        validate_config(cfg)
