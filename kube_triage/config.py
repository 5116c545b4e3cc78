from __future__ import annotations
import os
import yaml
from dataclasses import dataclass, field
from typing import List, Optional

from .triage.engine import (
    DEFAULT_CACHE_MAX_AGE_MINUTES, MIN_CACHE_MAX_AGE_MINUTES, MAX_CACHE_MAX_AGE_MINUTES,
)
from .triage.pipeline import SORT_FIELDS
from .triage.rules import Thresholds

DEFAULT_CONFIG_FILE = 'config/config.yaml'
READERS = ('api', 'kubectl')

@dataclass
class ClusterCredentials:
    host: str
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    verify_ssl: bool = True

@dataclass
class ClusterConfig:
    reader: str = 'api'
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    credentials: Optional[ClusterCredentials] = None
    kubectl_path: str = 'kubectl'
    request_timeout: float = 30

@dataclass
class TriageConfig:
    namespace: str = 'default'
    containers: List[str] = field(default_factory=list)
    sort: str = 'mem_pct'
    descending: bool = True
    include_totals: bool = False
    limits_cache_max_age_minutes: int = DEFAULT_CACHE_MAX_AGE_MINUTES
    parallel_fetch: bool = False

@dataclass
class LoggingConfig:
    level: str = 'INFO'
    format: str = 'json'

@dataclass
class AppConfig:
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    triage: TriageConfig = field(default_factory=TriageConfig)
    thresholds: Thresholds = field(default_factory=Thresholds)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def default_config() -> AppConfig:
    return AppConfig()


def _expand(path: Optional[str]) -> Optional[str]:
    return os.path.expanduser(path) if path else path


def validate_config(cfg: AppConfig) -> AppConfig:
    cluster = cfg.cluster
    if cluster.reader not in READERS:
        raise ValueError(f'cluster.reader must be one of {", ".join(READERS)}, got {cluster.reader}')
    if cluster.kubeconfig and cluster.credentials:
        raise ValueError('cluster cannot specify both kubeconfig and credentials')
    if cluster.credentials and not cluster.credentials.host:
        raise ValueError('cluster credentials must include host')
    if cluster.credentials and cluster.reader == 'kubectl':
        raise ValueError('credentials are only supported by the api reader')
    if cluster.request_timeout is not None and cluster.request_timeout <= 0:
        raise ValueError('cluster.request_timeout must be positive')
    tri = cfg.triage
    if not tri.namespace:
        raise ValueError('triage.namespace must not be empty')
    if tri.sort not in SORT_FIELDS:
        raise ValueError(f'triage.sort must be one of {", ".join(SORT_FIELDS)}, got {tri.sort}')
    if not (MIN_CACHE_MAX_AGE_MINUTES <= tri.limits_cache_max_age_minutes <= MAX_CACHE_MAX_AGE_MINUTES):
        raise ValueError(f'triage.limits_cache_max_age_minutes must be between '
                         f'{MIN_CACHE_MAX_AGE_MINUTES} and {MAX_CACHE_MAX_AGE_MINUTES}')
    cfg.thresholds.validate()
    return cfg


def load_config(path: str = DEFAULT_CONFIG_FILE) -> AppConfig:
    if not os.path.exists(path):
        raise FileNotFoundError(f'Config file not found: {path}')
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f'Config file {path} must contain a mapping')

    cluster_raw = raw.get('cluster', {}) or {}
    credentials = None
    creds_data = cluster_raw.get('credentials')
    if creds_data:
        credentials = ClusterCredentials(
            host=creds_data.get('host'),
            token=creds_data.get('token'),
            username=creds_data.get('username'),
            password=creds_data.get('password'),
            cert_file=creds_data.get('cert_file'),
            key_file=creds_data.get('key_file'),
            ca_file=creds_data.get('ca_file'),
            verify_ssl=creds_data.get('verify_ssl', True)
        )
    cluster = ClusterConfig(
        reader=cluster_raw.get('reader', 'api'),
        kubeconfig=_expand(cluster_raw.get('kubeconfig')),
        context=cluster_raw.get('context'),
        credentials=credentials,
        kubectl_path=cluster_raw.get('kubectl_path', 'kubectl'),
        request_timeout=cluster_raw.get('request_timeout', 30),
    )

    triage_raw = raw.get('triage', {}) or {}
    containers = triage_raw.get('containers', []) or []
    if isinstance(containers, str):
        containers = [containers]
    triage = TriageConfig(
        namespace=triage_raw.get('namespace', 'default'),
        containers=list(dict.fromkeys(containers)),
        sort=triage_raw.get('sort', 'mem_pct'),
        descending=triage_raw.get('descending', True),
        include_totals=triage_raw.get('include_totals', False),
        limits_cache_max_age_minutes=int(triage_raw.get('limits_cache_max_age_minutes', DEFAULT_CACHE_MAX_AGE_MINUTES)),
        parallel_fetch=triage_raw.get('parallel_fetch', False),
    )

    thresholds_raw = raw.get('thresholds', {}) or {}
    known = set(Thresholds.__dataclass_fields__)
    unknown = set(thresholds_raw) - known
    if unknown:
        raise ValueError(f'Unknown threshold(s): {", ".join(sorted(unknown))}')
    thresholds = Thresholds(**thresholds_raw)

    logging_raw = raw.get('logging', {}) or {}
    logging_cfg = LoggingConfig(
        level=logging_raw.get('level', 'INFO'),
        format=logging_raw.get('format', 'json')
    )
    return validate_config(AppConfig(
        cluster=cluster,
        triage=triage,
        thresholds=thresholds,
        logging=logging_cfg,
    ))
