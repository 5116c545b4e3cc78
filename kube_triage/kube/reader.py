"""Cluster readers: the three feeds the triage engine consumes.

Every reader exposes ``list_pods``, ``list_workload`` and
``get_container_usage``. A fetch either returns completely or raises a
TriageError subclass; nothing is retried.
"""
from __future__ import annotations
import json
import subprocess
from typing import Any, Dict, List, Optional

from kubernetes import client as k8s_client

from ..errors import ClusterReaderError, ListingParseError, payload_excerpt
from ..util import logging as log
from .client import list_kind, load_kubeconfig, configure_from_credentials

WORKLOAD_PLURALS = {
    'Deployment': 'deployments',
    'StatefulSet': 'statefulsets',
    'DaemonSet': 'daemonsets',
}


def _check_workload_kind(kind: str) -> None:
    if kind not in WORKLOAD_PLURALS:
        raise ValueError(f'Unsupported workload kind: {kind}. Available: {", ".join(WORKLOAD_PLURALS)}')


def usage_lines_from_pod_metrics(items: List[Dict[str, Any]]) -> List[str]:
    """Render PodMetrics objects as 'pod container cpu mem' lines (kubectl top shape)."""
    lines = []
    for item in items:
        pod = (item.get('metadata') or {}).get('name') or ''
        for c in item.get('containers') or []:
            usage = c.get('usage') or {}
            fields = [pod, c.get('name') or '', usage.get('cpu') or '', usage.get('memory') or '']
            lines.append(' '.join(f for f in fields if f))
    return lines


class ApiClusterReader:
    """Reads through the Kubernetes API (core, apps and metrics.k8s.io groups)."""

    def __init__(self, api_client, request_timeout: Optional[float] = None):
        self.api_client = api_client
        self.request_timeout = request_timeout

    def list_pods(self, namespace: str) -> List[Dict[str, Any]]:
        return list_kind(self.api_client, 'Pod', namespace, self.request_timeout)

    def list_workload(self, kind: str, namespace: str) -> List[Dict[str, Any]]:
        _check_workload_kind(kind)
        return list_kind(self.api_client, kind, namespace, self.request_timeout)

    def get_container_usage(self, namespace: str) -> List[str]:
        items = list_kind(self.api_client, 'PodMetrics', namespace, self.request_timeout)
        return usage_lines_from_pod_metrics(items)


class KubectlClusterReader:
    """Reads by shelling out to kubectl (``get -o json`` and ``top pod --containers``)."""

    def __init__(self, kubectl: str = 'kubectl', kubeconfig: Optional[str] = None,
                 context: Optional[str] = None, timeout: Optional[float] = 30):
        self.kubectl = kubectl
        self.kubeconfig = kubeconfig
        self.context = context
        self.timeout = timeout

    def _base_cmd(self) -> List[str]:
        cmd = [self.kubectl]
        if self.kubeconfig:
            cmd += ['--kubeconfig', self.kubeconfig]
        if self.context:
            cmd += ['--context', self.context]
        return cmd

    def _run(self, args: List[str], what: str) -> str:
        cmd = self._base_cmd() + args
        log.debug('running kubectl', cmd=' '.join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=self.timeout)
        except FileNotFoundError:
            log.error('kubectl not found', kubectl=self.kubectl)
            raise ClusterReaderError(what, f'{self.kubectl} not found on PATH')
        except subprocess.TimeoutExpired:
            log.error('kubectl timed out', what=what, timeout=self.timeout)
            raise ClusterReaderError(what, f'timed out after {self.timeout}s')
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or '').strip()
            log.error('kubectl failed', what=what, returncode=e.returncode, stderr=stderr)
            raise ClusterReaderError(what, stderr or f'exit status {e.returncode}')
        return result.stdout

    def _get_items(self, plural: str, namespace: str) -> List[Dict[str, Any]]:
        what = f'listing {plural} in {namespace}'
        log.info('listing kind in namespace', kind=plural, namespace=namespace, via='kubectl')
        out = self._run(['get', plural, '-n', namespace, '-o', 'json'], what)
        try:
            payload = json.loads(out)
        except ValueError as e:
            raise ListingParseError(what, str(e), payload_excerpt(out))
        items = payload.get('items') if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise ListingParseError(what, 'output has no items list', payload_excerpt(out))
        return items

    def list_pods(self, namespace: str) -> List[Dict[str, Any]]:
        return self._get_items('pods', namespace)

    def list_workload(self, kind: str, namespace: str) -> List[Dict[str, Any]]:
        _check_workload_kind(kind)
        return self._get_items(WORKLOAD_PLURALS[kind], namespace)

    def get_container_usage(self, namespace: str) -> List[str]:
        what = f'reading container usage in {namespace}'
        out = self._run(['top', 'pod', '-n', namespace, '--containers', '--no-headers'], what)
        return out.splitlines()


def build_reader(cluster_cfg):
    """Create the reader configured for the cluster section of the config."""
    if cluster_cfg.reader == 'kubectl':
        return KubectlClusterReader(
            kubectl=cluster_cfg.kubectl_path,
            kubeconfig=cluster_cfg.kubeconfig,
            context=cluster_cfg.context,
            timeout=cluster_cfg.request_timeout,
        )
    if cluster_cfg.credentials:
        api_client = k8s_client.ApiClient(configuration=configure_from_credentials(cluster_cfg.credentials))
    else:
        api_client = load_kubeconfig(cluster_cfg.kubeconfig, cluster_cfg.context)
    return ApiClusterReader(api_client, request_timeout=cluster_cfg.request_timeout)
