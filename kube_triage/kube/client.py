from __future__ import annotations
from typing import Dict, Any, List, Tuple, Iterable, Optional
from kubernetes import config as k8s_config, client as k8s_client
from kubernetes.client.exceptions import ApiException
import urllib3, json
from ..errors import ClusterReaderError, ListingParseError, payload_excerpt
from ..util import logging as log

def load_kubeconfig(kubeconfig: str | None = None, context: str | None = None) -> k8s_client.ApiClient:
    try:
        k8s_config.load_kube_config(config_file=kubeconfig, context=context)
    except (k8s_config.ConfigException, OSError) as e:
        raise ClusterReaderError('loading kubeconfig', str(e))
    return k8s_client.ApiClient()

def configure_from_credentials(credentials) -> k8s_client.Configuration:
    cfg = k8s_client.Configuration()
    cfg.host = credentials.host
    if credentials.token:
        cfg.api_key = {"authorization": credentials.token}
        cfg.api_key_prefix = {"authorization": "Bearer"}
        log.debug('using bearer token', host=credentials.host)
    elif credentials.username and credentials.password:
        import base64
        basic_auth = base64.b64encode(f"{credentials.username}:{credentials.password}".encode()).decode()
        cfg.api_key = {"authorization": f"Basic {basic_auth}"}
    if credentials.cert_file: cfg.cert_file = credentials.cert_file
    if credentials.key_file: cfg.key_file = credentials.key_file
    if credentials.ca_file: cfg.ssl_ca_cert = credentials.ca_file
    cfg.verify_ssl = credentials.verify_ssl
    if not credentials.verify_ssl:
        urllib3.disable_warnings()
        log.warn('ssl_verification_disabled', host=credentials.host)
    return cfg

# kind -> (api_version, plural)
KIND_MAP: Dict[str, Tuple[str, str]] = {
    'Pod': ('v1', 'pods'),
    'Deployment': ('apps/v1', 'deployments'),
    'StatefulSet': ('apps/v1', 'statefulsets'),
    'DaemonSet': ('apps/v1', 'daemonsets'),
    'PodMetrics': ('metrics.k8s.io/v1beta1', 'pods'),
}

def _split_api_version(api_version: str) -> Tuple[str | None, str]:
    if '/' in api_version:
        group, version = api_version.split('/', 1)
        return group, version
    return None, api_version

def namespaced_path(api_version: str, plural: str, namespace: str) -> str:
    group, version = _split_api_version(api_version)
    if group is None:
        return f"/api/{version}/namespaces/{namespace}/{plural}"
    return f"/apis/{group}/{version}/namespaces/{namespace}/{plural}"

def list_namespaced_resources(api_client: k8s_client.ApiClient, api_version: str, plural: str, namespace: str,
                              request_timeout: Optional[float] = None) -> Iterable[Dict[str, Any]]:
    """List resources of one kind in a namespace, following 'continue' tokens.

    Any API or decoding failure raises; no retries and no partial listings.
    """
    base = namespaced_path(api_version, plural, namespace)
    what = f'listing {plural} ({api_version}) in {namespace}'
    cont = None
    while True:
        query = f"?continue={cont}" if cont else ''
        url = base + query
        try:
            resp = api_client.call_api(url, 'GET', response_type='object', _preload_content=False,
                                       auth_settings=['BearerToken'], _request_timeout=request_timeout)
            raw = resp[0].data
        except ApiException as e:
            status = getattr(e, 'status', None)
            log.error('failed listing namespaced resources', api_version=api_version, plural=plural, namespace=namespace, status=status, reason=str(getattr(e, 'reason', e)))
            raise ClusterReaderError(what, f'API returned {status}: {getattr(e, "reason", e)}')
        except (urllib3.exceptions.HTTPError, OSError) as e:
            log.error('cluster unreachable', api_version=api_version, plural=plural, namespace=namespace, error=str(e))
            raise ClusterReaderError(what, str(e))
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise ListingParseError(what, str(e), payload_excerpt(raw))
        items = payload.get('items') if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise ListingParseError(what, 'response has no items list', payload_excerpt(raw))
        for item in items:
            yield item
        cont = (payload.get('metadata') or {}).get('continue')
        if not cont:
            break

def list_kind(api_client: k8s_client.ApiClient, kind: str, namespace: str, request_timeout: Optional[float] = None) -> List[Dict[str, Any]]:
    if kind not in KIND_MAP:
        raise ValueError(f'Unsupported kind: {kind}. Available: {", ".join(KIND_MAP)}')
    api_version, plural = KIND_MAP[kind]
    log.info('listing kind in namespace', kind=kind, namespace=namespace, api_version=api_version)
    return list(list_namespaced_resources(api_client, api_version, plural, namespace, request_timeout))
