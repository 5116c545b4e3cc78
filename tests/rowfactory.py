from kube_triage.triage.quantity import percentage
from kube_triage.triage.rows import Row


def make_row(pod='p-1', container='app', cpu_m=100, cpu_limit_m=None, mem_mi=100, mem_limit_mi=None,
             restarts=0, owner_kind='Deployment', owner_name='p', namespace='ns', is_total=False):
    return Row(
        namespace=namespace, owner_kind=owner_kind, owner_name=owner_name, pod=pod, container=container,
        restarts=restarts, pod_age='1h0m', container_age='1h0m',
        cpu_m=cpu_m, cpu_limit_m=cpu_limit_m, cpu_pct=percentage(cpu_m, cpu_limit_m),
        mem_mi=mem_mi, mem_limit_mi=mem_limit_mi, mem_pct=percentage(mem_mi, mem_limit_mi),
        is_total=is_total,
    )
