from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class OwnerRef:
    kind: str = ''
    name: str = ''

    def __bool__(self) -> bool:
        return bool(self.kind or self.name)


EMPTY_OWNER = OwnerRef()


def deployment_name_from_replicaset(rs_name: str) -> str:
    """Strip the trailing '-<hash>' segment a Deployment controller appends to its ReplicaSets.

    This is a naming-convention heuristic: a ReplicaSet that was not created
    by a Deployment (or was renamed) resolves to a name that may not exist.
    """
    if '-' not in rs_name:
        return rs_name
    return rs_name.rsplit('-', 1)[0]


def resolve_owner(owner_references: Optional[List[Dict[str, Any]]]) -> OwnerRef:
    """Map a pod's ownerReferences to the workload that owns it.

    Only the first reference is considered. A ReplicaSet owner is reported as
    its Deployment; pods without an owner get an empty OwnerRef.
    """
    if not owner_references:
        return EMPTY_OWNER
    first = owner_references[0] or {}
    kind = first.get('kind') or ''
    name = first.get('name') or ''
    if kind == 'ReplicaSet':
        return OwnerRef('Deployment', deployment_name_from_replicaset(name))
    return OwnerRef(kind, name)
