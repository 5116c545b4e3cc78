"""Exception types raised by the triage engine and cluster readers."""
from __future__ import annotations
from typing import Optional


class TriageError(Exception):
    """Base class for failures that abort a triage invocation."""


class ClusterReaderError(TriageError):
    """The cluster could not be queried (unreachable, unauthenticated, kubectl failure)."""

    def __init__(self, what: str, reason: str):
        super().__init__(f'{what} failed: {reason}')
        self.what = what
        self.reason = reason


class ListingParseError(TriageError):
    """A pod or workload listing could not be decoded."""

    def __init__(self, what: str, reason: str, payload: Optional[str] = None):
        super().__init__(f'could not decode {what}: {reason}')
        self.what = what
        self.reason = reason
        self.payload = payload


def payload_excerpt(data, limit: int = 2000) -> str:
    if isinstance(data, bytes):
        data = data.decode('utf-8', errors='replace')
    text = data if isinstance(data, str) else repr(data)
    if len(text) > limit:
        return text[:limit] + '...'
    return text
