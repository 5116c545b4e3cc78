"""Textual row filters for the CLI.

Each expression is ``FIELD OP VALUE`` (e.g. ``mem_pct >= 90``,
``container ~ 'api*'``, ``cpu_limit_m == none``). Several expressions are
ANDed. The engine itself only sees the compiled callable.
"""
from __future__ import annotations
import fnmatch
import operator
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

from .rows import Row, ROW_FIELDS

_NUMERIC_FIELDS = {'restarts', 'cpu_m', 'cpu_limit_m', 'cpu_pct', 'mem_mi', 'mem_limit_mi', 'mem_pct'}

_OPS: Dict[str, Callable[[Any, Any], bool]] = {
    '==': operator.eq,
    '!=': operator.ne,
    '>=': operator.ge,
    '<=': operator.le,
    '>': operator.gt,
    '<': operator.lt,
    '~': lambda value, pattern: fnmatch.fnmatchcase(str(value), pattern),
}

_EXPR_RE = re.compile(r'^\s*([A-Za-z_][A-Za-z0-9_]*)\s*(==|!=|>=|<=|>|<|~|=)\s*(.*?)\s*$')

_ALIASES = {'owner': 'owner_name', 'kind': 'owner_kind', 'cpu': 'cpu_m', 'mem': 'mem_mi', 'memory': 'mem_mi'}


class PredicateError(ValueError):
    pass


def _normalize(name: str) -> str:
    return name.replace('_', '').lower()


_FIELD_LOOKUP = {_normalize(f): f for f in ROW_FIELDS}
_FIELD_LOOKUP.update({_normalize(k): v for k, v in _ALIASES.items()})


def resolve_field(name: str) -> str:
    field = _FIELD_LOOKUP.get(_normalize(name))
    if field is None:
        raise PredicateError(f'Unknown field: {name}. Available: {", ".join(ROW_FIELDS)}')
    return field


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ('"', "'"):
        return text[1:-1]
    return text


def compile_expression(expression: str) -> Callable[[Row], bool]:
    m = _EXPR_RE.match(expression or '')
    if not m:
        raise PredicateError(f'Cannot parse filter expression: {expression!r} (expected FIELD OP VALUE)')
    field = resolve_field(m.group(1))
    op_text = '==' if m.group(2) == '=' else m.group(2)
    raw_value = _unquote(m.group(3))
    if raw_value == '':
        raise PredicateError(f'Missing value in filter expression: {expression!r}')

    if raw_value.lower() in ('none', 'null', 'unset'):
        if op_text not in ('==', '!='):
            raise PredicateError(f'Only == and != can compare against none: {expression!r}')
        want_unset = op_text == '=='
        return lambda row: (getattr(row, field) is None) == want_unset

    compare = _OPS[op_text]
    value: Any = raw_value
    if op_text != '~' and field in _NUMERIC_FIELDS:
        try:
            value = float(raw_value)
        except ValueError:
            raise PredicateError(f'Field {field} needs a numeric value: {expression!r}')

    def predicate(row: Row) -> bool:
        current = getattr(row, field)
        if current is None:
            return False
        return bool(compare(current, value))

    return predicate


def compile_predicate(expressions: Optional[Sequence[str]]) -> Optional[Callable[[Row], bool]]:
    """AND together compiled expressions; None when nothing was given."""
    if not expressions:
        return None
    compiled: List[Callable[[Row], bool]] = [compile_expression(e) for e in expressions]
    return lambda row: all(p(row) for p in compiled)
