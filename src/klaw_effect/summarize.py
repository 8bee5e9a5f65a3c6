"""Bounded, telemetry-safe summaries of run results.

``summarize`` never dumps a value in full. Collections show at most their
first three elements (maps their first three keys in sorted order), long
strings and byte strings are reduced to their byte length, and recursion
stops at ``depth``.

Examples:
    >>> summarize(42)
    ('int', 42)
    >>> summarize([1, 2, 3, 4, 5])
    ('list', [('int', 1), ('int', 2), ('int', 3)])
    >>> summarize({'b': 'text', 'a': None})
    ('map', [('a', None), ('b', ('str', 'text'))])
    >>> summarize(Ok(42))
    ('ok', ('int', 42))
"""

from __future__ import annotations

from typing import Any

import msgspec

from klaw_effect.errors import InternalFailure, ValidationFailure
from klaw_effect.result import Err, Ok
from klaw_effect.typeclass import typeclass

__all__ = ['DEFAULT_DEPTH', 'MAX_ITEMS', 'MAX_TEXT', 'summarize']

DEFAULT_DEPTH = 3
MAX_ITEMS = 3
MAX_TEXT = 32

_TRUNCATED = '...'


@typeclass
def summarize(value: Any, depth: int = DEFAULT_DEPTH) -> Any:
    """Summarize a value for telemetry. Unregistered types become ``'unknown'``."""
    if callable(value):
        return 'function'
    return 'unknown'


@summarize.instance(type(None))
def _summarize_none(value: None, depth: int = DEFAULT_DEPTH) -> None:
    return None


@summarize.instance(bool)
def _summarize_bool(value: bool, depth: int = DEFAULT_DEPTH) -> tuple[str, bool]:
    return ('bool', value)


@summarize.instance(int)
def _summarize_int(value: int, depth: int = DEFAULT_DEPTH) -> tuple[str, int]:
    return ('int', value)


@summarize.instance(float)
def _summarize_float(value: float, depth: int = DEFAULT_DEPTH) -> tuple[str, float]:
    return ('float', value)


@summarize.instance(str)
def _summarize_str(value: str, depth: int = DEFAULT_DEPTH) -> tuple[str, str | int]:
    if len(value) <= MAX_TEXT:
        return ('str', value)
    return ('str', len(value.encode('utf-8')))


@summarize.instance(bytes, bytearray, memoryview)
def _summarize_bytes(value: bytes, depth: int = DEFAULT_DEPTH) -> tuple[str, int]:
    return ('bytes', len(value))


@summarize.instance(list, tuple, set, frozenset)
def _summarize_sequence(value: Any, depth: int = DEFAULT_DEPTH) -> Any:
    kind = 'tuple' if isinstance(value, tuple) else 'list'
    if not value:
        return (kind, 'empty')
    if depth <= 0:
        return (kind, _TRUNCATED)
    head = list(value)[:MAX_ITEMS] if isinstance(value, set | frozenset) else value[:MAX_ITEMS]
    return (kind, [summarize(item, depth - 1) for item in head])


@summarize.instance(dict)
def _summarize_dict(value: dict[Any, Any], depth: int = DEFAULT_DEPTH) -> Any:
    if not value:
        return ('map', 'empty')
    if depth <= 0:
        return ('map', _TRUNCATED)
    keys = sorted(value, key=repr)[:MAX_ITEMS]
    return ('map', [(summarize(key, 0), summarize(value[key], depth - 1)) for key in keys])


@summarize.instance(Ok)
def _summarize_ok(value: Ok[Any], depth: int = DEFAULT_DEPTH) -> tuple[str, Any]:
    return ('ok', summarize(value.value, depth))


@summarize.instance(Err)
def _summarize_err(value: Err[Any], depth: int = DEFAULT_DEPTH) -> tuple[str, Any]:
    return ('error', summarize(value.error, depth))


@summarize.instance(BaseException)
def _summarize_exception(value: BaseException, depth: int = DEFAULT_DEPTH) -> tuple[str, tuple[str, str]]:
    message = str(value)
    if len(message) > MAX_TEXT:
        message = message[:MAX_TEXT] + _TRUNCATED
    return ('exception', (type(value).__name__, message))


@summarize.instance(InternalFailure)
def _summarize_internal(value: InternalFailure, depth: int = DEFAULT_DEPTH) -> tuple[str, dict[str, Any]]:
    return ('internal_failure', {'stage': str(value.stage), 'cause': summarize(value.cause, depth - 1)})


@summarize.instance(ValidationFailure)
def _summarize_validation(value: ValidationFailure, depth: int = DEFAULT_DEPTH) -> tuple[str, Any]:
    return ('validation_failure', summarize(value.errors, depth))


@summarize.instance(msgspec.Struct)
def _summarize_struct(value: msgspec.Struct, depth: int = DEFAULT_DEPTH) -> tuple[str, str]:
    return ('struct', type(value).__name__)


