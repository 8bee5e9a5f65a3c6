"""Aggregation protocol: how accumulating composition merges failures.

An aggregator has two operations: ``wrap(e)`` lifts one failure payload into
the aggregate type and ``combine(acc, wrapped)`` appends a wrapped payload to
an accumulator. The default aggregator dispatches both through typeclasses,
so a payload type can define its own aggregate by registering instances::

    >>> DEFAULT_AGGREGATOR.wrap('bad')
    ['bad']
    >>> DEFAULT_AGGREGATOR.combine(['a'], ['b'])
    ['a', 'b']
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from klaw_effect.errors import ValidationFailure
from klaw_effect.typeclass import typeclass

__all__ = [
    'DEFAULT_AGGREGATOR',
    'Aggregator',
    'TypeclassAggregator',
    'aggregate',
    'combine',
    'wrap',
]


@runtime_checkable
class Aggregator(Protocol):
    """Pluggable failure aggregation used by ``traverse_accumulate``."""

    def wrap(self, error: Any) -> Any: ...

    def combine(self, accumulator: Any, wrapped: Any) -> Any: ...


@typeclass
def wrap(error: Any) -> Any:
    """Lift a failure payload into an aggregate: lists as-is, anything else as a singleton."""
    if isinstance(error, list):
        return error
    return [error]


@typeclass
def combine(accumulator: Any, wrapped: Any) -> Any:
    """Concatenate two aggregates into a list."""
    return [*wrap(accumulator), *wrap(wrapped)]


@wrap.instance(ValidationFailure)
def _wrap_validation(error: ValidationFailure) -> ValidationFailure:
    return error


@combine.instance(ValidationFailure)
def _combine_validation(accumulator: ValidationFailure, wrapped: Any) -> ValidationFailure:
    if isinstance(wrapped, ValidationFailure):
        return accumulator.merge(wrapped)
    return accumulator.merge(ValidationFailure.new(wrap(wrapped)))


class TypeclassAggregator:
    """Aggregator delegating to the ``wrap`` / ``combine`` typeclasses."""

    __slots__ = ()

    def wrap(self, error: Any) -> Any:
        return wrap(error)

    def combine(self, accumulator: Any, wrapped: Any) -> Any:
        return combine(accumulator, wrapped)


DEFAULT_AGGREGATOR: Aggregator = TypeclassAggregator()


def aggregate(errors: Sequence[Any], aggregator: Aggregator | None = None) -> Any:
    """Merge failure payloads left to right: wrap each, then combine pairwise.

    Raises:
        ValueError: If ``errors`` is empty.
    """
    if not errors:
        msg = 'aggregate() requires at least one error'
        raise ValueError(msg)
    aggregator = aggregator if aggregator is not None else DEFAULT_AGGREGATOR
    accumulator = aggregator.wrap(errors[0])
    for error in errors[1:]:
        accumulator = aggregator.combine(accumulator, aggregator.wrap(error))
    return accumulator
