"""Tests for the aggregation protocol."""

from __future__ import annotations

from typing import Any

import pytest

from klaw_effect import DEFAULT_AGGREGATOR, Aggregator, ValidationFailure, aggregate
from klaw_effect.aggregate import combine, wrap


class TestDefaultAggregation:
    """Tests for the wrap/combine typeclasses."""

    def test_wrap_scalar(self) -> None:
        assert wrap('bad') == ['bad']

    def test_wrap_list_as_is(self) -> None:
        assert wrap(['a', 'b']) == ['a', 'b']

    def test_combine_concatenates(self) -> None:
        assert combine(['a'], ['b', 'c']) == ['a', 'b', 'c']

    def test_aggregate_in_order(self) -> None:
        assert aggregate(['x', 'y', 'z']) == ['x', 'y', 'z']

    def test_aggregate_flattens_list_payloads(self) -> None:
        assert aggregate([['a', 'b'], 'c']) == ['a', 'b', 'c']

    def test_aggregate_single(self) -> None:
        assert aggregate(['only']) == ['only']

    def test_aggregate_empty_raises(self) -> None:
        with pytest.raises(ValueError, match='at least one error'):
            aggregate([])

    def test_default_is_aggregator(self) -> None:
        assert isinstance(DEFAULT_AGGREGATOR, Aggregator)


class TestValidationFailureAggregation:
    """ValidationFailure payloads merge into one ValidationFailure."""

    def test_merge(self) -> None:
        result = aggregate([ValidationFailure.new('a'), ValidationFailure.new(['b', 'c'])])
        assert result == ValidationFailure(['a', 'b', 'c'])

    def test_mixed_payloads(self) -> None:
        result = aggregate([ValidationFailure.new('a'), 'b'])
        assert result == ValidationFailure(['a', 'b'])


class CountingAggregator:
    """Aggregates failures into a count."""

    def wrap(self, error: Any) -> int:
        return 1

    def combine(self, accumulator: int, wrapped: int) -> int:
        return accumulator + wrapped


class TestCustomAggregator:
    def test_custom_aggregator(self) -> None:
        assert isinstance(CountingAggregator(), Aggregator)
        assert aggregate(['a', 'b', 'c'], CountingAggregator()) == 3
