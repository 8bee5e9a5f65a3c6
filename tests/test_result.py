"""Tests for Ok/Err, collect and normalize."""

from __future__ import annotations

import pytest
from hypothesis import given
from strategies import integers, payloads

from klaw_effect import Err, Ok, collect, normalize


class TestOk:
    """Tests for the Ok variant."""

    def test_predicates(self) -> None:
        assert Ok(1).is_ok()
        assert not Ok(1).is_err()

    def test_unwrap(self) -> None:
        assert Ok(42).unwrap() == 42
        assert Ok(42).unwrap_or(0) == 42

    def test_map_and_then(self) -> None:
        assert Ok(2).map(lambda x: x * 3) == Ok(6)
        assert Ok(2).and_then(lambda x: Err(f'bad {x}')) == Err('bad 2')
        assert Ok(2).map_err(str.upper) == Ok(2)

    def test_flip_and_tuple(self) -> None:
        assert Ok('x').flip() == Err('x')
        assert Ok('x').to_tuple() == ('ok', 'x')

    @given(integers)
    def test_flip_is_involutive(self, value: int) -> None:
        """flip() twice returns the original result."""
        assert Ok(value).flip().flip() == Ok(value)


class TestErr:
    """Tests for the Err variant."""

    def test_predicates(self) -> None:
        assert Err('e').is_err()
        assert not Err('e').is_ok()

    def test_unwrap_raises(self) -> None:
        with pytest.raises(RuntimeError, match='Called unwrap on Err'):
            Err('boom').unwrap()

    def test_unwrap_or(self) -> None:
        assert Err('boom').unwrap_or(7) == 7

    def test_map_passes_through(self) -> None:
        assert Err('e').map(lambda x: x + 1) == Err('e')
        assert Err('e').and_then(lambda x: Ok(x)) == Err('e')
        assert Err('e').map_err(str.upper) == Err('E')

    def test_flip_and_tuple(self) -> None:
        assert Err('x').flip() == Ok('x')
        assert Err('x').to_tuple() == ('error', 'x')


class TestCollect:
    """Tests for collect()."""

    def test_all_ok(self) -> None:
        assert collect([Ok(1), Ok(2), Ok(3)]) == Ok([1, 2, 3])

    def test_first_err_wins(self) -> None:
        assert collect([Ok(1), Err('a'), Err('b')]) == Err('a')

    def test_empty(self) -> None:
        assert collect([]) == Ok([])


class TestNormalize:
    """Tests for normalize() over the closed set of step-function returns."""

    def test_results_pass_through(self) -> None:
        assert normalize(Ok(1)) == Ok(1)
        assert normalize(Err('e')) == Err('e')

    def test_tuples(self) -> None:
        assert normalize(('ok', 5)) == Ok(5)
        assert normalize(('error', 'bad')) == Err('bad')

    def test_absent(self) -> None:
        assert normalize(None) == Err(None)
        assert normalize(None, lambda: 'missing') == Err('missing')

    def test_other_tuples_are_raw_values(self) -> None:
        """Only two-element tuples tagged 'ok'/'error' are treated as results."""
        assert normalize(('ok', 1, 2)) == Ok(('ok', 1, 2))
        assert normalize(('maybe', 1)) == Ok(('maybe', 1))

    @given(payloads)
    def test_raw_values_become_ok(self, value: object) -> None:
        assert normalize(value) == Ok(value)
