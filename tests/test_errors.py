"""Tests for the error taxonomy and struct/exception conversions."""

from __future__ import annotations

import pytest

from klaw_effect import (
    Cancelled,
    CancelledError,
    Cause,
    EffectError,
    FailureError,
    InternalFailure,
    Stage,
    ValidationError,
    ValidationFailure,
)


class TestInternalFailure:
    """Tests for InternalFailure."""

    def test_timed_out(self) -> None:
        failure = InternalFailure.timed_out()
        assert failure.stage == Stage.RUN
        assert failure.cause == Cause.TIMEOUT
        assert failure.is_timeout
        assert failure.exception is None

    def test_invalid_result(self) -> None:
        failure = InternalFailure.invalid_result(Stage.BIND, 42)
        assert failure.cause == Cause.INVALID_RESULT
        assert failure.value == 42
        assert not failure.is_timeout

    def test_captured(self) -> None:
        exc = ValueError('boom')
        failure = InternalFailure.captured(Stage.LIFT_FUNC, exc)
        assert failure.stage == 'lift_func'
        assert failure.exception is exc

    def test_stage_values(self) -> None:
        assert {stage.value for stage in Stage} == {
            'run',
            'lift_func',
            'lift_result',
            'from_throwing',
            'map',
            'bind',
            'map_failure',
            'ap',
            'tap',
        }


class TestEffectError:
    """Tests for EffectError."""

    def test_from_struct_with_exception(self) -> None:
        exc = ValueError('boom')
        error = InternalFailure.captured(Stage.RUN, exc).to_exception()
        assert isinstance(error, EffectError)
        assert str(error) == 'EffectError at run: boom'
        assert error.__cause__ is exc

    def test_timeout_message(self) -> None:
        assert str(InternalFailure.timed_out().to_exception()) == 'EffectError at run: timeout'

    def test_invalid_result_message(self) -> None:
        error = InternalFailure.invalid_result(Stage.RUN, 'oops').to_exception()
        assert str(error) == "EffectError at run: invalid result 'oops'"

    def test_round_trip(self) -> None:
        failure = InternalFailure.invalid_result(Stage.MAP, [1])
        assert failure.to_exception().to_struct() == failure

    def test_raisable(self) -> None:
        with pytest.raises(EffectError) as info:
            raise InternalFailure.timed_out(Stage.LIFT_FUNC).to_exception()
        assert info.value.stage == 'lift_func'


class TestFailureError:
    def test_keeps_payload(self) -> None:
        error = FailureError({'code': 404})
        assert error.payload == {'code': 404}
        assert 'code' in str(error)


class TestCancelled:
    """Tests for Cancelled / CancelledError."""

    def test_round_trip(self) -> None:
        assert Cancelled('stop').to_exception().to_struct() == Cancelled('stop')

    def test_default_message(self) -> None:
        assert str(CancelledError()) == 'Operation cancelled'


class TestValidationFailure:
    """Tests for ValidationFailure / ValidationError."""

    def test_new_single(self) -> None:
        assert ValidationFailure.new('bad').errors == ['bad']

    def test_new_list(self) -> None:
        assert ValidationFailure.new(['a', 'b']).errors == ['a', 'b']

    def test_empty(self) -> None:
        assert ValidationFailure.empty().errors == []

    def test_merge_keeps_order(self) -> None:
        merged = ValidationFailure.new('a').merge(ValidationFailure.new(['b', 'c']))
        assert merged.errors == ['a', 'b', 'c']

    def test_exception(self) -> None:
        error = ValidationFailure.new(['a', 'b']).to_exception()
        assert isinstance(error, ValidationError)
        assert str(error) == 'a, b'
        assert error.to_struct() == ValidationFailure(['a', 'b'])
