"""Error types: dual struct+exception for Result payloads and raise-based code.

Domain failures are whatever payload the caller puts in ``Err``; the engine
never rewrites them. The types here are the ones the engine itself produces
(``InternalFailure``), raises (``EffectError``, ``FailureError``,
``CancelledError``) or offers for validation pipelines (``ValidationFailure``).
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import msgspec

__all__ = [
    'Cancelled',
    'CancelledError',
    'Cause',
    'EffectError',
    'FailureError',
    'InternalFailure',
    'Stage',
    'ValidationError',
    'ValidationFailure',
]


class Stage(StrEnum):
    """Where an InternalFailure was synthesized."""

    RUN = 'run'
    LIFT_FUNC = 'lift_func'
    LIFT_RESULT = 'lift_result'
    FROM_THROWING = 'from_throwing'
    MAP = 'map'
    BIND = 'bind'
    MAP_FAILURE = 'map_failure'
    AP = 'ap'
    TAP = 'tap'


class Cause(StrEnum):
    """Non-exception causes of an InternalFailure."""

    TIMEOUT = 'timeout'
    INVALID_RESULT = 'invalid_result'


# --- Internal failures ---


class InternalFailure(msgspec.Struct, frozen=True):
    """Engine-level failure - struct variant for Result[T, InternalFailure].

    Attributes:
        stage: The stage that synthesized the failure.
        cause: ``Cause.TIMEOUT``, ``Cause.INVALID_RESULT`` or the captured exception.
        value: The offending value for ``Cause.INVALID_RESULT``.
    """

    stage: str
    cause: Any
    value: Any = None

    @classmethod
    def timed_out(cls, stage: str = Stage.RUN) -> InternalFailure:
        return cls(stage, Cause.TIMEOUT)

    @classmethod
    def invalid_result(cls, stage: str, value: Any) -> InternalFailure:
        return cls(stage, Cause.INVALID_RESULT, value)

    @classmethod
    def captured(cls, stage: str, exc: BaseException) -> InternalFailure:
        return cls(stage, exc)

    @property
    def is_timeout(self) -> bool:
        return self.cause == Cause.TIMEOUT

    @property
    def exception(self) -> BaseException | None:
        """The captured exception, if the cause is one."""
        return self.cause if isinstance(self.cause, BaseException) else None

    def to_exception(self) -> EffectError:
        """Convert to exception for raise-based code."""
        return EffectError(self.stage, self.cause, self.value)


class EffectError(Exception):
    """Engine-level failure - exception variant."""

    def __init__(self, stage: str, cause: Any, value: Any = None) -> None:
        self.stage = stage
        self.cause = cause
        self.value = value
        if isinstance(cause, BaseException):
            detail = str(cause) or type(cause).__name__
        elif cause == Cause.INVALID_RESULT:
            detail = f'invalid result {value!r}'
        else:
            detail = str(cause)
        super().__init__(f'EffectError at {stage}: {detail}')
        if isinstance(cause, BaseException):
            self.__cause__ = cause

    def to_struct(self) -> InternalFailure:
        """Convert to struct for Result-based code."""
        return InternalFailure(self.stage, self.cause, self.value)


class FailureError(Exception):
    """Raised by ``to_try_or_raise`` for a failure payload that is not an exception."""

    def __init__(self, payload: Any) -> None:
        self.payload = payload
        super().__init__(f'Effect failed: {payload!r}')


# --- Cancellation ---


class Cancelled(msgspec.Struct, frozen=True, gc=False):
    """Unit was cancelled - struct variant for Result[T, Cancelled]."""

    reason: str | None = None

    def to_exception(self) -> CancelledError:
        """Convert to exception for raise-based code."""
        return CancelledError(self.reason)


class CancelledError(Exception):
    """Unit was cancelled - exception variant."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or 'Operation cancelled')

    def to_struct(self) -> Cancelled:
        """Convert to struct for Result-based code."""
        return Cancelled(self.reason)


# --- Validation ---


class ValidationFailure(msgspec.Struct, frozen=True):
    """One or more validation messages - struct variant for Result[T, ValidationFailure].

    Accumulating composition merges ValidationFailure payloads into a single
    ValidationFailure instead of a list.

    Examples:
        >>> ValidationFailure.new('must be positive')
        ValidationFailure(errors=['must be positive'])
        >>> ValidationFailure.new('a').merge(ValidationFailure.new(['b', 'c'])).errors
        ['a', 'b', 'c']
    """

    errors: list[Any] = msgspec.field(default_factory=list)

    @classmethod
    def new(cls, errors: Any) -> ValidationFailure:
        """Create from a single message or a list of messages."""
        return cls(list(errors) if isinstance(errors, list | tuple) else [errors])

    @classmethod
    def empty(cls) -> ValidationFailure:
        return cls([])

    def merge(self, other: ValidationFailure) -> ValidationFailure:
        """Concatenate two failures, keeping order."""
        return ValidationFailure([*self.errors, *other.errors])

    def to_exception(self) -> ValidationError:
        """Convert to exception for raise-based code."""
        return ValidationError(self.errors)


class ValidationError(Exception):
    """One or more validation messages - exception variant."""

    def __init__(self, errors: Any) -> None:
        self.errors = list(errors) if isinstance(errors, list | tuple) else [errors]
        super().__init__(', '.join(str(error) for error in self.errors))

    def to_struct(self) -> ValidationFailure:
        """Convert to struct for Result-based code."""
        return ValidationFailure(list(self.errors))
