"""Result type: Ok[T] | Err[E], the value produced when an Effect is run."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, NoReturn, TypeIs

import msgspec

__all__ = ['Err', 'Ok', 'Result', 'collect', 'normalize']


class Ok[T](msgspec.Struct, frozen=True):
    """Success variant of Result containing a value of type T.

    Examples:
        >>> Ok(42).map(lambda x: x * 2)
        Ok(value=84)
        >>> Ok(42).to_tuple()
        ('ok', 42)
    """

    value: T

    def is_ok(self) -> TypeIs[Ok[T]]:
        """Return True since this is Ok."""
        return True

    def is_err(self) -> TypeIs[Err[object]]:
        """Return False since this is Ok."""
        return False

    def unwrap(self) -> T:
        """Return the contained Ok value."""
        return self.value

    def unwrap_or(self, default: T) -> T:  # noqa: ARG002
        """Return the contained Ok value, ignoring the default."""
        return self.value

    def map[U](self, f: Callable[[T], U]) -> Ok[U]:
        """Apply a function to the contained value."""
        return Ok(f(self.value))

    def map_err(self, _f: Callable[[Any], Any]) -> Ok[T]:
        """Return self unchanged since this is Ok."""
        return self

    def and_then[U, E](self, f: Callable[[T], Ok[U] | Err[E]]) -> Ok[U] | Err[E]:
        """Apply a Result-returning function to the contained value."""
        return f(self.value)

    def flip(self) -> Err[T]:
        """Swap channels: the Ok value becomes an Err payload."""
        return Err(self.value)

    def to_tuple(self) -> tuple[str, T]:
        """Convert to a plain ``('ok', value)`` pair."""
        return ('ok', self.value)


class Err[E](msgspec.Struct, frozen=True):
    """Error variant of Result containing an error payload of type E.

    Examples:
        >>> Err('boom').unwrap_or(0)
        0
        >>> Err('boom').flip()
        Ok(value='boom')
    """

    error: E

    def is_ok(self) -> TypeIs[Ok[object]]:
        """Return False since this is Err."""
        return False

    def is_err(self) -> TypeIs[Err[E]]:
        """Return True since this is Err."""
        return True

    def unwrap(self) -> NoReturn:
        """Raise since Err has no Ok value.

        Raises:
            RuntimeError: Always.
        """
        raise RuntimeError(f'Called unwrap on Err: {self.error!r}')

    def unwrap_or[T](self, default: T) -> T:
        """Return the default value since this is Err."""
        return default

    def map(self, _f: Callable[[Any], Any]) -> Err[E]:
        """Return self unchanged since this is Err."""
        return self

    def map_err[F](self, f: Callable[[E], F]) -> Err[F]:
        """Apply a function to the contained error."""
        return Err(f(self.error))

    def and_then(self, _f: Callable[[Any], Any]) -> Err[E]:
        """Return self unchanged since this is Err."""
        return self

    def flip(self) -> Ok[E]:
        """Swap channels: the Err payload becomes an Ok value."""
        return Ok(self.error)

    def to_tuple(self) -> tuple[str, E]:
        """Convert to a plain ``('error', reason)`` pair."""
        return ('error', self.error)


type Result[T, E = Any] = Ok[T] | Err[E]


def collect[T, E](results: Iterable[Ok[T] | Err[E]]) -> Ok[list[T]] | Err[E]:
    """Collect Results into a Result of list, stopping at the first Err.

    Examples:
        >>> collect([Ok(1), Ok(2)])
        Ok(value=[1, 2])
        >>> collect([Ok(1), Err('fail'), Err('later')])
        Err(error='fail')
    """
    values: list[T] = []
    for result in results:
        if isinstance(result, Err):
            return result
        values.append(result.value)
    return Ok(values)


def normalize(value: Any, on_absent: Callable[[], Any] | None = None) -> Ok[Any] | Err[Any]:
    """Normalize a step-function return value into a Result.

    The accepted shapes form a closed set:

    - ``Ok`` / ``Err``: returned as-is.
    - ``('ok', value)`` / ``('error', reason)``: converted to Ok / Err.
    - ``None``: the absent marker, becomes ``Err(on_absent())`` (``Err(None)``
      when no ``on_absent`` is given).
    - anything else: a raw success value, wrapped in Ok.

    Examples:
        >>> normalize(('error', 'bad'))
        Err(error='bad')
        >>> normalize(5)
        Ok(value=5)
    """
    if isinstance(value, Ok | Err):
        return value
    if isinstance(value, tuple) and len(value) == 2 and value[0] in ('ok', 'error'):
        tag, payload = value
        return Ok(payload) if tag == 'ok' else Err(payload)
    if value is None:
        return Err(on_absent() if on_absent is not None else None)
    return Ok(value)
