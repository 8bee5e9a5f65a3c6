"""Lifting adapters between effects and plain Python values, callables and exceptions."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, NoReturn

import anyio

from klaw_effect.context import Context
from klaw_effect.effect import Effect, SuccessEffect, failure, make_context, success
from klaw_effect.engine import Env, run
from klaw_effect.errors import FailureError, InternalFailure, Stage
from klaw_effect.result import Err, Ok, Result, normalize

__all__ = [
    'from_result',
    'from_throwing',
    'from_tuple',
    'lift_func',
    'lift_optional',
    'lift_predicate',
    'lift_result',
    'to_result',
    'to_try_or_raise',
    'to_tuple',
]

type ContextLike = Context | dict[str, Any] | None


async def _call(fn: Callable[[], Any]) -> Any:
    """Await an async callable, or run a sync one in a worker thread."""
    if inspect.iscoroutinefunction(fn):
        return await fn()
    outcome = await anyio.to_thread.run_sync(fn, abandon_on_cancel=True)
    if inspect.isawaitable(outcome):
        return await outcome
    return outcome


def lift_func[T](
    fn: Callable[[], T] | Callable[[], Awaitable[T]], context: ContextLike = None, **fields: Any
) -> Effect[T, Any]:
    """Wrap a zero-argument callable as a success-shaped effect.

    Sync callables run in a worker thread so they do not block the event
    loop; async callables are awaited. An exception becomes
    ``Err(InternalFailure('lift_func', exc))``.

    Example:
        ```python
        await run(lift_func(lambda: 1 + 1))
        # Ok(value=2)
        ```
    """
    ctx = make_context(context, fields)

    async def thunk(env: Env) -> Result[Any, Any]:  # noqa: ARG001
        try:
            return Ok(await _call(fn))
        except Exception as exc:  # noqa: BLE001
            return Err(InternalFailure.captured(Stage.LIFT_FUNC, exc))

    return SuccessEffect(ctx, thunk)


def lift_result(fn: Callable[[], Any], context: ContextLike = None, **fields: Any) -> Effect[Any, Any]:
    """Wrap a zero-argument callable that already returns a Result.

    Tuples and raw values are normalized like step-function returns. An
    exception becomes ``Err(InternalFailure('lift_result', exc))``.
    """
    ctx = make_context(context, fields)

    async def thunk(env: Env) -> Result[Any, Any]:  # noqa: ARG001
        try:
            return normalize(await _call(fn))
        except Exception as exc:  # noqa: BLE001
            return Err(InternalFailure.captured(Stage.LIFT_RESULT, exc))

    return SuccessEffect(ctx, thunk)


def lift_optional[T](
    value: T | None, on_absent: Callable[[], Any], context: ContextLike = None, **fields: Any
) -> Effect[T, Any]:
    """Lift an optional value: present becomes success, ``None`` becomes ``failure(on_absent())``."""
    if value is None:
        return failure(on_absent(), context, **fields)
    return success(value, context, **fields)


def lift_predicate[T](
    value: T,
    predicate: Callable[[T], bool],
    on_false: Callable[[T], Any],
    context: ContextLike = None,
    **fields: Any,
) -> Effect[T, Any]:
    """Decide success or failure now by testing ``value`` against ``predicate``.

    The predicate runs at construction, so the effect's shape is known
    statically and ``traverse`` can stop on it.

    Example:
        ```python
        lift_predicate(3, lambda x: x > 5, lambda x: f'Value {x} is too small')
        # FailureEffect -> Err('Value 3 is too small') when run
        ```
    """
    if predicate(value):
        return success(value, context, **fields)
    return failure(on_false(value), context, **fields)


def from_result(result: Result[Any, Any], context: ContextLike = None, **fields: Any) -> Effect[Any, Any]:
    """Lift an existing Result, keeping its shape."""
    if isinstance(result, Ok):
        return success(result.value, context, **fields)
    return failure(result.error, context, **fields)


def from_tuple(pair: tuple[str, Any], context: ContextLike = None, **fields: Any) -> Effect[Any, Any]:
    """Lift an ``('ok', value)`` / ``('error', reason)`` pair.

    Raises:
        ValueError: If ``pair`` is not one of the two accepted shapes.
    """
    if isinstance(pair, tuple) and len(pair) == 2:
        tag, payload = pair
        if tag == 'ok':
            return success(payload, context, **fields)
        if tag == 'error':
            return failure(payload, context, **fields)
    msg = f"Expected ('ok', value) or ('error', reason), got {pair!r}"
    raise ValueError(msg)


async def to_tuple(
    effect: Effect[Any, Any], env: dict[str, Any] | None = None, **run_options: Any
) -> tuple[str, Any]:
    """Run the effect and return ``('ok', value)`` or ``('error', reason)``."""
    return (await run(effect, env, **run_options)).to_tuple()


to_result = to_tuple


def from_throwing[A](
    f: Callable[[A], Any], context: ContextLike = None, **fields: Any
) -> Callable[[A], Effect[Any, Any]]:
    """Turn a possibly-raising function into a step function for ``traverse``.

    The returned step calls ``f`` immediately and normalizes what it returns
    (Result, tuple or raw value), so the shape of each effect is known at
    construction. An exception becomes a failure-shaped effect with
    ``InternalFailure('from_throwing', exc)``.

    Example:
        ```python
        parse = from_throwing(int)
        await run(traverse(['1', '2'], parse))
        # Ok(value=[1, 2])
        ```
    """

    def step(value: A) -> Effect[Any, Any]:
        try:
            result = normalize(f(value))
        except Exception as exc:  # noqa: BLE001
            result = Err(InternalFailure.captured(Stage.FROM_THROWING, exc))
        return from_result(result, context, **fields)

    return step


def _raise_payload(payload: Any) -> NoReturn:
    if isinstance(payload, BaseException):
        raise payload
    to_exception = getattr(payload, 'to_exception', None)
    if callable(to_exception):
        raise to_exception()
    raise FailureError(payload)


async def to_try_or_raise[T](effect: Effect[T, Any], env: dict[str, Any] | None = None, **run_options: Any) -> T:
    """Run the effect and return its value, or raise its failure.

    Raises:
        BaseException: The payload itself when it is an exception.
        EffectError / ValidationError / CancelledError: From ``to_exception()`` on struct payloads.
        FailureError: For any other payload.
    """
    result = await run(effect, env, **run_options)
    if isinstance(result, Ok):
        return result.value
    _raise_payload(result.error)
