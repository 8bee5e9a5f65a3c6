"""Effect: a deferred, two-channel computation bound to a tracing Context.

An Effect pairs a Context with a thunk ``env -> awaitable Result``. Nothing
runs until the effect is passed to ``run``; constructing and composing
effects is pure. Every effect is statically *success-shaped*
(``SuccessEffect``) or *failure-shaped* (``FailureEffect``); the tag is fixed
at construction and is what ``traverse`` inspects to stop early.

Examples:
    ```python
    effect = success(20).map(lambda x: x + 1).bind(lambda x: success(x * 2))
    await run(effect)
    # Ok(value=42)

    await run(failure('boom').map(lambda x: x + 1))
    # Err(error='boom')

    await run(asks(lambda env: env['user']), {'user': 'ada'})
    # Ok(value='ada')
    ```
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar, TypeIs

import msgspec

from klaw_effect.config import DEFAULT_CONFIG
from klaw_effect.context import Context
from klaw_effect.engine import Env, execute, gather
from klaw_effect.engine import run as run_effect
from klaw_effect.errors import InternalFailure, Stage
from klaw_effect.result import Err, Ok, Result

if TYPE_CHECKING:
    from klaw_effect.config import EffectConfig
    from klaw_effect.runtime.executor import Executor

__all__ = [
    'Effect',
    'FailureEffect',
    'SuccessEffect',
    'ask',
    'asks',
    'fail',
    'fails',
    'failure',
    'is_effect',
    'make_context',
    'pure',
    'success',
]

type Thunk = Callable[[Env], Any]


class Effect[T, E](msgspec.Struct, frozen=True):
    """Base of the two effect shapes. Use ``success`` / ``failure`` to build one.

    Attributes:
        context: Tracing metadata, promoted on every composition.
        thunk: ``env -> awaitable Result``; invoked only by the engine.
    """

    context: Context
    thunk: Thunk

    kind: ClassVar[str] = 'effect'

    def is_success(self) -> bool:
        return self.kind == 'success'

    def is_failure(self) -> bool:
        return self.kind == 'failure'

    def _derive(self, label: str, thunk: Thunk) -> Effect[Any, Any]:
        return type(self)(self.context.promote(label), thunk)

    def map[U](self, f: Callable[[T], U]) -> Effect[U, E]:
        """Transform the success value; failures pass through unchanged.

        Example:
            ```python
            await run(success(2).map(lambda x: x * 10))
            # Ok(value=20)
            ```
        """

        async def thunk(env: Env) -> Result[Any, Any]:
            result = await execute(self, env)
            if isinstance(result, Err):
                return result
            try:
                return Ok(f(result.value))
            except Exception as exc:  # noqa: BLE001
                return Err(InternalFailure.captured(Stage.MAP, exc))

        return self._derive('map', thunk)

    def bind[U](self, f: Callable[[T], Effect[U, Any]]) -> Effect[U, Any]:
        """Chain an effect-returning function on the success value.

        The effect returned by ``f`` runs nested inside this one, with the
        same env. On failure ``f`` is never called.
        """

        async def thunk(env: Env) -> Result[Any, Any]:
            result = await execute(self, env)
            if isinstance(result, Err):
                return result
            try:
                next_effect = f(result.value)
            except Exception as exc:  # noqa: BLE001
                return Err(InternalFailure.captured(Stage.BIND, exc))
            if not is_effect(next_effect):
                return Err(InternalFailure.invalid_result(Stage.BIND, next_effect))
            return await execute(next_effect, env)

        return self._derive('bind', thunk)

    def map_failure[F](self, f: Callable[[E], F]) -> Effect[T, F]:
        """Transform the failure payload; success values pass through unchanged."""

        async def thunk(env: Env) -> Result[Any, Any]:
            result = await execute(self, env)
            if isinstance(result, Ok):
                return result
            try:
                return Err(f(result.error))
            except Exception as exc:  # noqa: BLE001
                return Err(InternalFailure.captured(Stage.MAP_FAILURE, exc))

        return self._derive('map_failure', thunk)

    def flip_either(self) -> Effect[E, T]:
        """Swap the channels: the result is flipped and so is the static shape."""

        async def thunk(env: Env) -> Result[Any, Any]:
            return (await execute(self, env)).flip()

        flipped = FailureEffect if self.is_success() else SuccessEffect
        return flipped(self.context.promote('flip_either'), thunk)

    def ap[A, U](self: Effect[Callable[[A], U], E], other: Effect[A, Any]) -> Effect[U, Any]:
        """Apply the function produced by this effect to the value produced by ``other``.

        Both effects run concurrently; if both fail, this effect's failure wins.
        """

        async def thunk(env: Env) -> Result[Any, Any]:
            fn_result, value_result = await gather([self, other], env)
            if isinstance(fn_result, Err):
                return fn_result
            if isinstance(value_result, Err):
                return value_result
            try:
                return Ok(fn_result.value(value_result.value))
            except Exception as exc:  # noqa: BLE001
                return Err(InternalFailure.captured(Stage.AP, exc))

        shape = FailureEffect if self.is_failure() or other.is_failure() else SuccessEffect
        return shape(self.context.merge(other.context).promote('ap'), thunk)

    def tap(self, f: Callable[[T], Any]) -> Effect[T, E]:
        """Run a side effect on the success value and keep the value.

        ``f`` may be sync or async. Its return value is ignored.
        """

        async def thunk(env: Env) -> Result[Any, Any]:
            result = await execute(self, env)
            if isinstance(result, Err):
                return result
            try:
                outcome = f(result.value)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:  # noqa: BLE001
                return Err(InternalFailure.captured(Stage.TAP, exc))
            return result

        return self._derive('tap', thunk)

    async def run(
        self,
        env: Mapping[str, Any] | None = None,
        *,
        span_name: str | None = None,
        executor: Executor | None = None,
        config: EffectConfig = DEFAULT_CONFIG,
    ) -> Result[T, Any]:
        """Shortcut for ``klaw_effect.run(self, ...)``."""
        return await run_effect(self, env, span_name=span_name, executor=executor, config=config)


class SuccessEffect[T, E](Effect[T, E], frozen=True):
    """Success-shaped effect."""

    kind: ClassVar[str] = 'success'


class FailureEffect[T, E](Effect[T, E], frozen=True):
    """Failure-shaped effect."""

    kind: ClassVar[str] = 'failure'


def is_effect(value: Any) -> TypeIs[Effect[Any, Any]]:
    return isinstance(value, Effect)


# --- Construction ---


def make_context(context: Context | Mapping[str, Any] | None, fields: dict[str, Any]) -> Context:
    """Build the Context for a new effect from a Context, a mapping or keyword fields."""
    if isinstance(context, Context):
        return context.override(**fields) if fields else context
    if context is not None:
        return Context.new(**{**context, **fields})
    return Context.new(**fields)


def _resolved(result: Result[Any, Any]) -> Thunk:
    async def thunk(env: Env) -> Result[Any, Any]:  # noqa: ARG001
        return result

    return thunk


def success[T](
    value: T, context: Context | Mapping[str, Any] | None = None, **fields: Any
) -> SuccessEffect[T, Any]:
    """Wrap a value as a success-shaped effect.

    Context fields may be given as a Context, a mapping or keywords::

        success(42, span_name='answer', timeout=1.0)
    """
    return SuccessEffect(make_context(context, fields), _resolved(Ok(value)))


pure = success


def failure[E](
    error: E, context: Context | Mapping[str, Any] | None = None, **fields: Any
) -> FailureEffect[Any, E]:
    """Wrap a payload as a failure-shaped effect."""
    return FailureEffect(make_context(context, fields), _resolved(Err(error)))


def ask(context: Context | Mapping[str, Any] | None = None, **fields: Any) -> SuccessEffect[Env, Any]:
    """Success-shaped effect producing the env it is run with."""

    async def thunk(env: Env) -> Result[Any, Any]:
        return Ok(env)

    return SuccessEffect(make_context(context, fields), thunk)


def asks[T](
    f: Callable[[Env], T], context: Context | Mapping[str, Any] | None = None, **fields: Any
) -> SuccessEffect[T, Any]:
    """Success-shaped effect producing ``f(env)``."""

    async def thunk(env: Env) -> Result[Any, Any]:
        return Ok(f(env))

    return SuccessEffect(make_context(context, fields), thunk)


def fail(context: Context | Mapping[str, Any] | None = None, **fields: Any) -> FailureEffect[Any, Env]:
    """Failure-shaped effect whose payload is the env it is run with."""

    async def thunk(env: Env) -> Result[Any, Any]:
        return Err(env)

    return FailureEffect(make_context(context, fields), thunk)


def fails[E](
    f: Callable[[Env], E], context: Context | Mapping[str, Any] | None = None, **fields: Any
) -> FailureEffect[Any, E]:
    """Failure-shaped effect whose payload is ``f(env)``."""

    async def thunk(env: Env) -> Result[Any, Any]:
        return Err(f(env))

    return FailureEffect(make_context(context, fields), thunk)
