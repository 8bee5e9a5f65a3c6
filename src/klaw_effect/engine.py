"""Execution engine: turn an Effect into a Result.

``run`` is the only public suspension point. It resolves the context and
timeout, wraps the execution in telemetry, dispatches the thunk (directly or
through an ``Executor``) and normalizes every outcome into a Result. It does
not raise for domain failures, captured exceptions, timeouts or malformed
outcomes.

Combinators that run effects inside other effects use ``execute`` and
``gather``: no telemetry, and no timeout unless the nested context sets one,
because the enclosing ``run`` already bounds the whole computation.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import anyio

from klaw_effect._logging import bound_run_context, get_logger
from klaw_effect.config import DEFAULT_CONFIG, EffectConfig
from klaw_effect.errors import InternalFailure, Stage
from klaw_effect.result import Err
from klaw_effect.runtime.handle import await_handle, spawn
from klaw_effect.telemetry import RunSpan

if TYPE_CHECKING:
    from klaw_effect.context import Context
    from klaw_effect.effect import Effect
    from klaw_effect.result import Result
    from klaw_effect.runtime.executor import Executor

__all__ = ['Env', 'dispatch', 'execute', 'freeze_env', 'gather', 'run', 'run_sync']

logger = get_logger(__name__)

type Env = Mapping[str, Any]

_EMPTY_ENV: Env = MappingProxyType({})


def freeze_env(env: Mapping[str, Any] | None) -> Env:
    """Return a read-only view of ``env`` that concurrent units can share."""
    if env is None:
        return _EMPTY_ENV
    if isinstance(env, MappingProxyType):
        return env
    return MappingProxyType(dict(env))


def dispatch(thunk: Callable[[Env], Any], env: Env) -> Any:
    """Invoke a thunk, converting a synchronous raise into a failure Result."""
    try:
        return thunk(env)
    except Exception as exc:  # noqa: BLE001
        logger.warning('thunk_raised', exc_type=type(exc).__name__, error=str(exc))
        return Err(InternalFailure.captured(Stage.RUN, exc))


async def _resolve(thunk: Callable[[Env], Any], env: Env) -> Any:
    outcome = dispatch(thunk, env)
    if inspect.isawaitable(outcome):
        return await outcome
    return outcome


async def execute(effect: Effect[Any, Any], env: Env) -> Result[Any, Any]:
    """Run a nested effect inside an already running one."""
    return await await_handle(dispatch(effect.thunk, env), effect.context.timeout)


async def gather(effects: Sequence[Effect[Any, Any]], env: Env) -> list[Result[Any, Any]]:
    """Run effects as independent concurrent units; results come back in input order."""
    if not effects:
        return []
    if len(effects) == 1:
        return [await execute(effects[0], env)]
    async with anyio.create_task_group() as tg:
        handles = [spawn(tg, execute, effect, env) for effect in effects]
        return [await await_handle(handle, None) for handle in handles]


def _resolve_context(effect: Effect[Any, Any], span_name: str | None, config: EffectConfig) -> Context:
    context = effect.context.promote(span_name) if span_name else effect.context
    return context.with_default_span_name(config.default_span_name)


async def run(
    effect: Effect[Any, Any],
    env: Mapping[str, Any] | None = None,
    *,
    span_name: str | None = None,
    executor: Executor | None = None,
    config: EffectConfig = DEFAULT_CONFIG,
) -> Result[Any, Any]:
    """Execute an effect and return its Result.

    Args:
        effect: The effect to run.
        env: Read-only environment passed to the thunk. Defaults to empty.
        span_name: Promote the context under this span name before running.
        executor: Supervising executor that owns the top-level unit.
        config: Default timeout, telemetry switch and summarizer.

    Returns:
        ``Ok`` or ``Err``. Engine failures are ``Err(InternalFailure(...))``
        with stage ``'run'`` and cause ``'timeout'``, ``'invalid_result'``
        or the captured exception.

    Example:
        ```python
        result = await run(success(42))
        # Ok(value=42)
        result = await run(failure('boom'))
        # Err(error='boom')
        ```
    """
    context = _resolve_context(effect, span_name, config)
    timeout = context.timeout if context.timeout is not None else config.timeout
    frozen = freeze_env(env)

    with bound_run_context(context):
        if not (config.telemetry_enabled and context.telemetry_enabled):
            return await _dispatch_and_await(effect, frozen, timeout, executor)

        span = RunSpan(context, timeout, config)
        span.start()
        try:
            result = await _dispatch_and_await(effect, frozen, timeout, executor)
        except BaseException as exc:
            span.exception(exc, effect.kind)
            raise
        span.stop(result, effect.kind)
        return result


async def _dispatch_and_await(
    effect: Effect[Any, Any],
    env: Env,
    timeout: float,
    executor: Executor | None,
) -> Result[Any, Any]:
    if executor is not None:
        handle = await executor.submit(_resolve, effect.thunk, env)
    else:
        handle = dispatch(effect.thunk, env)
    return await await_handle(handle, timeout)


def run_sync(
    effect: Effect[Any, Any],
    env: Mapping[str, Any] | None = None,
    *,
    span_name: str | None = None,
    config: EffectConfig = DEFAULT_CONFIG,
) -> Result[Any, Any]:
    """Run an effect from synchronous code on a fresh event loop.

    Must not be called from inside a running event loop.
    """

    async def _main() -> Result[Any, Any]:
        return await run(effect, env, span_name=span_name, config=config)

    return anyio.run(_main)
