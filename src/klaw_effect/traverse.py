"""Composition over lists: fail-fast sequencing and error-accumulating validation.

``traverse`` / ``sequence`` stop at the first *statically* failure-shaped
effect: the step function is applied left to right while effects are built,
and as soon as one returns a ``FailureEffect`` that effect is the result.
Later items are never examined, and earlier ones never run. A step that
only decides success or failure inside its thunk does not stop the
construction; its failure surfaces when the combined effect runs.

``traverse_accumulate`` / ``sequence_accumulate`` / ``validate`` apply the
step to every item, run every effect and merge all failures with an
``Aggregator``.

Examples:
    ```python
    await run(traverse([1, 2, 3], lambda x: success(x * 2)))
    # Ok(value=[2, 4, 6])

    await run(sequence([success(1), failure('err')]))
    # Err(error='err')

    await run(validate(-3, [positive, even]))
    # Err(error=['-3 must be positive', '-3 must be even'])
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from functools import reduce
from typing import Any

from klaw_effect.aggregate import Aggregator, aggregate
from klaw_effect.context import Context
from klaw_effect.effect import Effect, FailureEffect, SuccessEffect, is_effect, success
from klaw_effect.engine import Env, gather
from klaw_effect.result import Err, Ok, Result, collect, normalize

__all__ = [
    'sequence',
    'sequence_accumulate',
    'traverse',
    'traverse_accumulate',
    'validate',
]

type Step[A] = Callable[[A], Any]


def _identity(value: Any) -> Any:
    return value


def _as_effect(outcome: Any) -> Effect[Any, Any]:
    """Accept a step outcome: an Effect, or a Result / tuple / raw value lifted eagerly."""
    if is_effect(outcome):
        return outcome
    result = normalize(outcome)

    async def thunk(env: Env) -> Result[Any, Any]:  # noqa: ARG001
        return result

    shape = SuccessEffect if isinstance(result, Ok) else FailureEffect
    return shape(Context(), thunk)


def _merge_contexts(contexts: Iterable[Context], root: Context) -> Context:
    return reduce(Context.merge, contexts, root)


def traverse[A](items: Iterable[A], step: Step[A]) -> Effect[list[Any], Any]:
    """Apply ``step`` to each item and combine the effects, failing fast.

    Construction walks the items left to right and halts at the first
    failure-shaped effect, which becomes the result as-is. Otherwise the
    combined effect runs every collected effect concurrently and yields
    ``Ok([values...])`` in input order, or the first ``Err`` in input order.
    """
    collected: list[Effect[Any, Any]] = []
    for item in items:
        effect = _as_effect(step(item))
        if effect.is_failure():
            return effect
        collected.append(effect)

    if not collected:
        return success([])

    context = _merge_contexts((effect.context for effect in collected[1:]), collected[0].context)

    async def thunk(env: Env) -> Result[list[Any], Any]:
        return collect(await gather(collected, env))

    return SuccessEffect(context.promote('traverse'), thunk)


def sequence(effects: Iterable[Effect[Any, Any]]) -> Effect[list[Any], Any]:
    """``traverse`` with the identity step."""
    return traverse(effects, _identity)


def traverse_accumulate[A](
    items: Iterable[A],
    step: Step[A],
    *,
    aggregator: Aggregator | None = None,
) -> Effect[list[Any], Any]:
    """Apply ``step`` to every item, run them all and accumulate failures.

    Success values and failure payloads are both kept in input order,
    whatever order the units complete in. With no failures the result is
    ``Ok([values...])``; otherwise the failures are merged by ``aggregator``
    (the typeclass-based default concatenates them into a list).
    """
    effects = [_as_effect(step(item)) for item in items]
    if not effects:
        return success([])

    children = (effect.context.promote(f'traverse_accumulate[{index}]') for index, effect in enumerate(effects))
    context = _merge_contexts(children, Context()).promote('traverse_accumulate')

    async def thunk(env: Env) -> Result[list[Any], Any]:
        results = await gather(effects, env)
        errors = [result.error for result in results if isinstance(result, Err)]
        if errors:
            return Err(aggregate(errors, aggregator))
        return Ok([result.value for result in results])

    shape = FailureEffect if any(effect.is_failure() for effect in effects) else SuccessEffect
    return shape(context, thunk)


def sequence_accumulate(
    effects: Iterable[Effect[Any, Any]],
    *,
    aggregator: Aggregator | None = None,
) -> Effect[list[Any], Any]:
    """``traverse_accumulate`` with the identity step."""
    return traverse_accumulate(effects, _identity, aggregator=aggregator)


def validate[A](
    value: A,
    validators: Sequence[Step[A]] | Step[A],
    *,
    aggregator: Aggregator | None = None,
) -> Effect[A, Any]:
    """Run every validator against ``value`` and return ``value`` if all pass.

    Validators return an Effect (or a Result / tuple / raw value). All of
    them run; their failures are aggregated in validator order.

    Example:
        ```python
        def positive(x):
            return lift_predicate(x, lambda v: v > 0, lambda v: f'{v} must be positive')

        await run(validate(4, [positive]))
        # Ok(value=4)
        ```
    """
    checks = [validators] if callable(validators) else list(validators)
    return traverse_accumulate(checks, lambda check: check(value), aggregator=aggregator).map(lambda _: value)
