"""klaw-effect: deferred two-channel effects for the Klaw ecosystem.

An Effect is a lazily-run, traced computation that yields ``Ok`` or ``Err``.
Effects compose with map/bind, sequence fail-fast with ``traverse`` and
validate with error accumulation through ``traverse_accumulate``.

Flat imports (preferred):
    from klaw_effect import success, failure, run, traverse, validate
    from klaw_effect import Ok, Err, Context, EffectConfig

Submodule imports (for organization):
    from klaw_effect.effect import Effect, SuccessEffect, FailureEffect
    from klaw_effect.runtime import Executor, AsyncHandle
    from klaw_effect.telemetry import attach, detach
"""

# Aggregation
from klaw_effect.aggregate import DEFAULT_AGGREGATOR, Aggregator, TypeclassAggregator, aggregate

# Configuration
from klaw_effect.config import DEFAULT_CONFIG, EffectConfig, detect_concurrency, init, load_config
from klaw_effect.context import DEFAULT_SPAN_NAME, Context, generate_trace_id

# Effects
from klaw_effect.effect import (
    Effect,
    FailureEffect,
    SuccessEffect,
    ask,
    asks,
    fail,
    failure,
    fails,
    is_effect,
    pure,
    success,
)

# Execution
from klaw_effect.engine import run, run_sync

# Errors
from klaw_effect.errors import (
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

# Lifting
from klaw_effect.lift import (
    from_result,
    from_throwing,
    from_tuple,
    lift_func,
    lift_optional,
    lift_predicate,
    lift_result,
    to_result,
    to_try_or_raise,
    to_tuple,
)
from klaw_effect.result import Err, Ok, Result, collect, normalize

# Runtime
from klaw_effect.runtime import AsyncHandle, Executor, await_handle, spawn
from klaw_effect.summarize import summarize

# Composition
from klaw_effect.traverse import sequence, sequence_accumulate, traverse, traverse_accumulate, validate

# Typeclass
from klaw_effect.typeclass import typeclass

__all__ = [
    'DEFAULT_AGGREGATOR',
    'DEFAULT_CONFIG',
    'DEFAULT_SPAN_NAME',
    'Aggregator',
    'AsyncHandle',
    'Cancelled',
    'CancelledError',
    'Cause',
    'Context',
    'Effect',
    'EffectConfig',
    'EffectError',
    'Err',
    'Executor',
    'FailureEffect',
    'FailureError',
    'InternalFailure',
    'Ok',
    'Result',
    'Stage',
    'SuccessEffect',
    'TypeclassAggregator',
    'ValidationError',
    'ValidationFailure',
    'aggregate',
    'ask',
    'asks',
    'await_handle',
    'collect',
    'detect_concurrency',
    'fail',
    'fails',
    'failure',
    'from_result',
    'from_throwing',
    'from_tuple',
    'generate_trace_id',
    'init',
    'is_effect',
    'lift_func',
    'lift_optional',
    'lift_predicate',
    'lift_result',
    'load_config',
    'normalize',
    'pure',
    'run',
    'run_sync',
    'sequence',
    'sequence_accumulate',
    'spawn',
    'success',
    'summarize',
    'to_result',
    'to_try_or_raise',
    'to_tuple',
    'traverse',
    'traverse_accumulate',
    'typeclass',
    'validate',
]

__version__ = '0.1.0'
