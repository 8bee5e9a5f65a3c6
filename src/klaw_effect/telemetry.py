"""Run telemetry: start/stop/exception events around every top-level ``run``.

Events are tuples such as ``('klaw', 'effect', 'run', 'stop')``. Handlers are
plain callables registered with ``attach`` and invoked synchronously as
``handler(event, measurements, metadata)``. Every event is also logged at
DEBUG level through structlog, so a structlog setup alone is enough to
observe runs.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from klaw_effect._logging import get_logger
from klaw_effect.result import Ok

if TYPE_CHECKING:
    from klaw_effect.config import EffectConfig
    from klaw_effect.context import Context
    from klaw_effect.result import Result

__all__ = [
    'Event',
    'Handler',
    'RunSpan',
    'attach',
    'clear_handlers',
    'detach',
    'emit',
    'handlers',
]

logger = get_logger(__name__)

type Event = tuple[str, ...]
type Handler = Callable[[Event, dict[str, Any], dict[str, Any]], None]

_handlers: list[Handler] = []


def attach(handler: Handler) -> None:
    """Register a handler for all run events."""
    _handlers.append(handler)


def detach(handler: Handler) -> None:
    """Remove a previously attached handler."""
    if handler in _handlers:
        _handlers.remove(handler)


def clear_handlers() -> None:
    """Remove all attached handlers."""
    _handlers.clear()


def handlers() -> list[Handler]:
    return list(_handlers)


def emit(event: Event, measurements: dict[str, Any], metadata: dict[str, Any]) -> None:
    """Log ``event`` and deliver it to every attached handler.

    A handler that raises is logged and skipped; the remaining handlers still
    receive the event.
    """
    logger.debug('telemetry_event', telemetry_event='.'.join(event), measurements=measurements, **metadata)
    for handler in list(_handlers):
        try:
            handler(event, measurements, metadata)
        except Exception:  # noqa: BLE001
            logger.exception('telemetry_handler_failed', telemetry_event='.'.join(event), handler=repr(handler))


class RunSpan:
    """Measures one top-level run and emits its events.

    Example:
        ```python
        span = RunSpan(context, timeout, config)
        span.start()
        result = await execute_thunk()
        span.stop(result, effect_type='success')
        ```
    """

    __slots__ = ('_config', '_context', '_started', '_timeout')

    def __init__(self, context: Context, timeout: float, config: EffectConfig) -> None:
        self._context = context
        self._timeout = timeout
        self._config = config
        self._started = 0

    def _event(self, name: str) -> Event:
        return (*self._config.telemetry_prefix, 'run', name)

    def _trace_metadata(self, effect_type: str) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            'trace_id': self._context.trace_id,
            'span_name': self._context.span_name,
            'effect_type': effect_type,
        }
        if self._context.parent_trace_id is not None:
            metadata['parent_trace_id'] = self._context.parent_trace_id
        return metadata

    def start(self) -> None:
        self._started = time.perf_counter_ns()
        emit(
            self._event('start'),
            {'monotonic_time': self._started, 'system_time': time.time_ns()},
            {'timeout': self._timeout, 'span_name': self._context.span_name},
        )

    def stop(self, result: Result[Any, Any], effect_type: str) -> None:
        now = time.perf_counter_ns()
        emit(
            self._event('stop'),
            {'duration': now - self._started, 'monotonic_time': now},
            {
                'status': 'ok' if isinstance(result, Ok) else 'error',
                'result': self._config.summarizer(result),
                **self._trace_metadata(effect_type),
            },
        )

    def exception(self, exc: BaseException, effect_type: str) -> None:
        """Emit the exception event for an error that escaped the run."""
        now = time.perf_counter_ns()
        emit(
            self._event('exception'),
            {'duration': now - self._started, 'monotonic_time': now},
            {'kind': type(exc).__name__, 'reason': repr(exc), **self._trace_metadata(effect_type)},
        )
