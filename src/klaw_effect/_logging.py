"""Structured logging for the effect engine.

structlog and stdlib records share one ProcessorFormatter, so engine events
(timeouts, captured exceptions, telemetry) and third-party logs come out in
the same format. While ``run`` executes an effect, the effect's trace fields
are bound with ``structlog.contextvars``, so every entry logged by the unit,
by nested combinators or by user code on the same task carries
``trace_id`` and ``span_name``.

Nothing is configured on import; call ``configure_logging`` (or
``klaw_effect.init`` with a log level) once at application start.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import msgspec
import structlog

if TYPE_CHECKING:
    from klaw_effect.context import Context

__all__ = ['bound_run_context', 'configure_logging', 'get_logger']

_encoder = msgspec.json.Encoder(enc_hook=repr)


def _dumps(event_dict: dict[str, Any], **_: Any) -> str:
    # Structs such as InternalFailure encode natively; anything else falls back to repr.
    return _encoder.encode(event_dict).decode()


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.stdlib.ExtraAdder(),
    ]


def _renderer(json_output: bool) -> Any:
    if json_output:
        return structlog.processors.JSONRenderer(serializer=_dumps)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(level: str = 'INFO', *, json_output: bool = True) -> None:
    """Route structlog through stdlib logging with a single stderr handler.

    Args:
        level: Logging level name. Unknown names fall back to INFO.
        json_output: Emit one JSON object per line, or colored console output.
    """
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


@contextmanager
def bound_run_context(context: Context) -> Iterator[None]:
    """Bind the trace fields of ``context`` to every log entry inside the block.

    Units spawned inside the block inherit the binding, since anyio copies
    the current contextvars into new tasks.
    """
    fields: dict[str, Any] = {'trace_id': context.trace_id, 'span_name': context.span_name}
    if context.parent_trace_id is not None:
        fields['parent_trace_id'] = context.parent_trace_id
    with structlog.contextvars.bound_contextvars(**fields):
        yield
