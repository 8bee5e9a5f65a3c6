"""Constrained type aliases for decode-time validation.

These aliases carry ``msgspec.Meta`` constraints that are enforced when
settings are decoded or converted with msgspec (for example by
``klaw_effect.config.load_config``). Plain construction of a struct does not
validate them.

Usage:
    >>> import msgspec
    >>> from klaw_effect.types import TimeoutSeconds
    >>>
    >>> class Settings(msgspec.Struct):
    ...     timeout: TimeoutSeconds
    >>>
    >>> msgspec.convert({'timeout': -1}, type=Settings)
    # ValidationError: Expected `float` >= 0.0 - at `$.timeout`
"""

from __future__ import annotations

from typing import Annotated, Literal

import msgspec

__all__ = [
    'LogLevel',
    'SpanName',
    'TimeoutSeconds',
    'TraceId',
]

TimeoutSeconds = Annotated[float, msgspec.Meta(ge=0.0, le=86400.0)]
"""Timeout duration in seconds.

Valid range: 0.0 to 86400.0 (24 hours, inclusive). The upper bound catches
values accidentally given in milliseconds.
"""

SpanName = Annotated[str, msgspec.Meta(min_length=1, max_length=255)]
"""Human-readable span label, 1 to 255 characters."""

TraceId = Annotated[str, msgspec.Meta(min_length=1, max_length=128)]
"""Opaque trace identifier. Generated ids are 32 lowercase hex characters."""

LogLevel = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
"""Logging level accepted by ``configure_logging``."""
