"""Context: immutable tracing and execution metadata bound to an Effect.

A Context is created when an Effect is constructed and flows by value through
composition. Combinators never mutate it; they derive a child with
``promote``, which links the new trace to its parent and prefixes the span
name with the combinator label::

    >>> parent = Context(trace_id='abc123', span_name='load')
    >>> child = parent.promote('decode')
    >>> child.parent_trace_id, child.span_name
    ('abc123', 'decode -> load')
"""

from __future__ import annotations

import secrets
from typing import Any

import msgspec

from klaw_effect.types import SpanName, TimeoutSeconds, TraceId

__all__ = ['DEFAULT_SPAN_NAME', 'Context', 'generate_trace_id']

DEFAULT_SPAN_NAME = 'klaw.effect.run'


def generate_trace_id() -> str:
    """Return a random 32-character lowercase hexadecimal trace id."""
    return secrets.token_hex(16)


class Context(msgspec.Struct, frozen=True, kw_only=True):
    """Tracing metadata attached to an Effect.

    Attributes:
        trace_id: Identifier of this span. Generated when not given.
        parent_trace_id: Identifier of the span this one was promoted from.
        span_name: Label used for telemetry; combinators prefix it.
        timeout: Seconds allowed for ``run``; None defers to the run config.
        telemetry_enabled: Whether ``run`` emits telemetry for this context.
        baggage: Free-form values propagated to child contexts.
        metadata: Free-form annotations propagated to child contexts.
    """

    trace_id: TraceId = msgspec.field(default_factory=generate_trace_id)
    parent_trace_id: TraceId | None = None
    span_name: SpanName | None = DEFAULT_SPAN_NAME
    timeout: TimeoutSeconds | None = None
    telemetry_enabled: bool = True
    baggage: dict[str, Any] = msgspec.field(default_factory=dict)
    metadata: dict[str, Any] = msgspec.field(default_factory=dict)

    @classmethod
    def new(cls, base: Context | None = None, **fields: Any) -> Context:
        """Build a Context from keyword fields, optionally on top of ``base``.

        Examples:
            >>> Context.new(span_name='load-data', timeout=2.0).span_name
            'load-data'
            >>> Context.new(trace_id='abc123').trace_id
            'abc123'
        """
        if base is None:
            return cls(**fields)
        return msgspec.structs.replace(base, **fields)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Context:
        """Decode and validate a Context from plain data.

        Raises:
            msgspec.ValidationError: If a field violates its constraints.
        """
        return msgspec.convert(data, type=cls)

    def merge(self, other: Context) -> Context:
        """Combine two contexts, preferring scalar values set on ``self``.

        Baggage and metadata maps are merged key by key; on a collision the
        value from ``other`` wins.

        Examples:
            >>> a = Context(trace_id='a', baggage={'user': 1})
            >>> b = Context(trace_id='b', baggage={'region': 'us-west'})
            >>> a.merge(b).baggage
            {'user': 1, 'region': 'us-west'}
        """
        return Context(
            trace_id=self.trace_id or other.trace_id,
            parent_trace_id=self.parent_trace_id or other.parent_trace_id,
            span_name=self.span_name or other.span_name,
            timeout=self.timeout if self.timeout is not None else other.timeout,
            telemetry_enabled=self.telemetry_enabled,
            baggage={**self.baggage, **other.baggage},
            metadata={**self.metadata, **other.metadata},
        )

    def override(self, **fields: Any) -> Context:
        """Return a copy with scalar fields replaced and maps merged.

        ``baggage`` and ``metadata`` given here are merged into the existing
        maps, with the new values winning.
        """
        baggage = {**self.baggage, **fields.pop('baggage', {})}
        metadata = {**self.metadata, **fields.pop('metadata', {})}
        return msgspec.structs.replace(self, baggage=baggage, metadata=metadata, **fields)

    def promote(self, label: str) -> Context:
        """Derive a child context for a nested span.

        The child gets a fresh ``trace_id``, records this context's id as
        ``parent_trace_id`` and is named ``"<label> -> <span_name>"``.
        """
        return msgspec.structs.replace(
            self,
            trace_id=generate_trace_id(),
            parent_trace_id=self.trace_id,
            span_name=f'{label} -> {self.span_name or DEFAULT_SPAN_NAME}',
        )

    def has_span_name(self) -> bool:
        return self.span_name is not None

    def has_default_span_name(self, default: str = DEFAULT_SPAN_NAME) -> bool:
        return self.span_name == default

    def with_default_span_name(self, name: str) -> Context:
        """Replace a missing or default span name with ``name``; keep custom ones."""
        if self.has_span_name() and not self.has_default_span_name():
            return self
        return msgspec.structs.replace(self, span_name=name)
