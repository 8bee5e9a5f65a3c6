"""@typeclass decorator: ad-hoc polymorphism with runtime type dispatch.

Used for the open protocols of the effect engine (result summarization and
failure aggregation) so that payload types defined elsewhere can register
their own behaviour without touching the engine.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

import wrapt

__all__ = ['TypeClass', 'typeclass']

F = TypeVar('F', bound=Callable[..., Any])


class TypeClass(wrapt.ObjectProxy, Generic[F]):
    """A polymorphic function dispatching on the type of its first argument.

    The decorated function is the fallback used when no registered instance
    matches. Instances are looked up by exact type first, then along the MRO,
    so registering a base class covers its subclasses.

    Example:
        ```python
        @typeclass
        def show(value) -> str:
            return repr(value)

        @show.instance(int)
        def _show_int(value: int) -> str:
            return f'Int({value})'

        show(42)
        # 'Int(42)'
        show('x')
        # "'x'"
        ```
    """

    def __init__(self, default_fn: F) -> None:
        super().__init__(default_fn)
        self._self_name = default_fn.__name__
        self._self_default = default_fn
        self._self_instances: dict[type, Callable[..., Any]] = {}

    def instance(self, *types: type) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register an implementation for one or more types.

        Example:
            ```python
            @show.instance(list, tuple)
            def _show_seq(value) -> str:
                return f'Seq({len(value)})'
            ```
        """

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            for type_ in types:
                self._self_instances[type_] = fn
            return fn

        return decorator

    def dispatch(self, value_type: type) -> Callable[..., Any]:
        """Return the implementation that would handle ``value_type``."""
        for base in value_type.__mro__:
            if base in self._self_instances:
                return self._self_instances[base]
        return self._self_default

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if not args:
            raise TypeError(f'{self._self_name}() requires at least one argument')
        return self.dispatch(type(args[0]))(*args, **kwargs)

    def __repr__(self) -> str:
        return f'<typeclass {self._self_name} with {len(self._self_instances)} instances>'


def typeclass(fn: F) -> TypeClass[F]:
    """Turn ``fn`` into a typeclass whose body is the fallback implementation."""
    return TypeClass(fn)
