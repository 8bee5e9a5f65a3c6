"""Backend protocol for the supervising executor."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from klaw_effect.runtime.handle import AsyncHandle

__all__ = ['ExecutorBackend']


@runtime_checkable
class ExecutorBackend(Protocol):
    """Protocol for execution backends.

    Backends run callables (sync or async) as supervised units and return
    AsyncHandle instances for them.

    Implementations:
        - LocalBackend: anyio task group + worker threads for sync callables
    """

    async def start(self) -> None:
        """Acquire resources in the owning task before the first ``run``."""
        ...

    async def run[T](
        self,
        fn: Callable[..., T] | Callable[..., Awaitable[T]],
        *args: Any,
    ) -> AsyncHandle[T]:
        """Start ``fn(*args)`` and return its handle."""
        ...

    async def shutdown(self, *, wait: bool = True, timeout: float | None = None) -> None:
        """Shutdown the backend gracefully.

        Args:
            wait: If True, wait for pending units to complete.
            timeout: Maximum time to wait for shutdown.
        """
        ...
