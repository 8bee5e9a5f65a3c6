"""LocalBackend: in-process execution using an anyio task group and worker threads."""

from __future__ import annotations

import contextlib
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import aiologic
import anyio
from anyio.abc import TaskGroup

from klaw_effect._logging import get_logger
from klaw_effect.runtime.handle import AsyncHandle, spawn

__all__ = ['LocalBackend']

logger = get_logger(__name__)


class LocalBackend:
    """Local execution backend using anyio.

    Owns one task group for its whole lifetime and tracks outstanding units
    with a CountdownEvent so ``shutdown`` can wait for them. ``start`` and
    ``shutdown`` must be awaited from the same task (the one that owns the
    executor); ``run`` may be called from any task in between.

    Attributes:
        _task_group: The anyio task group owning every unit.
        _exit_stack: Holds the entered task group until shutdown.
        _task_count: CountdownEvent tracking outstanding units.
        _limiter: Capacity limiter for worker threads running sync callables.
    """

    __slots__ = ('_exit_stack', '_limiter', '_max_workers', '_task_count', '_task_group', '_task_handles')

    def __init__(self, max_workers: int | None = None) -> None:
        """Create a LocalBackend.

        Args:
            max_workers: Maximum worker threads for sync callables. None uses anyio's default.
        """
        self._task_group: TaskGroup | None = None
        self._exit_stack: contextlib.AsyncExitStack | None = None
        self._task_handles: list[AsyncHandle[Any]] = []
        self._task_count: aiologic.CountdownEvent = aiologic.CountdownEvent()
        self._max_workers = max_workers
        self._limiter: anyio.CapacityLimiter | None = anyio.CapacityLimiter(max_workers) if max_workers else None

    @property
    def max_workers(self) -> int | None:
        return self._max_workers

    async def start(self) -> None:
        """Enter the task group in the calling task. Starting twice is a no-op."""
        if self._task_group is not None:
            return
        stack = contextlib.AsyncExitStack()
        self._task_group = await stack.enter_async_context(anyio.create_task_group())
        self._exit_stack = stack

    async def run[T](
        self,
        fn: Callable[..., T] | Callable[..., Awaitable[T]],
        *args: Any,
    ) -> AsyncHandle[T]:
        """Start ``fn(*args)`` and return its handle.

        Async callables run directly in the task group. Sync callables run in
        a worker thread; if they return an awaitable, it is awaited on the
        event loop.

        Raises:
            RuntimeError: If the backend has not been started.
        """
        if self._task_group is None:
            msg = 'LocalBackend is not started. Await start() first.'
            raise RuntimeError(msg)
        self._task_count.up()

        async def _tracked() -> Any:
            try:
                if inspect.iscoroutinefunction(fn):
                    return await fn(*args)
                outcome = await anyio.to_thread.run_sync(
                    lambda: fn(*args),
                    limiter=self._limiter,
                    abandon_on_cancel=True,
                )
                if inspect.isawaitable(outcome):
                    return await outcome
                return outcome
            finally:
                self._task_count.down()

        handle: AsyncHandle[T] = spawn(self._task_group, _tracked)
        self._task_handles.append(handle)
        return handle

    async def shutdown(self, *, wait: bool = True, timeout: float | None = None) -> None:
        """Shutdown the backend.

        Waits for units to complete if requested, cancels the rest, then
        exits the task group.

        Args:
            wait: If True, wait for pending units to complete.
            timeout: Maximum time to wait for pending units.
        """
        if self._task_group is None or self._exit_stack is None:
            return

        if wait:
            await self._wait_for_tasks(timeout)
        self._cancel_all_tasks()
        self._task_group.cancel_scope.cancel()
        await self._exit_stack.aclose()

        self._task_group = None
        self._exit_stack = None
        self._task_handles.clear()

    def _pending(self) -> list[AsyncHandle[Any]]:
        return [handle for handle in self._task_handles if handle.is_running()]

    async def _wait_for_tasks(self, timeout: float | None) -> None:
        if self._task_count.value == 0:
            return

        with anyio.move_on_after(timeout) as scope:
            await self._task_count
        if scope.cancelled_caught:
            logger.warning('backend_shutdown_timed_out', pending=len(self._pending()), timeout=timeout)

    def _cancel_all_tasks(self) -> None:
        for handle in self._pending():
            handle.cancel('shutdown')
