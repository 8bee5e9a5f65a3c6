"""Executor: supervised execution of top-level effect units."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import TYPE_CHECKING, Any

from klaw_effect._logging import get_logger
from klaw_effect.config import detect_concurrency
from klaw_effect.errors import Stage
from klaw_effect.runtime._backends.local import LocalBackend
from klaw_effect.runtime.handle import AsyncHandle, await_handle

if TYPE_CHECKING:
    from klaw_effect.result import Result
    from klaw_effect.runtime._backends import ExecutorBackend

__all__ = ['Executor']

logger = get_logger(__name__)


class Executor:
    """Supervising executor for units started by ``run``.

    Units submitted here live in the executor's task group rather than in
    the caller's task, so they can be cancelled, inspected through their
    handles and awaited at shutdown.
    Enter and exit it from the same task; units may be submitted from
    any task while it is open.

    Example:
        ```python
        async with Executor(max_workers=4) as ex:
            result = await run(effect, env, executor=ex)
        ```
    """

    __slots__ = ('_backend', '_handles', '_max_workers', '_shutdown_timeout', '_started')

    def __init__(
        self,
        max_workers: int | None = None,
        *,
        backend: ExecutorBackend | None = None,
        shutdown_timeout: float | None = None,
    ) -> None:
        """Create an executor.

        Args:
            max_workers: Worker threads for sync callables. Auto-detected if None.
            backend: Backend to use instead of a LocalBackend.
            shutdown_timeout: Seconds to wait for pending units on exit. None waits forever.
        """
        self._max_workers = max_workers
        self._backend: ExecutorBackend | None = backend
        self._handles: list[AsyncHandle[Any]] = []
        self._shutdown_timeout = shutdown_timeout
        self._started = False

    async def __aenter__(self) -> Executor:
        if self._backend is None:
            workers = self._max_workers if self._max_workers is not None else detect_concurrency()
            self._backend = LocalBackend(max_workers=workers)
        await self._backend.start()
        self._started = True
        logger.debug('executor_started', backend=type(self._backend).__name__)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the executor context, waiting for pending units."""
        self._started = False
        if self._backend is not None:
            await self._backend.shutdown(wait=True, timeout=self._shutdown_timeout)
        logger.debug('executor_stopped', submitted=len(self._handles))

    def _ensure_started(self) -> ExecutorBackend:
        if not self._started or self._backend is None:
            msg = 'Executor must be used as async context manager: async with Executor() as ex:'
            raise RuntimeError(msg)
        return self._backend

    @property
    def handles(self) -> list[AsyncHandle[Any]]:
        """Handles of every unit submitted so far."""
        return list(self._handles)

    async def submit[T](
        self,
        fn: Callable[..., T] | Callable[..., Awaitable[T]],
        *args: Any,
    ) -> AsyncHandle[T]:
        """Submit a single unit for execution.

        Raises:
            RuntimeError: If called outside ``async with``.
        """
        backend = self._ensure_started()
        handle = await backend.run(fn, *args)
        self._handles.append(handle)
        return handle

    async def gather(self, *handles: AsyncHandle[Any], timeout: float | None = None) -> list[Result[Any, Any]]:
        """Wait for handles and return their outcomes as Results, in the given order."""
        return [await await_handle(handle, timeout, stage=Stage.RUN) for handle in handles]
