"""AsyncHandle: a supervised, cancellable unit of concurrent work.

``spawn`` starts an async callable inside an anyio task group and returns an
``AsyncHandle`` for it. ``await_handle`` is the single place where the engine
suspends on a unit: it bounds the wait with a timeout and always produces a
Result, whatever the unit did.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import aiologic
import anyio
from anyio.abc import TaskGroup

from klaw_effect._logging import get_logger
from klaw_effect.errors import Cancelled, CancelledError, InternalFailure, Stage
from klaw_effect.result import Err, Ok, Result

__all__ = [
    'AsyncHandle',
    'ExitReason',
    'await_handle',
    'spawn',
]

logger = get_logger(__name__)


class ExitReason(Enum):
    """Reason a unit exited."""

    SUCCESS = 'success'
    CANCELLED = 'cancelled'
    ERROR = 'error'


class AsyncHandle[T]:
    """Handle to a running or completed unit.

    Provides methods to cancel, check status, and await the outcome.
    Completion is signalled through an aiologic Event, so the handle can be
    awaited from any task.

    Attributes:
        _result: The cached outcome once completed.
        _event: Event signaling completion.
        _exit_reason: Why the unit exited.
        _cancel_scope: Anyio cancel scope for this unit.
    """

    __slots__ = (
        '_cancel_scope',
        '_completed',
        '_event',
        '_exception',
        '_exit_reason',
        '_result',
    )

    def __init__(self) -> None:
        self._result: T | None = None
        self._exception: BaseException | None = None
        self._event: aiologic.Event = aiologic.Event()
        self._exit_reason: ExitReason | None = None
        self._cancel_scope: anyio.CancelScope | None = None
        self._completed = False

    def _set_cancel_scope(self, scope: anyio.CancelScope) -> None:
        self._cancel_scope = scope

    def _complete(self, result: T, exit_reason: ExitReason = ExitReason.SUCCESS) -> None:
        """Mark unit as complete with an outcome. A settled handle is left alone."""
        if self._completed:
            return
        self._result = result
        self._exit_reason = exit_reason
        self._completed = True
        self._event.set()

    def _fail(self, exc: BaseException, exit_reason: ExitReason = ExitReason.ERROR) -> None:
        """Mark unit as failed with an exception. A settled handle is left alone."""
        if self._completed:
            return
        self._exception = exc
        self._exit_reason = exit_reason
        self._completed = True
        self._event.set()

    def cancel(self, reason: str | None = None) -> None:
        """Cancel the unit.

        Waiters are released immediately with ``CancelledError``; the unit
        itself stops at its next checkpoint.

        Args:
            reason: Optional reason for cancellation.
        """
        if self._cancel_scope is not None and not self._completed:
            self._cancel_scope.cancel()
            self._fail(CancelledError(reason), ExitReason.CANCELLED)

    def is_running(self) -> bool:
        return not self._completed

    @property
    def exit_reason(self) -> ExitReason | None:
        """Get the exit reason, or None while the unit is running."""
        return self._exit_reason

    async def wait(self) -> T:
        """Wait for completion and return the outcome.

        Raises:
            Exception: If the unit failed with an exception.
            CancelledError: If the unit was cancelled.
        """
        await self._event
        if self._exception is not None:
            raise self._exception
        return self._result  # type: ignore[return-value]

    def result(self) -> Result[T, Cancelled | Exception]:
        """Get the outcome as a Result (non-blocking).

        Raises:
            RuntimeError: If the unit is not yet complete.
        """
        if not self._completed:
            msg = 'Task not yet complete. Use await or wait() first.'
            raise RuntimeError(msg)
        if self._exception is not None:
            if isinstance(self._exception, CancelledError):
                return Err(self._exception.to_struct())
            if isinstance(self._exception, Exception):
                return Err(self._exception)
            return Err(Exception(str(self._exception)))
        return Ok(self._result)  # type: ignore[arg-type]

    def __await__(self) -> Any:
        return self.wait().__await__()


def spawn[T](tg: TaskGroup, fn: Callable[..., Awaitable[T]], *args: Any) -> AsyncHandle[T]:
    """Start ``fn(*args)`` in ``tg`` and return its handle.

    The cancel scope is created before scheduling, so ``cancel()`` works even
    if the unit has not started yet: it then stops at its first checkpoint.

    Example:
        ```python
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, fetch_user, 42)
            user = await handle
        ```
    """
    handle: AsyncHandle[T] = AsyncHandle()
    scope = anyio.CancelScope()
    handle._set_cancel_scope(scope)

    async def _execute() -> None:
        try:
            with scope:
                try:
                    result = await fn(*args)
                except Exception as exc:
                    if scope.cancel_called:
                        handle._fail(CancelledError('Task cancelled'), ExitReason.CANCELLED)
                    else:
                        handle._fail(exc, ExitReason.ERROR)
                else:
                    handle._complete(result)
        finally:
            # Outer cancellation never reaches the except clause above.
            handle._fail(CancelledError('Task cancelled'), ExitReason.CANCELLED)

    tg.start_soon(_execute)
    return handle


def _normalize_outcome(outcome: Any, stage: str) -> Result[Any, Any]:
    if isinstance(outcome, Ok | Err):
        return outcome
    return Err(InternalFailure.invalid_result(stage, outcome))


async def await_handle(handle: Any, timeout: float | None, *, stage: str = Stage.RUN) -> Result[Any, Any]:
    """Wait for a unit's outcome with a timeout and normalize it to a Result.

    ``handle`` is whatever a thunk produced: an ``AsyncHandle``, another
    awaitable, or an already-computed Result.

    - ``Ok`` / ``Err`` outcomes are returned unchanged.
    - Any other outcome becomes ``Err(InternalFailure(stage, 'invalid_result'))``.
    - An exception becomes ``Err(InternalFailure(stage, exc))``.
    - Exceeding ``timeout`` cancels the unit and yields
      ``Err(InternalFailure(stage, 'timeout'))``. ``None`` waits forever.
    """
    if not inspect.isawaitable(handle):
        return _normalize_outcome(handle, stage)

    outcome: Any = None
    with anyio.move_on_after(timeout) as scope:
        try:
            outcome = await handle
        except Exception as exc:  # noqa: BLE001
            logger.warning('unit_failed', stage=str(stage), exc_type=type(exc).__name__, error=str(exc))
            return Err(InternalFailure.captured(stage, exc))

    if scope.cancelled_caught:
        if isinstance(handle, AsyncHandle):
            handle.cancel('timeout')
        elif inspect.iscoroutine(handle):
            handle.close()
        logger.warning('unit_timed_out', stage=str(stage), timeout=timeout)
        return Err(InternalFailure.timed_out(stage))

    return _normalize_outcome(outcome, stage)
