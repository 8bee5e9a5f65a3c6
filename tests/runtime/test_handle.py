"""Tests for AsyncHandle, spawn and await_handle."""

from __future__ import annotations

import time

import anyio
import pytest

from klaw_effect import Cancelled, Cause, Err, InternalFailure, Ok, Stage
from klaw_effect.runtime import AsyncHandle, ExitReason, await_handle, spawn


async def _value(value: object, delay: float = 0.0) -> object:
    await anyio.sleep(delay)
    return value


async def _raise(message: str) -> object:
    await anyio.sleep(0)
    raise ValueError(message)


class TestSpawn:
    """Tests for spawn() and the handle lifecycle."""

    async def test_completes(self) -> None:
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, _value, 42)
            assert isinstance(handle, AsyncHandle)
            assert await handle == 42
        assert not handle.is_running()
        assert handle.exit_reason == ExitReason.SUCCESS
        assert handle.result() == Ok(42)

    async def test_failure(self) -> None:
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, _raise, 'bad')
            with pytest.raises(ValueError, match='bad'):
                await handle
        assert handle.exit_reason == ExitReason.ERROR
        assert isinstance(handle.result().error, ValueError)

    async def test_cancel_running(self) -> None:
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, _value, 1, 10)
            await anyio.sleep(0.01)
            handle.cancel('stop')
            assert handle.exit_reason == ExitReason.CANCELLED
            assert handle.result() == Err(Cancelled('stop'))

    async def test_cancel_before_start(self) -> None:
        """A handle cancelled before its first checkpoint never completes normally."""
        started = time.monotonic()
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, _value, 1, 10)
            handle.cancel()
        assert time.monotonic() - started < 1
        assert handle.exit_reason == ExitReason.CANCELLED

    async def test_cancel_completed_is_noop(self) -> None:
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, _value, 'done')
            await handle
            handle.cancel()
        assert handle.exit_reason == ExitReason.SUCCESS

    async def test_result_before_completion_raises(self) -> None:
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, _value, 1, 10)
            with pytest.raises(RuntimeError, match='not yet complete'):
                handle.result()
            handle.cancel()

    async def test_outer_cancellation_settles_handle(self) -> None:
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, _value, 1, 10)
            await anyio.sleep(0.01)
            tg.cancel_scope.cancel()
        assert not handle.is_running()
        assert handle.exit_reason == ExitReason.CANCELLED


class TestAwaitHandle:
    """Tests for await_handle() normalization."""

    async def test_ok_passes_through(self) -> None:
        assert await await_handle(_value(Ok(1)), 1.0) == Ok(1)

    async def test_err_passes_through(self) -> None:
        assert await await_handle(_value(Err('domain')), 1.0) == Err('domain')

    async def test_plain_result_without_awaiting(self) -> None:
        assert await await_handle(Ok('ready'), 1.0) == Ok('ready')

    async def test_invalid_outcome(self) -> None:
        result = await await_handle(_value('raw'), 1.0)
        assert result == Err(InternalFailure(Stage.RUN, Cause.INVALID_RESULT, 'raw'))

    async def test_non_awaitable_invalid(self) -> None:
        result = await await_handle(123, 1.0)
        assert result == Err(InternalFailure.invalid_result(Stage.RUN, 123))

    async def test_exception_captured(self) -> None:
        result = await await_handle(_raise('kaboom'), 1.0)
        assert isinstance(result, Err)
        assert result.error.stage == Stage.RUN
        assert isinstance(result.error.exception, ValueError)

    async def test_timeout(self) -> None:
        started = time.monotonic()
        result = await await_handle(_value(Ok(1), 10), 0.05)
        assert result == Err(InternalFailure.timed_out())
        assert time.monotonic() - started < 1

    async def test_timeout_cancels_handle(self) -> None:
        async with anyio.create_task_group() as tg:
            handle = spawn(tg, _value, Ok(1), 10)
            result = await await_handle(handle, 0.05)
        assert result.error.is_timeout
        assert handle.exit_reason == ExitReason.CANCELLED

    async def test_user_timeout_error_is_an_exception(self) -> None:
        """A TimeoutError raised by the unit is a captured exception, not a run timeout."""

        async def times_out() -> object:
            raise TimeoutError('upstream')

        result = await await_handle(times_out(), 1.0)
        assert not result.error.is_timeout
        assert isinstance(result.error.exception, TimeoutError)

    async def test_custom_stage(self) -> None:
        result = await await_handle(_value('raw'), 1.0, stage=Stage.LIFT_RESULT)
        assert result.error.stage == Stage.LIFT_RESULT

    async def test_none_timeout_waits(self) -> None:
        assert await await_handle(_value(Ok('late'), 0.02), None) == Ok('late')
