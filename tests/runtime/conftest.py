"""Pytest configuration for runtime tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import anyio
import pytest

from klaw_effect import Context, SuccessEffect

type EffectFactory = Callable[[Any, float], SuccessEffect[Any, Any]]


@pytest.fixture
def effect_after() -> EffectFactory:
    """Build a success-shaped effect whose thunk sleeps, then returns ``result``.

    A ``delay`` of ``float('inf')`` never finishes.
    """

    def factory(result: Any, delay: float) -> SuccessEffect[Any, Any]:
        async def thunk(env: Any) -> Any:
            await anyio.sleep(delay)
            return result

        return SuccessEffect(Context(), thunk)

    return factory
