"""Pytest configuration and shared fixtures for klaw-effect tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from klaw_effect import telemetry


@pytest.fixture(autouse=True)
def isolated_telemetry() -> Iterator[None]:
    """Detach telemetry handlers before and after each test."""
    telemetry.clear_handlers()
    yield
    telemetry.clear_handlers()


@pytest.fixture
def events() -> list[tuple[tuple[str, ...], dict[str, Any], dict[str, Any]]]:
    """Telemetry events captured during the test."""
    captured: list[tuple[tuple[str, ...], dict[str, Any], dict[str, Any]]] = []

    def handler(event: tuple[str, ...], measurements: dict[str, Any], metadata: dict[str, Any]) -> None:
        captured.append((event, measurements, metadata))

    telemetry.attach(handler)
    return captured


class CallCounter:
    """Records which items a step function was invoked with."""

    def __init__(self) -> None:
        self.calls: list[Any] = []

    def __call__(self, item: Any) -> Any:
        self.calls.append(item)
        return item


@pytest.fixture
def counter() -> CallCounter:
    return CallCounter()
