"""Runtime: supervised concurrent units for the effect engine.

Provides:
- AsyncHandle / spawn / await_handle: cancellable units with bounded waits
- Executor: optional supervisor for top-level runs
- ExecutorBackend / LocalBackend: where units actually execute
"""

from __future__ import annotations

from klaw_effect.runtime._backends import ExecutorBackend
from klaw_effect.runtime._backends.local import LocalBackend
from klaw_effect.runtime.executor import Executor
from klaw_effect.runtime.handle import AsyncHandle, ExitReason, await_handle, spawn

__all__ = [
    'AsyncHandle',
    'Executor',
    'ExecutorBackend',
    'ExitReason',
    'LocalBackend',
    'await_handle',
    'spawn',
]
