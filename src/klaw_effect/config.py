"""Engine configuration: EffectConfig, environment loading and initialization.

There is no process-wide configuration. ``run`` takes an ``EffectConfig``
argument that defaults to ``DEFAULT_CONFIG``; ``load_config`` builds one from
environment variables and keyword overrides and returns it without storing it.
"""

from __future__ import annotations

import os
import pathlib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any

import msgspec
import psutil

from klaw_effect._logging import configure_logging
from klaw_effect.context import DEFAULT_SPAN_NAME
from klaw_effect.summarize import summarize
from klaw_effect.types import LogLevel, SpanName, TimeoutSeconds

__all__ = [
    'DEFAULT_CONFIG',
    'EffectConfig',
    'detect_concurrency',
    'init',
    'load_config',
]

ENV_PREFIX = 'KLAW_EFFECT_'


@dataclass(frozen=True)
class EffectConfig:
    """Configuration for running effects.

    Attributes:
        timeout: Seconds allowed per ``run`` when the context sets none.
        telemetry_enabled: Master switch for run telemetry.
        telemetry_prefix: Leading parts of every telemetry event name.
        default_span_name: Span name used when a context has none.
        summarizer: Bounded summarizer applied to results in stop events.
        log_level: Logging level applied by ``init``. None = leave logging alone.
    """

    timeout: float = 5.0
    telemetry_enabled: bool = True
    telemetry_prefix: tuple[str, ...] = ('klaw', 'effect')
    default_span_name: str = DEFAULT_SPAN_NAME
    summarizer: Callable[[Any], Any] = summarize
    log_level: str | None = None

    def with_overrides(self, **overrides: Any) -> EffectConfig:
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)


DEFAULT_CONFIG = EffectConfig()


class _EnvConfig(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    timeout: TimeoutSeconds | None = None
    telemetry: bool | None = None
    span_name: SpanName | None = None
    log_level: LogLevel | None = None


def _read_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    for key in ('timeout', 'telemetry', 'span_name', 'log_level'):
        value = environ.get(ENV_PREFIX + key.upper())
        if value is None or value == '':
            continue
        if key == 'telemetry':
            value = value.strip().lower()
        elif key == 'log_level':
            value = value.strip().upper()
        raw[key] = value
    return raw


def load_config(
    environ: Mapping[str, str] | None = None,
    *,
    base: EffectConfig = DEFAULT_CONFIG,
    **overrides: Any,
) -> EffectConfig:
    """Build an EffectConfig from environment variables and keyword overrides.

    Recognized variables: ``KLAW_EFFECT_TIMEOUT`` (seconds),
    ``KLAW_EFFECT_TELEMETRY`` (true/false), ``KLAW_EFFECT_SPAN_NAME`` and
    ``KLAW_EFFECT_LOG_LEVEL``. Keyword overrides win over the environment.

    Args:
        environ: Mapping to read instead of ``os.environ``.
        base: Config the loaded values are applied on top of.
        **overrides: EffectConfig fields to set explicitly.

    Returns:
        The resulting EffectConfig. Nothing is stored globally.

    Raises:
        msgspec.ValidationError: If an environment value is out of range or malformed.

    Example:
        ```python
        config = load_config({'KLAW_EFFECT_TIMEOUT': '0.5'})
        config.timeout
        # 0.5
        ```
    """
    environ = os.environ if environ is None else environ
    decoded = msgspec.convert(_read_environ(environ), type=_EnvConfig, strict=False)

    fields: dict[str, Any] = {}
    if decoded.timeout is not None:
        fields['timeout'] = float(decoded.timeout)
    if decoded.telemetry is not None:
        fields['telemetry_enabled'] = decoded.telemetry
    if decoded.span_name is not None:
        fields['default_span_name'] = decoded.span_name
    if decoded.log_level is not None:
        fields['log_level'] = decoded.log_level
    fields.update(overrides)
    return replace(base, **fields)


def init(environ: Mapping[str, str] | None = None, **overrides: Any) -> EffectConfig:
    """Load configuration and apply its logging level.

    Returns the config for the caller to pass to ``run``; ``init`` keeps no
    reference to it.

    Example:
        ```python
        config = init(log_level='INFO', timeout=2.0)
        result = await run(effect, env, config=config)
        ```
    """
    config = load_config(environ, **overrides)
    if config.log_level is not None:
        configure_logging(config.log_level)
    return config


def detect_concurrency() -> int:
    """Detect a worker limit from local system resources.

    Uses physical CPU cores, capped by container CPU limits (cgroups) and by
    available memory at roughly one worker per GiB. The result is clamped to
    the range 1 to 256.
    """
    try:
        cores = psutil.cpu_count(logical=False)
        if cores is None:
            cores = psutil.cpu_count(logical=True) or 4

        container_limit = _detect_container_cpu_limit()
        if container_limit is not None:
            cores = min(cores, container_limit)

        available_gb = psutil.virtual_memory().available / (1024**3)
        cores = min(cores, max(1, int(available_gb)))

        return max(1, min(256, cores))
    except (OSError, RuntimeError, psutil.Error):
        return 4


def _detect_container_cpu_limit() -> int | None:
    """Detect CPU limit in containerized environments."""
    # cgroups v2
    try:
        content = pathlib.Path('/sys/fs/cgroup/cpu.max').read_text().strip()
        quota, period = content.split()
        if quota != 'max':
            return max(1, int(int(quota) / int(period)))
    except (FileNotFoundError, ValueError, PermissionError):
        pass

    # cgroups v1
    try:
        quota_v1 = int(pathlib.Path('/sys/fs/cgroup/cpu/cpu.cfs_quota_us').read_text().strip())
        period_v1 = int(pathlib.Path('/sys/fs/cgroup/cpu/cpu.cfs_period_us').read_text().strip())
        if quota_v1 > 0:
            return max(1, quota_v1 // period_v1)
    except (FileNotFoundError, ValueError, PermissionError):
        pass

    return None
