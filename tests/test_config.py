"""Tests for engine configuration and initialization."""

from __future__ import annotations

import dataclasses
from unittest.mock import patch

import msgspec
import psutil
import pytest

from klaw_effect import (
    DEFAULT_CONFIG,
    DEFAULT_SPAN_NAME,
    EffectConfig,
    detect_concurrency,
    init,
    load_config,
    summarize,
)
from klaw_effect.config import _detect_container_cpu_limit


class TestEffectConfig:
    """Tests for the EffectConfig dataclass."""

    def test_default_values(self) -> None:
        config = EffectConfig()
        assert config.timeout == 5.0
        assert config.telemetry_enabled is True
        assert config.telemetry_prefix == ('klaw', 'effect')
        assert config.default_span_name == DEFAULT_SPAN_NAME
        assert config.summarizer is summarize
        assert config.log_level is None

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.timeout = 1.0  # type: ignore[misc]

    def test_with_overrides(self) -> None:
        config = DEFAULT_CONFIG.with_overrides(timeout=0.5)
        assert config.timeout == 0.5
        assert DEFAULT_CONFIG.timeout == 5.0


class TestLoadConfig:
    """Tests for load_config()."""

    def test_empty_environment_gives_defaults(self) -> None:
        assert load_config({}) == DEFAULT_CONFIG

    def test_reads_environment(self) -> None:
        config = load_config(
            {
                'KLAW_EFFECT_TIMEOUT': '0.25',
                'KLAW_EFFECT_TELEMETRY': 'False',
                'KLAW_EFFECT_SPAN_NAME': 'orders.run',
                'KLAW_EFFECT_LOG_LEVEL': 'debug',
            }
        )
        assert config.timeout == 0.25
        assert config.telemetry_enabled is False
        assert config.default_span_name == 'orders.run'
        assert config.log_level == 'DEBUG'

    def test_blank_values_ignored(self) -> None:
        assert load_config({'KLAW_EFFECT_TIMEOUT': ''}).timeout == 5.0

    def test_overrides_win(self) -> None:
        config = load_config({'KLAW_EFFECT_TIMEOUT': '1'}, timeout=9.0)
        assert config.timeout == 9.0

    def test_base_config(self) -> None:
        base = EffectConfig(telemetry_prefix=('svc',))
        assert load_config({}, base=base).telemetry_prefix == ('svc',)

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('KLAW_EFFECT_TIMEOUT', '3')
        assert load_config().timeout == 3.0

    @pytest.mark.parametrize(
        'environ',
        [
            {'KLAW_EFFECT_TIMEOUT': 'soon'},
            {'KLAW_EFFECT_TIMEOUT': '-1'},
            {'KLAW_EFFECT_TELEMETRY': 'maybe'},
            {'KLAW_EFFECT_LOG_LEVEL': 'verbose'},
        ],
    )
    def test_invalid_values_raise(self, environ: dict[str, str]) -> None:
        with pytest.raises(msgspec.ValidationError):
            load_config(environ)


class TestInit:
    """Tests for init()."""

    def test_returns_config_without_logging(self) -> None:
        with patch('klaw_effect.config.configure_logging') as configure:
            config = init({}, timeout=2.0)
        assert config.timeout == 2.0
        configure.assert_not_called()

    def test_configures_logging_when_level_set(self) -> None:
        with patch('klaw_effect.config.configure_logging') as configure:
            config = init({'KLAW_EFFECT_LOG_LEVEL': 'info'})
        assert config.log_level == 'INFO'
        configure.assert_called_once_with('INFO')


class TestDetectConcurrency:
    """Tests for detect_concurrency()."""

    def test_within_bounds(self) -> None:
        assert 1 <= detect_concurrency() <= 256

    def test_uses_physical_cores(self) -> None:
        with (
            patch('psutil.cpu_count', return_value=8),
            patch('klaw_effect.config._detect_container_cpu_limit', return_value=None),
            patch('psutil.virtual_memory') as memory,
        ):
            memory.return_value.available = 64 * 1024**3
            assert detect_concurrency() == 8

    def test_container_limit_caps(self) -> None:
        with (
            patch('psutil.cpu_count', return_value=16),
            patch('klaw_effect.config._detect_container_cpu_limit', return_value=2),
            patch('psutil.virtual_memory') as memory,
        ):
            memory.return_value.available = 64 * 1024**3
            assert detect_concurrency() == 2

    def test_memory_caps(self) -> None:
        with (
            patch('psutil.cpu_count', return_value=16),
            patch('klaw_effect.config._detect_container_cpu_limit', return_value=None),
            patch('psutil.virtual_memory') as memory,
        ):
            memory.return_value.available = 3 * 1024**3
            assert detect_concurrency() == 3

    def test_psutil_failure_falls_back(self) -> None:
        with patch('psutil.cpu_count', side_effect=psutil.Error('unavailable')):
            assert detect_concurrency() == 4

    def test_container_limit_is_none_or_positive(self) -> None:
        limit = _detect_container_cpu_limit()
        assert limit is None or limit >= 1
