"""Tests for configuration loading and validation."""

from dataclasses import replace

import pytest

from src.config import (
    AppConfig,
    BackendConfig,
    RoutingConfig,
    SchedulingConfig,
    _safe_bool,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_unknown_timezone(self):
        config = AppConfig(scheduling=replace(SchedulingConfig(), timezone="Mars/Olympus"))
        with pytest.raises(ValueError, match="SERVICE_TIMEZONE"):
            _validate_config(config)

    def test_negative_buffer(self):
        config = AppConfig(scheduling=replace(SchedulingConfig(), buffer_minutes=-5))
        with pytest.raises(ValueError, match="BUFFER_MINUTES"):
            _validate_config(config)

    def test_zero_default_duration(self):
        config = AppConfig(scheduling=replace(SchedulingConfig(), default_duration_minutes=0))
        with pytest.raises(ValueError, match="DEFAULT_DURATION_MINUTES"):
            _validate_config(config)

    def test_depot_latitude_out_of_range(self):
        config = AppConfig(scheduling=replace(SchedulingConfig(), depot_lat=91.0))
        with pytest.raises(ValueError, match="DEPOT_LAT"):
            _validate_config(config)

    def test_depot_longitude_out_of_range(self):
        config = AppConfig(scheduling=replace(SchedulingConfig(), depot_lng=-181.0))
        with pytest.raises(ValueError, match="DEPOT_LNG"):
            _validate_config(config)

    def test_zero_routing_timeout(self):
        config = AppConfig(routing=replace(RoutingConfig(), timeout_sec=0))
        with pytest.raises(ValueError, match="ROUTING_TIMEOUT_SEC"):
            _validate_config(config)

    def test_negative_backend_timeout(self):
        config = AppConfig(backend=replace(BackendConfig(), timeout_sec=-1.0))
        with pytest.raises(ValueError, match="BACKEND_TIMEOUT_SEC"):
            _validate_config(config)

    def test_empty_routing_url(self):
        config = AppConfig(routing=replace(RoutingConfig(), api_url=""))
        with pytest.raises(ValueError, match="ROUTING_API_URL"):
            _validate_config(config)


class TestEnvParsing:
    def test_safe_int_parsing(self):
        from src.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        from src.config import _safe_int

        monkeypatch.setenv("SCHED_TEST_INT", "thirty")
        with pytest.raises(ValueError, match="SCHED_TEST_INT"):
            _safe_int("SCHED_TEST_INT", "30")

    def test_safe_float_parsing(self):
        from src.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("1", True), ("YES", True), ("off", False), ("0", False),
    ])
    def test_safe_bool_parsing(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SCHED_TEST_FLAG", raw)
        assert _safe_bool("SCHED_TEST_FLAG", "true") is expected

    def test_safe_bool_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("SCHED_TEST_FLAG", "maybe")
        with pytest.raises(ValueError, match="SCHED_TEST_FLAG"):
            _safe_bool("SCHED_TEST_FLAG", "true")
