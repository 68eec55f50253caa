"""
Unit tests for service and profiler configuration.

Tests cover:
- Defaults reproduce the fixed behavior (port 8000, 1s delay, fib(45) x5)
- Environment variable overrides
- Validation of levels, formats, ports and paths
- Settings caching and cache reset
"""

import pytest
from pydantic import ValidationError

from api.src.config import Settings, clear_settings_cache, get_settings
from profiler.src.config import ProfilerConfig, get_config, reset_config


@pytest.fixture(autouse=True)
def fresh_caches():
    clear_settings_cache()
    reset_config()
    yield
    clear_settings_cache()
    reset_config()


class TestServiceSettings:
    """Test hello service settings"""

    def test_defaults(self):
        settings = Settings()

        assert settings.port == 8000
        assert settings.hello_path == "/hello"
        assert settings.hello_message == "Hello World"
        assert settings.hello_delay_seconds == 1.0
        assert settings.tracing_enabled is False
        assert settings.json_logs is True

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("HELLO_API_PORT", "9090")
        monkeypatch.setenv("HELLO_API_HELLO_DELAY_SECONDS", "0.25")
        monkeypatch.setenv("HELLO_API_LOG_FORMAT", "TEXT")

        settings = Settings()

        assert settings.port == 9090
        assert settings.hello_delay_seconds == 0.25
        assert settings.log_format == "text"
        assert settings.json_logs is False

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"log_level": "VERBOSE"},
            {"log_format": "xml"},
            {"environment": "qa"},
            {"port": 0},
            {"port": 70000},
            {"hello_delay_seconds": -1},
            {"hello_path": "hello"},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_get_settings_cached(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("HELLO_API_PORT", "9191")

        assert get_settings() is first

        clear_settings_cache()
        assert get_settings().port == 9191


class TestProfilerConfig:
    """Test profiling loop configuration"""

    def test_defaults(self):
        config = ProfilerConfig()

        assert config.n == 45
        assert config.iterations == 5
        assert config.output_path == "cpu_profile.json"
        assert config.sample_interval_ms == 10
        assert config.metrics_port == 0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("FIB_PROFILE_N", "20")
        monkeypatch.setenv("FIB_PROFILE_OUTPUT_PATH", "/tmp/other.prof")

        config = get_config()

        assert config.n == 20
        assert config.output_path == "/tmp/other.prof"

    @pytest.mark.parametrize("overrides", [{"n": -1}, {"iterations": 0}, {"sample_interval_ms": 0}, {"log_level": "loud"}])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            ProfilerConfig(**overrides)

    def test_reset_config(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("FIB_PROFILE_ITERATIONS", "2")

        assert get_config() is first

        reset_config()
        assert get_config().iterations == 2
