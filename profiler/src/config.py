"""Configuration management for the Fibonacci profiling loop.

Uses Pydantic Settings for environment-based configuration. The defaults
reproduce the fixed run: fib(45), five times, sampled into ``cpu_profile.json``.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProfilerConfig(BaseSettings):
    """Profiling loop configuration."""

    # Workload
    n: int = Field(default=45, ge=0, description="Fibonacci term to compute")
    iterations: int = Field(default=5, gt=0, description="Number of repetitions")
    output_path: str = Field(default="cpu_profile.json", description="CPU profile output file")
    sample_interval_ms: int = Field(default=10, gt=0, description="Sampling interval in milliseconds")

    # Service configuration
    service_name: str = Field(default="fib-profiler", description="Service name")
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=True, description="Render logs as JSON")
    metrics_port: int = Field(
        default=0, ge=0, lt=65536, description="Prometheus metrics port (0 disables)"
    )

    # Tracing
    tracing_enabled: bool = Field(default=False, description="Enable OpenTelemetry tracing")
    tracing_otlp_endpoint: str = Field(
        default="http://localhost:4318/v1/traces", description="OTLP/HTTP traces endpoint"
    )

    model_config = SettingsConfigDict(
        env_prefix="FIB_PROFILE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper


# Global config instance
_config_instance: ProfilerConfig | None = None


def get_config() -> ProfilerConfig:
    """Get or create configuration instance.

    Returns:
        ProfilerConfig instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = ProfilerConfig()
    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config_instance
    _config_instance = None
