"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Safe defaults: every setting works without a .env file
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AlertingConfig(BaseModel):
    """Alert generation and deduplication policy."""

    cooldown_minutes: int = Field(
        default=15, gt=0, description="Window for suppressing repeat alerts per patient vital"
    )
    sink_timeout_seconds: float = Field(
        default=5.0, gt=0.0, description="Timeout for each alert store call"
    )
    thresholds_path: str | None = Field(
        default=None, description="Optional JSON file replacing the built-in threshold table"
    )


class MonitoringConfig(BaseModel):
    """Polling and concurrency settings for the patient monitoring loop."""

    poll_interval_seconds: float = Field(
        default=30.0, gt=0.0, description="Interval between monitoring cycles"
    )
    source_timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Timeout for fetching readings from one source"
    )
    max_concurrent_patients: int = Field(
        default=10, gt=0, description="Maximum number of patients evaluated at once"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    alerting: AlertingConfig = Field(default_factory=AlertingConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> LogLevel:
        v = val.strip().upper()
        return cast(
            LogLevel,
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    alerting_config = AlertingConfig(
        cooldown_minutes=int(os.getenv("ALERT_COOLDOWN_MINUTES", "15")),
        sink_timeout_seconds=float(os.getenv("SINK_TIMEOUT_SECONDS", "5.0")),
        thresholds_path=os.getenv("THRESHOLDS_PATH") or None,
    )

    monitoring_config = MonitoringConfig(
        poll_interval_seconds=float(os.getenv("POLL_INTERVAL_SECONDS", "30.0")),
        source_timeout_seconds=float(os.getenv("SOURCE_TIMEOUT_SECONDS", "10.0")),
        max_concurrent_patients=int(os.getenv("MAX_CONCURRENT_PATIENTS", "10")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        alerting=alerting_config,
        monitoring=monitoring_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def reset_config_cache() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    get_config.cache_clear()


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"✅ Configuration loaded for {config.environment} environment")

        if config.alerting.thresholds_path:
            from vitalwatch.domain.thresholds import load_threshold_table

            load_threshold_table(config.alerting.thresholds_path)
            print(f"✅ Thresholds loaded from {config.alerting.thresholds_path}")

    except Exception as e:
        print(f"❌ Configuration validation failed: {e}")
        raise


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\n🔧 CONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\n🚨 ALERTING CONFIGURATION")
    print(f"Cooldown: {config.alerting.cooldown_minutes}m")
    print(f"Sink Timeout: {config.alerting.sink_timeout_seconds}s")
    print(f"Thresholds: {config.alerting.thresholds_path or 'built-in defaults'}")

    print("\n📊 MONITORING CONFIGURATION")
    print(f"Poll Interval: {config.monitoring.poll_interval_seconds}s")
    print(f"Source Timeout: {config.monitoring.source_timeout_seconds}s")
    print(f"Max Concurrent Patients: {config.monitoring.max_concurrent_patients}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
