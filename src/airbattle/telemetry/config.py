"""Telemetry configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

_TRUTHY = {"1", "true", "yes", "on"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class TelemetryConfig(BaseModel):
    """Runtime configuration for logging and OpenTelemetry exporters."""

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False
    log_level: str = "WARNING"
    otlp_traces_endpoint: str | None = None
    otlp_metrics_endpoint: str | None = None
    otlp_logs_endpoint: str | None = None
    service_name: str = "airbattle"
    service_namespace: str = "game"
    resource_attributes: dict[str, str] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @classmethod
    def from_env(cls, **overrides: Any) -> "TelemetryConfig":
        """Construct config from env vars (`AIRBATTLE_*` + `OTEL_*`)."""

        data: Dict[str, Any] = cls().model_dump()
        data.update(overrides)

        bool_fields = {
            "enable_tracing": ("AIRBATTLE_ENABLE_TRACING", "OTEL_TRACES_ENABLED"),
            "enable_metrics": ("AIRBATTLE_ENABLE_METRICS", "OTEL_METRICS_ENABLED"),
            "enable_logging": ("AIRBATTLE_ENABLE_LOGGING", "OTEL_LOGS_ENABLED"),
        }
        for field, env_names in bool_fields.items():
            for name in env_names:
                value = os.getenv(name)
                if value is not None:
                    data[field] = value.strip().lower() in _TRUTHY
                    break

        log_level = os.getenv("AIRBATTLE_LOG_LEVEL")
        if log_level:
            data["log_level"] = log_level

        base_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        for signal in ("traces", "metrics", "logs"):
            key = f"otlp_{signal}_endpoint"
            if data.get(key):
                continue
            explicit = os.getenv(f"OTEL_EXPORTER_OTLP_{signal.upper()}_ENDPOINT")
            if explicit:
                data[key] = explicit
            elif base_endpoint:
                data[key] = f"{base_endpoint.rstrip('/')}/v1/{signal}"

        service_name = os.getenv("OTEL_SERVICE_NAME")
        service_namespace = os.getenv("OTEL_SERVICE_NAMESPACE")
        if service_name:
            data["service_name"] = service_name
        if service_namespace:
            data["service_namespace"] = service_namespace

        resource_env = os.getenv("OTEL_RESOURCE_ATTRIBUTES")
        if resource_env:
            attrs = {**data.get("resource_attributes", {})}
            for part in resource_env.split(","):
                if "=" not in part:
                    continue
                key, value = part.split("=", 1)
                attrs[key.strip()] = value.strip()
            data["resource_attributes"] = attrs

        # Auto-enable exporters when endpoints are configured.
        if data.get("otlp_traces_endpoint"):
            data["enable_tracing"] = True
        if data.get("otlp_metrics_endpoint"):
            data["enable_metrics"] = True
        if data.get("otlp_logs_endpoint"):
            data["enable_logging"] = True

        return cls(**data)

    def resource(self) -> dict[str, str]:
        """Resource attributes shared by all exporters."""
        attributes = {
            "service.name": self.service_name,
            "service.namespace": self.service_namespace,
        }
        attributes.update(self.resource_attributes)
        return attributes


@lru_cache(maxsize=1)
def load_telemetry_config() -> TelemetryConfig:
    """Load and cache telemetry config from the environment."""

    return TelemetryConfig.from_env()


def init_telemetry(config: TelemetryConfig | None = None) -> TelemetryConfig:
    """Initialise telemetry subsystems lazily."""

    from .logger import configure_console_logging, init_logging
    from .metrics import init_metrics
    from .tracer import init_tracing

    resolved = config or load_telemetry_config()

    configure_console_logging(resolved.log_level)
    if resolved.enable_tracing:
        init_tracing(resolved)
    if resolved.enable_metrics:
        init_metrics(resolved)
    if resolved.enable_logging:
        init_logging(resolved)
    return resolved
