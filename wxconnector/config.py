"""Connector configuration loaded from a JSON file."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .entities import WindChillMode
from .providers.openweather import DEFAULT_BASE_URL
from .sinks.mqtt import parse_broker


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "./config.json"

# Environment variables that take precedence over secrets in the file.
ENV_OVERRIDES = {
    "OWM_API_KEY": "api_key",
    "INFLUX_TOKEN": "influx_token",
    "INFLUX_PASSWORD": "influx_password",
    "MQTT_PASSWORD": "mqtt_password",
}


class ConfigError(ValueError):
    """Raised when the configuration is missing, unreadable or inconsistent."""


class ConnectorConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    api_key: str = ""
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    owm_base_url: str = DEFAULT_BASE_URL

    influx_server: str = ""
    influx_org: str = ""
    influx_user: str = ""
    influx_password: str = ""
    influx_token: str = ""
    influx_bucket: str = ""
    influx_health_check_disabled: bool = False

    wx_measurement_name: str = ""
    pollution_measurement_name: str = ""
    write_ecobee_weather_measurement: bool = False
    ecobee_thermostat_name: str = ""

    mqtt_broker: str = ""
    mqtt_username: str = ""
    mqtt_password: str = ""
    mqtt_topic_root: str = ""
    mqtt_client_id: str = ""

    wind_chill_mode: WindChillMode = WindChillMode.EXPLICIT

    @model_validator(mode="after")
    def _check_required(self) -> "ConnectorConfig":
        if not self.api_key:
            raise ValueError("api_key must be set in the config file")
        if not self.wx_measurement_name:
            raise ValueError("wx_measurement_name must be set in the config file")
        if not self.pollution_measurement_name:
            raise ValueError("pollution_measurement_name must be set in the config file")
        if self.write_ecobee_weather_measurement and not self.ecobee_thermostat_name:
            raise ValueError(
                "ecobee_thermostat_name must be set in the config file if "
                "write_ecobee_weather_measurement is set"
            )
        if self.mqtt_broker:
            parse_broker(self.mqtt_broker)
        if self.mqtt_broker and not self.mqtt_topic_root:
            raise ValueError("mqtt_topic_root must be set in the config file if mqtt_broker is set")
        if not self.influx_enabled and not self.mqtt_enabled:
            raise ValueError("at least one of influx_server or mqtt_broker must be set in the config file")
        return self

    @property
    def influx_enabled(self) -> bool:
        return bool(self.influx_server)

    @property
    def mqtt_enabled(self) -> bool:
        return bool(self.mqtt_broker)

    @property
    def legacy_enabled(self) -> bool:
        return self.write_ecobee_weather_measurement and bool(self.ecobee_thermostat_name)

    @property
    def influx_auth_token(self) -> str:
        """InfluxDB 1.8 accepts ``user:password`` in place of a 2.x token."""
        if self.influx_user or self.influx_password:
            return f"{self.influx_user}:{self.influx_password}"
        return self.influx_token


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def parse_config(data: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> ConnectorConfig:
    """Validate a configuration mapping, applying secret overrides from ``environ``."""
    if not isinstance(data, Mapping):
        raise ConfigError("configuration must be a JSON object")
    values: Dict[str, Any] = dict(data)
    environ = os.environ if environ is None else environ
    for variable, key in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            values[key] = value
    try:
        return ConnectorConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc


def load_config(
    path: Union[str, Path] = DEFAULT_CONFIG_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> ConnectorConfig:
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read config file '{config_path}': {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Unable to parse config file '{config_path}': {exc}") from exc
    config = parse_config(data, environ=environ)
    logger.debug(
        "Loaded config from %s (influx=%s, mqtt=%s, legacy=%s)",
        config_path,
        config.influx_enabled,
        config.mqtt_enabled,
        config.legacy_enabled,
    )
    return config


__all__ = ["ConfigError", "ConnectorConfig", "DEFAULT_CONFIG_PATH", "load_config", "parse_config"]
