import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fireboard2mqtt.constants import (
    BASE_TOPIC,
    DEFAULT_BASE_INTERVAL_SECS,
    DEFAULT_IDLE_INTERVAL_SECS,
    DISCOVERY_PREFIX,
    FIREBOARD_DEVICELOG_UPDATE_INTERVAL_MINUTES,
)
from fireboard2mqtt.exceptions import ConfigError


class FireboardConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    account_email: str = Field(min_length=1)
    account_password: str = Field(min_length=1)
    enable_drive: bool = False


class MqttConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = "mqtt://localhost:1883"
    username: Optional[str] = None
    password: Optional[str] = None
    base_topic: str = BASE_TOPIC
    discovery_topic: str = DISCOVERY_PREFIX
    client_id: str = "fireboard2mqtt"
    queue_size: int = Field(ge=1, default=16)  # pending outbound actions before the poll loop blocks

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("mqtt", "tcp") or not parts.hostname:
            raise ValueError(f"invalid mqtt url {value!r}, expected mqtt://host[:port]")
        # .port raises ValueError on an out of range port
        _ = parts.port
        return value

    @property
    def host(self) -> str:
        return urlsplit(self.url).hostname

    @property
    def port(self) -> int:
        return urlsplit(self.url).port or 1883

    @property
    def credentials(self) -> Optional[tuple]:
        if not self.username:
            return None
        return (self.username, self.password or "")


class PollingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_interval_secs: float = Field(ge=1, default=DEFAULT_BASE_INTERVAL_SECS)
    idle_interval_secs: float = Field(ge=1, default=DEFAULT_IDLE_INTERVAL_SECS)
    freshness_window_minutes: int = Field(ge=1, default=FIREBOARD_DEVICELOG_UPDATE_INTERVAL_MINUTES)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"unknown log level {value!r}")
        return level


class BridgeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    fireboard: FireboardConfig
    mqtt: MqttConfig = MqttConfig()
    polling: PollingConfig = PollingConfig()
    logging: LoggingConfig = LoggingConfig()


# environment variable -> (section, key)
ENV_OVERRIDES = {
    "FB2MQTT_FIREBOARDACCOUNT_EMAIL": ("fireboard", "account_email"),
    "FB2MQTT_FIREBOARDACCOUNT_PASSWORD": ("fireboard", "account_password"),
    "FB2MQTT_FIREBOARD_ENABLE_DRIVE": ("fireboard", "enable_drive"),
    "FB2MQTT_MQTT_URL": ("mqtt", "url"),
    "FB2MQTT_MQTT_DISCOVERY_TOPIC": ("mqtt", "discovery_topic"),
    "FB2MQTT_MQTT_BASE_TOPIC": ("mqtt", "base_topic"),
    "FB2MQTT_MQTT_USERNAME": ("mqtt", "username"),
    "FB2MQTT_MQTT_PASSWORD": ("mqtt", "password"),
    "FB2MQTT_MQTT_CLIENTID": ("mqtt", "client_id"),
    "FB2MQTT_LOG_LEVEL": ("logging", "level"),
}


def _parse_bool(value: str) -> bool:
    # anything that isn't a recognised truthy token disables the feature
    return value.strip().lower() in ("1", "true", "yes", "on")


def apply_env_overrides(data: Optional[Dict[str, Any]], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Overlay FB2MQTT_* environment variables on top of a config dict.

    Empty variables are ignored so an unset value in a compose file does not
    clobber the YAML value.
    """
    environ = os.environ if environ is None else environ
    # a section written as "mqtt:" with no keys loads as None
    merged: Dict[str, Any] = {k: {} if v is None else (dict(v) if isinstance(v, dict) else v) for k, v in (data or {}).items()}
    for var, (section, key) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        value: Any = _parse_bool(raw) if key == "enable_drive" else raw
        current = merged.setdefault(section, {})
        if not isinstance(current, dict):
            raise ConfigError(f"config section {section!r} must be a mapping, got {type(current).__name__}")
        current[key] = value
    return merged
