"""Adapter configuration: YAML file plus environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from z2madapter.core.errors import ConfigError

LOGGER = logging.getLogger(__name__)

DEFAULT_PREFIX = "zigbee2mqtt"


@dataclass(frozen=True)
class MqttSettings:
    host: str = "localhost"
    port: int = 1883
    username: str | None = None
    password: str | None = None
    client_id: str | None = None
    keepalive: int = 60


@dataclass(frozen=True)
class BridgeConfig:
    prefix: str = DEFAULT_PREFIX
    mqtt: MqttSettings = field(default_factory=MqttSettings)
    reconnect_interval_s: float = 5.0


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "z2madapter/config.yaml"


def _load_schema_validator() -> Any:
    schema_text = resources.files("z2madapter.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _read_document(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at root")
    return loaded


def _build_config(doc: dict[str, Any], source: Path | str) -> BridgeConfig:
    try:
        _load_schema_validator().validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigError(f"Config validation failed for {source}{where}: {exc.message}") from exc

    mqtt_doc = doc.get("mqtt", {})
    mqtt = MqttSettings(
        host=mqtt_doc.get("host", "localhost"),
        port=int(mqtt_doc.get("port", 1883)),
        username=mqtt_doc.get("username"),
        password=mqtt_doc.get("password"),
        client_id=mqtt_doc.get("client_id"),
        keepalive=int(mqtt_doc.get("keepalive", 60)),
    )
    return BridgeConfig(
        prefix=_normalize_prefix(doc.get("prefix", DEFAULT_PREFIX)),
        mqtt=mqtt,
        reconnect_interval_s=float(doc.get("reconnect_interval_s", 5.0)),
    )


def _normalize_prefix(prefix: str) -> str:
    normalized = prefix.strip().strip("/")
    if not normalized:
        raise ConfigError("Topic prefix must not be empty")
    return normalized


def _apply_env(config: BridgeConfig) -> BridgeConfig:
    mqtt = config.mqtt
    if "Z2M_MQTT_HOST" in os.environ:
        mqtt = replace(mqtt, host=os.environ["Z2M_MQTT_HOST"])
    if "Z2M_MQTT_PORT" in os.environ:
        raw_port = os.environ["Z2M_MQTT_PORT"]
        try:
            mqtt = replace(mqtt, port=int(raw_port))
        except ValueError as exc:
            raise ConfigError(f"Z2M_MQTT_PORT must be an integer, got '{raw_port}'") from exc
    if "Z2M_MQTT_USERNAME" in os.environ:
        mqtt = replace(mqtt, username=os.environ["Z2M_MQTT_USERNAME"])
    if "Z2M_MQTT_PASSWORD" in os.environ:
        mqtt = replace(mqtt, password=os.environ["Z2M_MQTT_PASSWORD"])

    prefix = config.prefix
    if "Z2M_PREFIX" in os.environ:
        prefix = _normalize_prefix(os.environ["Z2M_PREFIX"])
    return replace(config, prefix=prefix, mqtt=mqtt)


def load_config(path: Path | None = None) -> BridgeConfig:
    """Load configuration from `path`, or the XDG default if it exists."""
    if path is None:
        path = default_config_path()
        if not path.exists():
            LOGGER.debug("No config file at %s, using defaults", path)
            return _apply_env(BridgeConfig())

    doc = _read_document(path)
    return _apply_env(_build_config(doc, path))
