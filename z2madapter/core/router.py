"""Classification and dispatch of incoming bus messages."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any

from z2madapter.core.device import DeviceAdapter
from z2madapter.core.errors import MalformedMessageError, TransportError
from z2madapter.core.model import DeviceInfo

LOGGER = logging.getLogger(__name__)

Upsert = Callable[[DeviceInfo], Awaitable[Any]]


class MessageKind(Enum):
    TOPOLOGY = "topology"
    BRIDGE = "bridge"
    DEVICE = "device"
    FOREIGN = "foreign"


def _decode(topic: str, payload: bytes) -> Any:
    try:
        return json.loads(payload)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedMessageError(f"Payload on {topic} is not valid JSON: {exc}") from exc


def device_info_from_record(record: Any) -> DeviceInfo:
    if not isinstance(record, dict):
        raise MalformedMessageError(f"Device record must be an object, got {type(record).__name__}")
    friendly_name = record.get("friendly_name")
    if not isinstance(friendly_name, str) or not friendly_name:
        raise MalformedMessageError("Device record has no friendly_name")
    model_id = record.get("model_id")
    return DeviceInfo(
        friendly_name=friendly_name,
        model_id=str(model_id) if model_id is not None else None,
        raw=record,
    )


class MessageRouter:
    def __init__(self, prefix: str, registry: Mapping[str, DeviceAdapter], upsert: Upsert) -> None:
        self.prefix = prefix
        self.devices_topic = f"{prefix}/bridge/devices"
        self._bridge_namespace = f"{prefix}/bridge"
        self._registry = registry
        self._upsert = upsert

    def classify(self, topic: str) -> MessageKind:
        if topic == self.devices_topic:
            return MessageKind.TOPOLOGY
        if topic == self._bridge_namespace or topic.startswith(f"{self._bridge_namespace}/"):
            return MessageKind.BRIDGE
        if topic.startswith(f"{self.prefix}/") and len(topic) > len(self.prefix) + 1:
            return MessageKind.DEVICE
        return MessageKind.FOREIGN

    def friendly_name(self, topic: str) -> str:
        return topic[len(self.prefix) + 1:]

    async def route(self, topic: str, payload: bytes) -> MessageKind:
        kind = self.classify(topic)
        if kind is MessageKind.TOPOLOGY:
            await self._handle_topology(topic, _decode(topic, payload))
        elif kind is MessageKind.DEVICE:
            self._handle_device_state(topic, _decode(topic, payload))
        return kind

    async def _handle_topology(self, topic: str, msg: Any) -> None:
        if not isinstance(msg, list):
            raise MalformedMessageError(f"Payload on {topic} must be a list of devices")
        for record in msg:
            try:
                info = device_info_from_record(record)
            except MalformedMessageError as exc:
                LOGGER.warning("Skipping device record: %s", exc)
                continue
            try:
                await self._upsert(info)
            except TransportError:
                raise
            except Exception:
                LOGGER.exception("Failed to add device %s", info.friendly_name)

    def _handle_device_state(self, topic: str, msg: Any) -> None:
        friendly_name = self.friendly_name(topic)
        device = self._registry.get(friendly_name)
        if device is None:
            LOGGER.debug("Dropping message for unknown device %s", friendly_name)
            return
        if not isinstance(msg, dict):
            raise MalformedMessageError(f"Payload on {topic} must be an object")

        action = msg.get("action")
        if isinstance(action, str) and action in device.events:
            device.emit_event(action, msg)

        for key, value in msg.items():
            prop = device.find_property(key)
            if prop is None:
                continue
            try:
                prop.apply_inbound(value)
            except Exception:
                LOGGER.exception("Failed to apply %s=%r to %s", key, value, friendly_name)
