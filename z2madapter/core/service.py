"""Adapter lifecycle: bus connection, device registry, and outbound publishing."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from z2madapter.core.config import BridgeConfig
from z2madapter.core.device import DeviceAdapter
from z2madapter.core.errors import MalformedMessageError, TransportError
from z2madapter.core.exposes import ExposesDeviceGenerator
from z2madapter.core.host import HostFramework
from z2madapter.core.model import DeviceDescription, DeviceInfo
from z2madapter.core.router import MessageRouter
from z2madapter.transports.base import Bus

LOGGER = logging.getLogger(__name__)

Inference = Callable[[dict[str, Any]], DeviceDescription | None]


class BridgeAdapter:
    def __init__(
        self,
        config: BridgeConfig,
        host: HostFramework,
        bus: Bus,
        *,
        catalog: Mapping[str, DeviceDescription] | None = None,
        inference: Inference | None = None,
    ) -> None:
        self.config = config
        self.host = host
        self._bus = bus
        self._catalog = catalog or {}
        self._inference = inference or ExposesDeviceGenerator().generate_device
        self._registry: dict[str, DeviceAdapter] = {}
        self._subscriptions: set[str] = set()
        self.router = MessageRouter(config.prefix, self._registry, self.upsert_device)

    @property
    def devices(self) -> Mapping[str, DeviceAdapter]:
        return MappingProxyType(self._registry)

    def get_device(self, friendly_name: str) -> DeviceAdapter | None:
        return self._registry.get(friendly_name)

    async def start(self) -> None:
        await self._bus.connect()
        # subscriptions do not survive a reconnect
        self._subscriptions.clear()
        await self._subscribe(self.router.devices_topic)
        for friendly_name in self._registry:
            await self._subscribe(f"{self.config.prefix}/{friendly_name}")

    async def stop(self) -> None:
        await self._bus.disconnect()

    async def run(self) -> None:
        """Consume bus messages until cancelled, reconnecting after transport errors."""
        try:
            while True:
                try:
                    await self.start()
                    async for topic, payload in self._bus.messages():
                        await self.handle_message(topic, payload)
                    LOGGER.warning("MQTT message stream ended")
                except TransportError as exc:
                    LOGGER.error("MQTT error: %s", exc)
                await self._bus.disconnect()
                LOGGER.info("Reconnecting in %.1f seconds", self.config.reconnect_interval_s)
                await asyncio.sleep(self.config.reconnect_interval_s)
        finally:
            await self._bus.disconnect()

    async def handle_message(self, topic: str, payload: bytes) -> None:
        try:
            await self.router.route(topic, payload)
        except MalformedMessageError as exc:
            LOGGER.warning("Dropping malformed message: %s", exc)
        except TransportError:
            raise
        except Exception:
            LOGGER.exception("Failed to handle message on %s", topic)

    async def upsert_device(self, info: DeviceInfo) -> DeviceAdapter | None:
        existing = self._registry.get(info.friendly_name)
        if existing is not None and existing.model_id == info.model_id:
            LOGGER.info("Device %s already exists", info.friendly_name)
            return None

        source, description = self.resolve_description(info)
        if description is None:
            LOGGER.info("No usable definition for device %s (%s)", info.friendly_name, info.model_id)
            return None
        LOGGER.info("Device %s created from %s", info.friendly_name, source)

        device = DeviceAdapter(self, self.host, info.friendly_name, info.model_id, description)
        # registered only once subscribed
        await self._subscribe(f"{self.config.prefix}/{info.friendly_name}")
        self._registry[info.friendly_name] = device
        self.host.handle_device_added(device)
        return device

    def resolve_description(self, info: DeviceInfo) -> tuple[str | None, DeviceDescription | None]:
        """Catalog entry for the model id, else whatever inference makes of the record."""
        if info.model_id is not None:
            description = self._catalog.get(info.model_id)
            if description is not None:
                return "catalog", description
        description = self._inference(info.raw)
        if description is not None:
            return "exposes", description
        return None, None

    async def publish(self, relative_topic: str, payload: Any) -> None:
        data = b"" if payload is None else json.dumps(payload).encode("utf-8")
        await self._bus.publish(f"{self.config.prefix}/{relative_topic}", data)

    async def start_pairing(self, timeout_s: float | None = None) -> None:
        # TODO: toggle permit_join for timeout_s once the bridge request API is wired in
        await self.publish("bridge/config/devices/get", None)

    def cancel_pairing(self) -> None:
        LOGGER.debug("cancel_pairing has no effect on the bridge")

    async def _subscribe(self, topic: str) -> None:
        if topic in self._subscriptions:
            return
        await self._bus.subscribe(topic)
        self._subscriptions.add(topic)
