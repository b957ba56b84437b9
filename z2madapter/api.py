"""Stable public API for embedding z2madapter in a host application.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from typing import Any

from z2madapter.core.catalog import LoadedCatalog, load_catalog
from z2madapter.core.config import BridgeConfig, MqttSettings, load_config
from z2madapter.core.device import DeviceAdapter
from z2madapter.core.errors import (
    AdapterError,
    CatalogLoadError,
    CatalogValidationError,
    ConfigError,
    MalformedMessageError,
    PropertyValidationError,
    TransportConnectError,
    TransportError,
    TransportPublishError,
    TransportSubscribeError,
    UnknownTransformError,
)
from z2madapter.core.host import HostFramework, LoggingHost
from z2madapter.core.model import (
    ActionDescriptor,
    ActionRequest,
    DeviceDescription,
    Event,
    EventDescriptor,
    PropertyDescriptor,
)
from z2madapter.core.property import PropertyAdapter
from z2madapter.core.router import device_info_from_record
from z2madapter.core.service import BridgeAdapter
from z2madapter.core.transforms import register_transform
from z2madapter.transports.base import Bus
from z2madapter.transports.mqtt import MqttBus

__all__ = [
    "AdapterError",
    "CatalogLoadError",
    "CatalogValidationError",
    "ConfigError",
    "MalformedMessageError",
    "PropertyValidationError",
    "TransportError",
    "TransportConnectError",
    "TransportPublishError",
    "TransportSubscribeError",
    "UnknownTransformError",
    "ActionDescriptor",
    "ActionRequest",
    "DeviceDescription",
    "Event",
    "EventDescriptor",
    "PropertyDescriptor",
    "BridgeAdapter",
    "BridgeConfig",
    "MqttSettings",
    "DeviceAdapter",
    "PropertyAdapter",
    "HostFramework",
    "LoggingHost",
    "Bus",
    "MqttBus",
    "register_transform",
    "build_adapter",
    "Bridge",
]


def build_adapter(
    config: BridgeConfig | None = None,
    *,
    host: HostFramework | None = None,
    bus: Bus | None = None,
    catalog: LoadedCatalog | None = None,
) -> BridgeAdapter:
    """Wire a `BridgeAdapter` from config, loading whatever is not supplied."""
    config = config or load_config()
    if catalog is None:
        catalog = load_catalog()
    return BridgeAdapter(
        config,
        host or LoggingHost(),
        bus or MqttBus(config.mqtt),
        catalog=catalog.descriptions,
    )


class Bridge:
    """Public entry point wiring configuration, catalog, and the MQTT bus.

    A `Bridge` owns one `BridgeAdapter`. Callers supply their own
    `HostFramework` to receive device, property, event, and action
    notifications; without one, notifications are only logged.
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        *,
        host: HostFramework | None = None,
        bus: Bus | None = None,
    ) -> None:
        self.config = config or load_config()
        self.catalog: LoadedCatalog = load_catalog()
        self.host = host or LoggingHost()
        self.adapter = build_adapter(self.config, host=self.host, bus=bus, catalog=self.catalog)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self.catalog.warnings

    def list_catalog(self) -> list[tuple[str, DeviceDescription]]:
        return sorted(self.catalog.descriptions.items())

    def describe(self, record: Any) -> tuple[str, str | None, DeviceDescription | None]:
        """Resolve a bridge device record the way the adapter would on announcement."""
        info = device_info_from_record(record)
        source, description = self.adapter.resolve_description(info)
        return info.friendly_name, source, description

    async def run(self) -> None:
        await self.adapter.run()

    async def pair(self, timeout_s: float | None = None) -> None:
        await self.adapter.start()
        try:
            await self.adapter.start_pairing(timeout_s)
        finally:
            await self.adapter.stop()
