from __future__ import annotations

import asyncio
from typing import Any

import pytest

from z2madapter.core.config import BridgeConfig
from z2madapter.core.device import DeviceAdapter
from z2madapter.core.host import LoggingHost
from z2madapter.core.model import (
    ActionDescriptor,
    DeviceDescription,
    EventDescriptor,
    PropertyDescriptor,
)
from z2madapter.core.service import BridgeAdapter
from z2madapter.core.transforms import get_transform


class FakeBus:
    def __init__(self) -> None:
        self.connects = 0
        self.disconnects = 0
        self.subscriptions: list[str] = []
        self.published: list[tuple[str, bytes]] = []
        self.incoming: list[tuple[str, bytes]] = []
        self.stream_error: Exception | None = None
        self.publish_error: Exception | None = None
        self.subscribe_error: Exception | None = None

    async def connect(self) -> None:
        self.connects += 1

    async def disconnect(self) -> None:
        self.disconnects += 1

    async def subscribe(self, topic: str) -> None:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.subscriptions.append(topic)

    async def publish(self, topic: str, payload: bytes) -> None:
        if self.publish_error is not None:
            raise self.publish_error
        self.published.append((topic, payload))

    async def messages(self):
        while self.incoming:
            yield self.incoming.pop(0)
        if self.stream_error is not None:
            exc, self.stream_error = self.stream_error, None
            raise exc
        await asyncio.Future()


class RecordingHost(LoggingHost):
    def __init__(self) -> None:
        super().__init__()
        self.property_changes: list[tuple[str, str, Any]] = []
        self.events: list[Any] = []
        self.actions: list[tuple[str, str]] = []

    def notify_property_changed(self, device, prop) -> None:
        self.property_changes.append((device.id, prop.name, prop.value))

    def event_notify(self, device, event) -> None:
        self.events.append(event)

    def action_notify(self, device, action) -> None:
        self.actions.append((action.name, action.status))


def bulb_description() -> DeviceDescription:
    on_off = get_transform("on_off")
    return DeviceDescription(
        name="Test bulb",
        type=("Light", "OnOffSwitch"),
        properties={
            "state": PropertyDescriptor(type="string", value="OFF"),
            "on": PropertyDescriptor(
                type="boolean",
                value=False,
                transform="on_off",
                to_bus=on_off.to_bus,
                from_bus=on_off.from_bus,
            ),
            "brightness": PropertyDescriptor(type="integer", minimum=0, maximum=100, value=0),
            "linkquality": PropertyDescriptor(type="integer", read_only=True),
        },
        actions={"identify": ActionDescriptor(title="Identify")},
        events={
            "single": EventDescriptor(source="action"),
            "hold": EventDescriptor(source="duration"),
            "release": EventDescriptor(),
        },
    )


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def config() -> BridgeConfig:
    return BridgeConfig(prefix="zigbee2mqtt", reconnect_interval_s=0.01)


@pytest.fixture
def adapter(config: BridgeConfig, host: RecordingHost, bus: FakeBus) -> BridgeAdapter:
    return BridgeAdapter(config, host, bus, catalog={"X": bulb_description()})


@pytest.fixture
def description() -> DeviceDescription:
    return bulb_description()


@pytest.fixture
def device(adapter: BridgeAdapter, host: RecordingHost, description: DeviceDescription) -> DeviceAdapter:
    return DeviceAdapter(adapter, host, "bulb1", "X", description)
