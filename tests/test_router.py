from __future__ import annotations

import json

import pytest

from z2madapter.core.errors import MalformedMessageError, TransportSubscribeError
from z2madapter.core.router import MessageKind, MessageRouter, device_info_from_record


def _router(registry=None, upserted=None) -> MessageRouter:
    upserted = upserted if upserted is not None else []

    async def upsert(info) -> None:
        upserted.append(info)

    return MessageRouter("zigbee2mqtt", registry if registry is not None else {}, upsert)


@pytest.mark.parametrize(
    "topic,kind",
    [
        ("zigbee2mqtt/bridge/devices", MessageKind.TOPOLOGY),
        ("zigbee2mqtt/bridge/state", MessageKind.BRIDGE),
        ("zigbee2mqtt/bridge/logging", MessageKind.BRIDGE),
        ("zigbee2mqtt/bridge", MessageKind.BRIDGE),
        ("zigbee2mqtt/bulb1", MessageKind.DEVICE),
        ("zigbee2mqtt/living room/lamp", MessageKind.DEVICE),
        ("zigbee2mqtt", MessageKind.FOREIGN),
        ("homeassistant/status", MessageKind.FOREIGN),
        ("zigbee2mqttx/bulb1", MessageKind.FOREIGN),
    ],
)
def test_classify(topic: str, kind: MessageKind) -> None:
    assert _router().classify(topic) is kind


def test_friendly_name_keeps_nested_segments() -> None:
    assert _router().friendly_name("zigbee2mqtt/living room/lamp") == "living room/lamp"


async def test_topology_upserts_each_record() -> None:
    upserted: list = []
    router = _router(upserted=upserted)
    payload = json.dumps(
        [
            {"friendly_name": "bulb1", "model_id": "X"},
            {"friendly_name": "button", "model_id": "lumi.sensor_switch"},
        ]
    ).encode()
    assert await router.route("zigbee2mqtt/bridge/devices", payload) is MessageKind.TOPOLOGY
    assert [info.friendly_name for info in upserted] == ["bulb1", "button"]
    assert upserted[0].model_id == "X"


async def test_topology_skips_unusable_records() -> None:
    upserted: list = []
    router = _router(upserted=upserted)
    payload = json.dumps(["junk", {"model_id": "X"}, {"friendly_name": "ok", "model_id": None}]).encode()
    await router.route("zigbee2mqtt/bridge/devices", payload)
    assert [info.friendly_name for info in upserted] == ["ok"]
    assert upserted[0].model_id is None


async def test_topology_continues_after_failing_record() -> None:
    added: list[str] = []

    async def upsert(info) -> None:
        if info.friendly_name == "lamp":
            raise TypeError("'NoneType' object is not iterable")
        added.append(info.friendly_name)

    router = MessageRouter("zigbee2mqtt", {}, upsert)
    payload = json.dumps([{"friendly_name": "lamp"}, {"friendly_name": "sensor"}]).encode()
    await router.route("zigbee2mqtt/bridge/devices", payload)
    assert added == ["sensor"]


async def test_topology_transport_errors_propagate() -> None:
    async def upsert(info) -> None:
        raise TransportSubscribeError("MQTT subscribe failed")

    router = MessageRouter("zigbee2mqtt", {}, upsert)
    with pytest.raises(TransportSubscribeError):
        await router.route("zigbee2mqtt/bridge/devices", b'[{"friendly_name": "lamp"}]')


async def test_topology_must_be_a_list() -> None:
    with pytest.raises(MalformedMessageError):
        await _router().route("zigbee2mqtt/bridge/devices", b'{"friendly_name": "x"}')


async def test_non_json_payload_is_malformed() -> None:
    with pytest.raises(MalformedMessageError):
        await _router().route("zigbee2mqtt/bridge/devices", b"not json")


async def test_device_state_updates_matching_property(device, host) -> None:
    router = _router({"bulb1": device})
    host.property_changes.clear()
    await router.route("zigbee2mqtt/bulb1", b'{"state": "ON"}')
    assert device.properties["state"].value == "ON"
    assert host.property_changes == [("bulb1", "state", "ON")]


async def test_failing_converter_skips_only_its_property(device, host) -> None:
    router = _router({"bulb1": device})
    await router.route("zigbee2mqtt/bulb1", b'{"brightness": 10}')
    device.properties["brightness"]._from_bus = lambda value: int(value)
    host.property_changes.clear()
    await router.route("zigbee2mqtt/bulb1", b'{"brightness": "high", "state": "ON"}')
    assert device.properties["brightness"].value == 10
    assert device.properties["state"].value == "ON"
    assert host.property_changes == [("bulb1", "state", "ON")]


async def test_device_state_ignores_undeclared_keys(device, host) -> None:
    router = _router({"bulb1": device})
    host.property_changes.clear()
    await router.route("zigbee2mqtt/bulb1", b'{"color_mode": "xy", "update": {"state": "idle"}}')
    assert host.property_changes == []
    assert host.events == []


async def test_device_state_emits_declared_action_event(device, host) -> None:
    router = _router({"bulb1": device})
    await router.route("zigbee2mqtt/bulb1", b'{"action": "single", "linkquality": 80}')
    assert [(e.name, e.data) for e in host.events] == [("single", "single")]
    assert device.properties["linkquality"].value == 80


async def test_undeclared_action_emits_nothing(device, host) -> None:
    router = _router({"bulb1": device})
    await router.route("zigbee2mqtt/bulb1", b'{"action": "quadruple"}')
    assert host.events == []


async def test_unknown_device_is_dropped_silently(host) -> None:
    router = _router({})
    assert await router.route("zigbee2mqtt/ghost", b'{"state": "ON"}') is MessageKind.DEVICE
    assert host.property_changes == []


async def test_device_state_must_be_an_object(device) -> None:
    router = _router({"bulb1": device})
    with pytest.raises(MalformedMessageError):
        await router.route("zigbee2mqtt/bulb1", b'["ON"]')


async def test_bridge_and_foreign_topics_have_no_side_effects(device, host) -> None:
    upserted: list = []
    router = _router({"bulb1": device}, upserted)
    host.property_changes.clear()
    assert await router.route("zigbee2mqtt/bridge/logging", b"not even json") is MessageKind.BRIDGE
    assert await router.route("other/bulb1", b'{"state": "ON"}') is MessageKind.FOREIGN
    assert upserted == []
    assert host.property_changes == []


def test_device_info_from_record_requires_friendly_name() -> None:
    with pytest.raises(MalformedMessageError):
        device_info_from_record({"friendly_name": ""})
