from __future__ import annotations

import pytest

from z2madapter.core.errors import TransportPublishError
from z2madapter.core.model import ACTION_COMPLETED, ACTION_FAILED, ActionRequest


def test_construction_registers_declared_capabilities(device) -> None:
    assert set(device.actions) == {"identify"}
    assert set(device.properties) == {"state", "on", "brightness", "linkquality"}
    assert device.events["single"].source == "action"
    assert device.model_id == "X"
    assert device.name == "Test bulb"


async def test_invoke_action_publishes_once(device, bus, host) -> None:
    action = ActionRequest(name="identify", input=None)
    result = await device.invoke_action(action)
    assert result is action
    assert bus.published == [("zigbee2mqtt/bulb1/set", b'{"identify": null}')]
    assert host.actions == [("identify", "pending"), ("identify", "completed")]
    assert action.status == ACTION_COMPLETED
    assert action.time_completed is not None


async def test_invoke_action_failure_marks_failed_and_raises(device, bus, host) -> None:
    bus.publish_error = TransportPublishError("broker gone")
    action = ActionRequest(name="identify")
    with pytest.raises(TransportPublishError):
        await device.invoke_action(action)
    assert action.status == ACTION_FAILED
    assert host.actions[-1] == ("identify", "failed")


async def test_undeclared_action_is_ignored(device, bus, host) -> None:
    assert await device.invoke_action(ActionRequest(name="reboot")) is None
    assert bus.published == []
    assert host.actions == []


def test_emit_event_extracts_source_field(device, host) -> None:
    event = device.emit_event("hold", {"action": "hold", "duration": 3})
    assert event is not None
    assert event.data == 3
    assert host.events == [event]


def test_emit_event_without_source_has_no_data(device, host) -> None:
    event = device.emit_event("release", {"action": "release"})
    assert event is not None
    assert event.data is None


def test_emit_undeclared_event_is_ignored(device, host) -> None:
    assert device.emit_event("shake", {"action": "shake"}) is None
    assert host.events == []


def test_description(device) -> None:
    desc = device.description()
    assert desc["id"] == "bulb1"
    assert desc["@type"] == ["Light", "OnOffSwitch"]
    assert "identify" in desc["actions"]
    assert desc["properties"]["state"]["value"] == "OFF"
