"""Device adapter composed of property adapters, actions, and events."""

from __future__ import annotations

import logging
from typing import Any

from z2madapter.core.host import HostFramework, Publisher
from z2madapter.core.model import (
    ActionDescriptor,
    ActionRequest,
    DeviceDescription,
    Event,
    EventDescriptor,
)
from z2madapter.core.property import PropertyAdapter

LOGGER = logging.getLogger(__name__)


class DeviceAdapter:
    def __init__(
        self,
        publisher: Publisher,
        host: HostFramework,
        friendly_name: str,
        model_id: str | None,
        description: DeviceDescription,
    ) -> None:
        self.publisher = publisher
        self.host = host
        self.id = friendly_name
        self.model_id = model_id
        self.name = description.name
        self.type = description.type

        self.actions: dict[str, ActionDescriptor] = dict(description.actions)
        self.properties: dict[str, PropertyAdapter] = {}
        for name, descriptor in description.properties.items():
            self.properties[name] = PropertyAdapter(self, name, descriptor)
        self.events: dict[str, EventDescriptor] = dict(description.events)

    def find_property(self, name: str) -> PropertyAdapter | None:
        return self.properties.get(name)

    def notify_property_changed(self, prop: PropertyAdapter) -> None:
        self.host.notify_property_changed(self, prop)

    async def invoke_action(self, action: ActionRequest) -> ActionRequest | None:
        """Dispatch an action to the bus.

        Completion only means the command was handed to the bus; the device
        gives no confirmation. A failed publish marks the action failed and
        re-raises.
        """
        if action.name not in self.actions:
            LOGGER.debug("Ignoring undeclared action %s on %s", action.name, self.id)
            return None

        action.start()
        self.host.action_notify(self, action)
        try:
            await self.publisher.publish(f"{self.id}/set", {action.name: action.input})
        except Exception:
            action.fail()
            self.host.action_notify(self, action)
            raise
        action.finish()
        self.host.action_notify(self, action)
        return action

    def emit_event(self, name: str, payload: dict[str, Any]) -> Event | None:
        descriptor = self.events.get(name)
        if descriptor is None:
            return None
        data = payload.get(descriptor.source) if descriptor.source else None
        event = Event(device_id=self.id, name=name, data=data)
        self.host.event_notify(self, event)
        return event

    def description(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "@type": list(self.type),
            "modelId": self.model_id,
            "properties": {name: prop.description() for name, prop in self.properties.items()},
            "actions": {name: desc.metadata() for name, desc in self.actions.items()},
            "events": {name: desc.metadata() for name, desc in self.events.items()},
        }
