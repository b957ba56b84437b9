"""Host framework contract consumed by the adapters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from z2madapter.core.errors import PropertyValidationError
from z2madapter.core.model import ActionRequest, Event, PropertyDescriptor

if TYPE_CHECKING:
    from z2madapter.core.device import DeviceAdapter
    from z2madapter.core.property import PropertyAdapter

LOGGER = logging.getLogger(__name__)

_TYPE_CHECKS = {
    "boolean": lambda v: isinstance(v, bool),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "string": lambda v: isinstance(v, str),
}


class Publisher(Protocol):
    async def publish(self, relative_topic: str, payload: Any) -> None:
        """Publish a JSON payload below the configured topic prefix."""


class HostFramework(Protocol):
    def handle_device_added(self, device: DeviceAdapter) -> None:
        ...

    def notify_property_changed(self, device: DeviceAdapter, prop: PropertyAdapter) -> None:
        ...

    def event_notify(self, device: DeviceAdapter, event: Event) -> None:
        ...

    def action_notify(self, device: DeviceAdapter, action: ActionRequest) -> None:
        ...

    def validate_property_value(self, name: str, descriptor: PropertyDescriptor, value: Any) -> Any:
        """Return the accepted value or raise PropertyValidationError."""


def validate_value(name: str, descriptor: PropertyDescriptor, value: Any) -> Any:
    if descriptor.read_only:
        raise PropertyValidationError(f"Property '{name}' is read-only")

    check = _TYPE_CHECKS.get(descriptor.type)
    if check is not None and not check(value):
        raise PropertyValidationError(
            f"Property '{name}' expects {descriptor.type}, got {type(value).__name__}"
        )

    if descriptor.enum and value not in descriptor.enum:
        allowed = ", ".join(str(v) for v in descriptor.enum)
        raise PropertyValidationError(
            f"Property '{name}' does not accept '{value}'. Allowed: {allowed}"
        )

    if descriptor.type in ("integer", "number"):
        if descriptor.minimum is not None and value < descriptor.minimum:
            raise PropertyValidationError(
                f"Property '{name}' value {value} is below minimum {descriptor.minimum}"
            )
        if descriptor.maximum is not None and value > descriptor.maximum:
            raise PropertyValidationError(
                f"Property '{name}' value {value} is above maximum {descriptor.maximum}"
            )
    return value


class LoggingHost:
    """Minimal host that performs base validation and logs every notification.

    Used by the CLI when the adapter runs standalone; embedding applications
    provide their own HostFramework implementation.
    """

    def __init__(self) -> None:
        self.devices: dict[str, DeviceAdapter] = {}

    def handle_device_added(self, device: DeviceAdapter) -> None:
        self.devices[device.id] = device
        LOGGER.info("Device added: %s (%s)", device.id, device.name)

    def notify_property_changed(self, device: DeviceAdapter, prop: PropertyAdapter) -> None:
        LOGGER.info("%s.%s = %r", device.id, prop.name, prop.value)

    def event_notify(self, device: DeviceAdapter, event: Event) -> None:
        LOGGER.info("%s event %s: %r", device.id, event.name, event.data)

    def action_notify(self, device: DeviceAdapter, action: ActionRequest) -> None:
        LOGGER.info("%s action %s is %s", device.id, action.name, action.status)

    def validate_property_value(self, name: str, descriptor: PropertyDescriptor, value: Any) -> Any:
        return validate_value(name, descriptor, value)
