"""Property adapter keeping one device attribute in sync with the bus."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from z2madapter.core.model import PropertyDescriptor
from z2madapter.core.transforms import resolve_from_bus, resolve_to_bus

if TYPE_CHECKING:
    from z2madapter.core.device import DeviceAdapter


class PropertyAdapter:
    def __init__(self, device: DeviceAdapter, name: str, descriptor: PropertyDescriptor) -> None:
        self.device = device
        self.name = name
        self.descriptor = descriptor
        self._to_bus = resolve_to_bus(descriptor)
        self._from_bus = resolve_from_bus(descriptor)
        self.value: Any = descriptor.value
        self.device.notify_property_changed(self)

    def apply_inbound(self, bus_value: Any) -> None:
        """Store the host form of a value reported by the bus.

        The converter runs before the cache is touched, so a failing
        converter leaves the previous value in place.
        """
        value = self._from_bus(bus_value)
        self.value = value
        self.device.notify_property_changed(self)

    async def request_set(self, host_value: Any) -> Any:
        accepted = self.device.host.validate_property_value(self.name, self.descriptor, host_value)
        self.value = accepted
        await self.device.publisher.publish(
            f"{self.device.id}/set",
            {self.name: self._to_bus(accepted)},
        )
        self.device.notify_property_changed(self)
        return accepted

    def description(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value, **self.descriptor.metadata()}
