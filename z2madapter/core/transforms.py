"""Value converters between host-side and bus-side property representations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from z2madapter.core.errors import UnknownTransformError
from z2madapter.core.model import Converter, PropertyDescriptor

_BUS_BRIGHTNESS_MAX = 254
_MIRED_FACTOR = 1_000_000


def identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class Transform:
    to_bus: Converter
    from_bus: Converter


def resolve_to_bus(descriptor: PropertyDescriptor) -> Converter:
    return descriptor.to_bus or identity


def resolve_from_bus(descriptor: PropertyDescriptor) -> Converter:
    return descriptor.from_bus or identity


def binary_transform(value_on: Any, value_off: Any) -> Transform:
    """Map host booleans onto a device's own on/off bus values."""

    def to_bus(value: Any) -> Any:
        return value_on if value else value_off

    def from_bus(value: Any) -> Any:
        return value == value_on

    return Transform(to_bus=to_bus, from_bus=from_bus)


def _percent_to_bus(value: Any) -> int:
    return round(float(value) * _BUS_BRIGHTNESS_MAX / 100)


def _percent_from_bus(value: Any) -> int:
    return round(float(value) * 100 / _BUS_BRIGHTNESS_MAX)


def _kelvin_mired(value: Any) -> int:
    # The conversion is its own inverse. Non-positive input maps to 0.
    value = float(value)
    if value <= 0:
        return 0
    return round(_MIRED_FACTOR / value)


_TRANSFORMS: dict[str, Transform] = {
    "identity": Transform(to_bus=identity, from_bus=identity),
    "on_off": binary_transform("ON", "OFF"),
    "brightness_percent": Transform(to_bus=_percent_to_bus, from_bus=_percent_from_bus),
    "open_closed": Transform(to_bus=lambda value: not value, from_bus=lambda value: not value),
    "kelvin_mired": Transform(to_bus=_kelvin_mired, from_bus=_kelvin_mired),
}


def register_transform(name: str, to_bus: Converter, from_bus: Converter) -> None:
    _TRANSFORMS[name] = Transform(to_bus=to_bus, from_bus=from_bus)


def get_transform(name: str) -> Transform:
    transform = _TRANSFORMS.get(name)
    if transform is None:
        available = ", ".join(sorted(_TRANSFORMS))
        raise UnknownTransformError(f"Unknown transform '{name}'. Available: {available}")
    return transform


def transform_names() -> tuple[str, ...]:
    return tuple(sorted(_TRANSFORMS))
