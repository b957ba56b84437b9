"""Infer device descriptions from the bridge's exposes capability list."""

from __future__ import annotations

import logging
from typing import Any

from z2madapter.core.model import DeviceDescription, EventDescriptor, PropertyDescriptor
from z2madapter.core.transforms import binary_transform, get_transform

LOGGER = logging.getLogger(__name__)

ACCESS_SET = 0b010

_COMPOSITE_TYPES = {"light", "switch", "lock", "cover", "climate", "fan"}

_UNITS = {
    "%": "percent",
    "°C": "degree celsius",
    "°F": "degree fahrenheit",
    "hPa": "hectopascal",
    "lx": "lux",
    "mV": "millivolt",
    "V": "volt",
    "A": "ampere",
    "W": "watt",
    "kWh": "kilowatt hour",
    "s": "second",
}

# property name -> (property @type, device @type)
_SEMANTICS: dict[str, tuple[str, str | None]] = {
    "state": ("OnOffProperty", "OnOffSwitch"),
    "brightness": ("BrightnessProperty", "Light"),
    "color_temp": ("ColorTemperatureProperty", "Light"),
    "temperature": ("TemperatureProperty", "TemperatureSensor"),
    "humidity": ("HumidityProperty", "HumiditySensor"),
    "pressure": ("BarometricPressureProperty", "BarometricPressureSensor"),
    "contact": ("OpenProperty", "DoorSensor"),
    "occupancy": ("MotionProperty", "MotionSensor"),
    "water_leak": ("LeakProperty", "LeakSensor"),
    "smoke": ("SmokeProperty", "SmokeSensor"),
    "power": ("InstantaneousPowerProperty", "EnergyMonitor"),
    "voltage": ("VoltageProperty", None),
    "current": ("CurrentProperty", None),
    "battery": ("LevelProperty", None),
}


def _title(expose: dict[str, Any]) -> str:
    label = expose.get("label")
    if label:
        return str(label)
    return str(expose.get("name", expose.get("property", ""))).replace("_", " ").capitalize()


def _access(feature: dict[str, Any]) -> int:
    try:
        return int(feature.get("access", 0))
    except (TypeError, ValueError):
        return 0


class ExposesDeviceGenerator:
    def generate_device(self, info: dict[str, Any]) -> DeviceDescription | None:
        definition = info.get("definition")
        if not isinstance(definition, dict):
            return None
        exposes = definition.get("exposes")
        if not isinstance(exposes, list):
            return None

        properties: dict[str, PropertyDescriptor] = {}
        events: dict[str, EventDescriptor] = {}
        device_types: list[str] = []

        for expose in exposes:
            if not isinstance(expose, dict):
                continue
            if expose.get("type") in _COMPOSITE_TYPES:
                features = expose.get("features")
                if not isinstance(features, list):
                    continue
                if expose["type"] == "light" and "Light" not in device_types:
                    device_types.append("Light")
            else:
                features = [expose]
            for feature in features:
                if isinstance(feature, dict):
                    self._add_feature(feature, properties, events, device_types)

        if not properties and not events:
            return None

        if events and "PushButton" not in device_types:
            device_types.append("PushButton")

        return DeviceDescription(
            name=str(info.get("friendly_name") or definition.get("model") or "Unknown device"),
            type=tuple(device_types),
            properties=properties,
            events=events,
        )

    def _add_feature(
        self,
        feature: dict[str, Any],
        properties: dict[str, PropertyDescriptor],
        events: dict[str, EventDescriptor],
        device_types: list[str],
    ) -> None:
        name = feature.get("property") or feature.get("name")
        if not isinstance(name, str) or not name:
            return

        if feature.get("type") == "enum" and name == "action":
            values = feature.get("values")
            if not isinstance(values, list):
                return
            for value in values:
                events[str(value)] = EventDescriptor(source="action", title=str(value))
            return

        descriptor = self._property_for(name, feature)
        if descriptor is None:
            LOGGER.debug("Skipping unsupported expose %s of type %s", name, feature.get("type"))
            return
        properties[name] = descriptor

        semantic = _SEMANTICS.get(name)
        if semantic and semantic[1] and semantic[1] not in device_types:
            device_types.append(semantic[1])

    def _property_for(self, name: str, feature: dict[str, Any]) -> PropertyDescriptor | None:
        kind = feature.get("type")
        read_only = not (_access(feature) & ACCESS_SET)
        semantic = _SEMANTICS.get(name, (None, None))[0]

        if kind == "binary":
            value_on = feature.get("value_on", True)
            value_off = feature.get("value_off", False)
            if name == "contact":
                # contact is reported true while closed
                value_on, value_off = value_off, value_on
            transform = binary_transform(value_on, value_off)
            return PropertyDescriptor(
                type="boolean",
                title="Open" if name == "contact" else _title(feature),
                semantic_type=semantic,
                read_only=read_only,
                value=False,
                to_bus=transform.to_bus,
                from_bus=transform.from_bus,
            )

        if kind == "numeric":
            if name == "brightness":
                transform = get_transform("brightness_percent")
                return PropertyDescriptor(
                    type="integer",
                    title=_title(feature),
                    semantic_type=semantic,
                    unit="percent",
                    minimum=0,
                    maximum=100,
                    read_only=read_only,
                    transform="brightness_percent",
                    to_bus=transform.to_bus,
                    from_bus=transform.from_bus,
                )
            unit = feature.get("unit")
            return PropertyDescriptor(
                type="number",
                title=_title(feature),
                semantic_type=semantic,
                unit=_UNITS.get(unit, unit) if isinstance(unit, str) else None,
                minimum=feature.get("value_min"),
                maximum=feature.get("value_max"),
                read_only=read_only,
            )

        if kind == "enum":
            values = feature.get("values")
            return PropertyDescriptor(
                type="string",
                title=_title(feature),
                enum=tuple(values) if isinstance(values, list) else (),
                read_only=read_only,
            )

        if kind == "text":
            return PropertyDescriptor(type="string", title=_title(feature), read_only=read_only)

        return None
