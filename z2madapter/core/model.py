"""Core data models shared by the catalog, adapters, router, and CLI."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

Converter = Callable[[Any], Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PropertyDescriptor:
    type: str
    title: str | None = None
    semantic_type: str | None = None
    unit: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    enum: tuple[Any, ...] = ()
    read_only: bool = False
    value: Any = None
    transform: str | None = None
    to_bus: Converter | None = None
    from_bus: Converter | None = None

    def metadata(self) -> dict[str, Any]:
        """Host-visible metadata; converters are not part of it."""
        meta: dict[str, Any] = {"type": self.type}
        if self.title:
            meta["title"] = self.title
        if self.semantic_type:
            meta["@type"] = self.semantic_type
        if self.unit:
            meta["unit"] = self.unit
        if self.minimum is not None:
            meta["minimum"] = self.minimum
        if self.maximum is not None:
            meta["maximum"] = self.maximum
        if self.enum:
            meta["enum"] = list(self.enum)
        if self.read_only:
            meta["readOnly"] = True
        return meta


@dataclass(frozen=True)
class ActionDescriptor:
    title: str | None = None
    description: str | None = None
    input: dict[str, Any] | None = None

    def metadata(self) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if self.title:
            meta["title"] = self.title
        if self.description:
            meta["description"] = self.description
        if self.input is not None:
            meta["input"] = self.input
        return meta


@dataclass(frozen=True)
class EventDescriptor:
    source: str | None = None
    title: str | None = None
    description: str | None = None

    def metadata(self) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if self.title:
            meta["title"] = self.title
        if self.description:
            meta["description"] = self.description
        return meta


@dataclass(frozen=True)
class DeviceDescription:
    name: str
    type: tuple[str, ...] = ()
    properties: dict[str, PropertyDescriptor] = field(default_factory=dict)
    actions: dict[str, ActionDescriptor] = field(default_factory=dict)
    events: dict[str, EventDescriptor] = field(default_factory=dict)


@dataclass(frozen=True)
class DeviceInfo:
    """One record of the bridge topology message."""

    friendly_name: str
    model_id: str | None
    raw: dict[str, Any]


@dataclass(frozen=True)
class Event:
    device_id: str
    name: str
    data: Any = None
    timestamp: datetime = field(default_factory=_utcnow)


ACTION_CREATED = "created"
ACTION_PENDING = "pending"
ACTION_COMPLETED = "completed"
ACTION_FAILED = "failed"


@dataclass
class ActionRequest:
    name: str
    input: Any = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: str = ACTION_CREATED
    time_requested: datetime = field(default_factory=_utcnow)
    time_completed: datetime | None = None

    def start(self) -> None:
        self.status = ACTION_PENDING

    def finish(self) -> None:
        self.status = ACTION_COMPLETED
        self.time_completed = _utcnow()

    def fail(self) -> None:
        self.status = ACTION_FAILED
        self.time_completed = _utcnow()
