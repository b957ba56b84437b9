"""Bus interfaces."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol


class Bus(Protocol):
    async def connect(self) -> None:
        """Open the broker connection."""

    async def disconnect(self) -> None:
        """Close the broker connection; safe to call when not connected."""

    async def subscribe(self, topic: str) -> None:
        """Subscribe to an absolute topic."""

    async def publish(self, topic: str, payload: bytes) -> None:
        """Publish a raw payload to an absolute topic."""

    def messages(self) -> AsyncIterator[tuple[str, bytes]]:
        """Yield (topic, payload) pairs until the connection ends."""
