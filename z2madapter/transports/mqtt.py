"""MQTT bus implementation using aiomqtt."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import aiomqtt

from z2madapter.core.config import MqttSettings
from z2madapter.core.errors import (
    TransportConnectError,
    TransportError,
    TransportPublishError,
    TransportSubscribeError,
)

LOGGER = logging.getLogger(__name__)


class MqttBus:
    def __init__(self, settings: MqttSettings) -> None:
        self.settings = settings
        self._client: aiomqtt.Client | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _require_client(self) -> aiomqtt.Client:
        if self._client is None:
            raise TransportError("MQTT bus is not connected")
        return self._client

    async def connect(self) -> None:
        client = aiomqtt.Client(
            hostname=self.settings.host,
            port=self.settings.port,
            username=self.settings.username,
            password=self.settings.password,
            identifier=self.settings.client_id,
            keepalive=self.settings.keepalive,
        )
        try:
            await client.__aenter__()
        except aiomqtt.MqttError as exc:
            raise TransportConnectError(
                f"MQTT connect failed for {self.settings.host}:{self.settings.port}: {exc}"
            ) from exc
        self._client = client
        LOGGER.info("Connected to MQTT broker %s:%s", self.settings.host, self.settings.port)

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.__aexit__(None, None, None)
        except aiomqtt.MqttError as exc:
            LOGGER.warning("MQTT disconnect failed: %s", exc)

    async def subscribe(self, topic: str) -> None:
        client = self._require_client()
        try:
            await client.subscribe(topic)
        except aiomqtt.MqttError as exc:
            raise TransportSubscribeError(f"MQTT subscribe to {topic} failed: {exc}") from exc

    async def publish(self, topic: str, payload: bytes) -> None:
        client = self._require_client()
        try:
            await client.publish(topic, payload=payload)
        except aiomqtt.MqttError as exc:
            raise TransportPublishError(f"MQTT publish to {topic} failed: {exc}") from exc

    async def messages(self) -> AsyncIterator[tuple[str, bytes]]:
        client = self._require_client()
        try:
            async for message in client.messages:
                payload = message.payload
                if isinstance(payload, str):
                    payload = payload.encode("utf-8")
                elif payload is None:
                    payload = b""
                elif not isinstance(payload, (bytes, bytearray)):
                    payload = str(payload).encode("utf-8")
                yield message.topic.value, bytes(payload)
        except aiomqtt.MqttError as exc:
            raise TransportError(f"MQTT connection lost: {exc}") from exc
