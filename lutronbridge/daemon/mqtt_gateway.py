"""MQTT ↔︎ Lutron glue layer.

Contains `MqttEventSink`, which publishes bridge notifications to MQTT, and
`MqttClient`, which turns MQTT messages into bridge commands.  Separated from
`lutrond.py` so the core logic can be reused/imported without pulling in CLI
parsing or other runtime concerns.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Dict, Optional, Text

from aiomqtt import Client as AioMqttClient, Will

from lutronbridge.daemon.topics import (
    DEFAULT_TOPIC_PREFIX, all_devices_get_topic, all_devices_set_topic,
    all_devices_state_topic, command_topic, command_topics,
    device_changed_topic, device_get_topic, device_set_topic, status_topic)
from lutronbridge.protocol.bridge import LutronBridge
from lutronbridge.protocol.events import EventSink, format_change_event

logger = logging.getLogger(__name__)

_ONLINE = 'online'
_OFFLINE = 'offline'


class MqttEventSink(EventSink):
    """Publishes change and all-devices notifications once MQTT is up."""

    mqtt_api: Optional['MqttClient'] = None

    def __init__(self, prefix: Text = DEFAULT_TOPIC_PREFIX):
        self.prefix = prefix

    def on_level_changed(self, device_id: int, level: float) -> None:
        if not self.mqtt_api:
            logger.debug(f'MQTT not connected, dropping change of device {device_id}')
            return
        self.mqtt_api.publish(
            device_changed_topic(self.prefix),
            format_change_event(device_id, level),
            retain=False)

    def on_all_devices_state(self, states: str) -> None:
        if not self.mqtt_api:
            logger.debug('MQTT not connected, dropping all devices state')
            return
        self.mqtt_api.publish(all_devices_state_topic(self.prefix), states, retain=True)


class MqttClient:
    """Async context manager that owns an *aiomqtt* Client, feeds commands
    received on the command topics to a :class:`LutronBridge`, and gives
    :class:`MqttEventSink` something to publish through.
    """

    def __init__(self, bridge: LutronBridge, sink: MqttEventSink, host: str,
                 port: int, keepalive: int, tls_kwargs: dict | None = None,
                 username: Optional[str] = None, password: Optional[str] = None):
        self._bridge = bridge
        self._sink = sink
        self._host = host
        self._port = port
        self._keepalive = keepalive
        self._tls_kwargs = tls_kwargs or {}
        self._username = username
        self._password = password
        self._client: Optional[AioMqttClient] = None
        self._client_cm: Optional[AioMqttClient] = None
        self._dispatcher_task: Optional[asyncio.Task] = None

        prefix = sink.prefix
        self._handlers: Dict[Text, Callable[[Text], Awaitable[bool]]] = {
            device_set_topic(prefix): self._bridge.set_dimmer,
            device_get_topic(prefix): self._bridge.get_dimmer,
            all_devices_set_topic(prefix): self._bridge.apply_bulk_state,
            all_devices_get_topic(prefix): self._describe_all_devices,
            command_topic(prefix): self._bridge.send_raw,
        }

    # ------------------------------------------------------------------
    async def __aenter__(self):
        prefix = self._sink.prefix
        self._client_cm = AioMqttClient(
            hostname=self._host,
            port=self._port,
            keepalive=self._keepalive,
            username=self._username,
            password=self._password,
            logger=logger,
            will=Will(status_topic(prefix), _OFFLINE, qos=1, retain=True),
            **self._tls_kwargs,
        )
        # Enter the aiomqtt context (establishes the network connection)
        self._client = await self._client_cm.__aenter__()

        logger.info("Connected to MQTT broker %s:%s", self._host, self._port)

        self._dispatcher_task = asyncio.create_task(self._dispatcher_loop())
        logger.debug("Message dispatcher loop started")

        self._sink.mqtt_api = self
        self.publish(status_topic(prefix), _ONLINE, retain=True)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._sink.mqtt_api = None
        if self._dispatcher_task:
            self._dispatcher_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._dispatcher_task
        if self._client is not None:
            with contextlib.suppress(Exception):
                await self._client.publish(status_topic(self._sink.prefix), _OFFLINE, 1, True)
        # Cleanly close the underlying aiomqtt Client context
        if self._client_cm is not None:
            await self._client_cm.__aexit__(exc_type, exc, tb)
        self._client = None

    # ------------------------------------------------------------------
    async def _dispatcher_loop(self):
        logger.debug("Dispatcher loop starting…")
        assert self._client is not None
        try:
            for topic in command_topics(self._sink.prefix):
                await self._client.subscribe(topic, 1)
                logger.info("Subscribed to '%s'", topic)

            async for msg in self._client.messages:
                logger.debug("MQTT message received on topic '%s': %s", msg.topic, msg.payload[:200])
                handled = await self._handle_message(msg)
                if not handled:
                    logger.debug("Message on topic '%s' ignored by handler", msg.topic)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Dispatcher loop crashed")

    async def _handle_message(self, msg) -> bool:
        topic = str(msg.topic)
        handler = self._handlers.get(topic)
        if handler is None:
            return False

        payload = msg.payload
        if isinstance(payload, (bytes, bytearray)):
            try:
                payload = payload.decode('ascii')
            except UnicodeDecodeError:
                logger.error("Non-ASCII payload on %s: %r", topic, payload[:200])
                return False
        elif payload is None:
            payload = ''
        else:
            payload = str(payload)

        ok = await handler(payload)
        if not ok:
            logger.warning("Command on %s failed: %r", topic, payload[:200])
        return True

    async def _describe_all_devices(self, _payload: Text) -> bool:
        self._bridge.describe_all_devices()
        return True

    # ------------------------------------------------------------------
    def publish(self, topic: str, payload: str | bytes, qos: int = 1, retain: bool = False):
        """Schedule a publish and return the asyncio Task."""
        if isinstance(payload, str):
            payload = payload.encode()
        if self._client is None:
            raise RuntimeError("MQTT client not connected yet")
        return asyncio.create_task(self._client.publish(topic, payload, qos, retain))
