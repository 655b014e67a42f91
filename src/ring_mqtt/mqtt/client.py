"""MQTT client core for the Ring bridge.

Owns the broker connection lifecycle (connect, receive loop, reconnect,
shutdown) and the set of command topics handlers have subscribed, which is
replayed after every reconnect.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, cast

import aiomqtt

from ring_mqtt.const import (
    AVAILABILITY_OFFLINE,
    AVAILABILITY_ONLINE,
    RING_MQTT_MQTT_CONN_DELAY,
)
from ring_mqtt.logging_abstraction import get_logger
from ring_mqtt.utils import send_sigterm

if TYPE_CHECKING:
    from ring_mqtt.config import BridgeConfig
    from ring_mqtt.mqtt.command_routing import CommandRouter

logger = get_logger(__name__)

type ConnectCallback = Callable[[bool], Awaitable[None]]


class MQTTClient:
    """Broker connection shared by every device handler."""

    lp: str = "mqtt:"

    def __init__(self, config: BridgeConfig, conn_delay: int = RING_MQTT_MQTT_CONN_DELAY) -> None:
        self.config: BridgeConfig = config
        self.conn_delay: int = conn_delay
        self.broker_client_id: str = f"ring_mqtt_{uuid.uuid4().hex[:8]}"
        self.bridge_topic: str = f"{config.ring_topic}/bridge/status"
        self.client: aiomqtt.Client | None = None
        self.command_router: CommandRouter | None = None
        self.on_connect: ConnectCallback | None = None
        self.start_task: asyncio.Task[None] | None = None
        self.last_error: str = ""
        self._connected: bool = False
        self._connect_count: int = 0
        self._subscriptions: set[str] = set()

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def subscriptions(self) -> frozenset[str]:
        return frozenset(self._subscriptions)

    def _make_client(self) -> aiomqtt.Client:
        lwt = aiomqtt.Will(topic=self.bridge_topic, payload=AVAILABILITY_OFFLINE, qos=1, retain=True)
        return aiomqtt.Client(
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.mqtt_user,
            password=self.config.mqtt_pass,
            identifier=self.broker_client_id,
            will=lwt,
        )

    def _get_connection_delay(self, lp: str) -> int:
        if self.conn_delay <= 0:
            logger.debug("%s MQTT connection delay is less than or equal to 0, which is probably a typo, setting to 5...", lp)
            return 5
        return self.conn_delay

    async def connect(self) -> bool:
        lp = f"{self.lp}connect:"
        self._connected = False
        logger.debug("%s Connecting to MQTT broker %s:%s...", lp, self.config.host, self.config.port)
        self.client = self._make_client()
        try:
            _ = await self.client.__aenter__()
        except aiomqtt.MqttError as mqtt_err_exc:
            # -> [Errno 111] Connection refused
            # [code:134] Bad user name or password
            self.last_error = str(mqtt_err_exc)
            logger.error("%s Connection failed [MqttError]: %s", lp, mqtt_err_exc)
            if "code:134" in str(mqtt_err_exc):
                logger.error("%s Bad username or password, check your MQTT credentials (username: %s)", lp, self.config.mqtt_user)
                send_sigterm()
            return False

        self._connected = True
        self._connect_count += 1
        logger.info("%s Connected to MQTT broker: %s port: %s", lp, self.config.host, self.config.port)
        _ = await self.publish(self.bridge_topic, AVAILABILITY_ONLINE, qos=1, retain=True)
        await self._resubscribe()
        return True

    async def _resubscribe(self) -> None:
        assert self.client is not None, "client must be initialized"
        topics = [self.config.hass_topic, *sorted(self._subscriptions)]
        for topic in topics:
            try:
                await self.client.subscribe(topic, qos=1)
            except aiomqtt.MqttError as e:
                logger.warning("%s Failed to subscribe to %s: %s", self.lp, topic, e)
        logger.debug("%s Subscribed to %d MQTT topics", self.lp, len(topics))

    async def _start_receiver(self) -> None:
        rcv_lp = f"{self.lp}rcv:"
        assert self.client is not None, "client must be initialized"
        assert self.command_router is not None, "command_router must be initialized"
        logger.info("%s Waiting for MQTT messages...", rcv_lp)
        async for message in self.client.messages:
            msg: Any = cast("Any", message)
            payload = msg.payload
            if not payload:
                logger.debug("%s Received empty payload for topic: %s , skipping...", rcv_lp, msg.topic)
                continue
            if not isinstance(payload, (str, bytes, bytearray)):
                payload = str(payload)
            await self.command_router.handle_message(msg.topic.value, payload)

    async def start(self) -> None:
        """Keep the broker connection alive until cancelled.

        The first connection is expected to be established by the caller so
        a broker that is unreachable at startup can abort the process.
        """
        lp = f"{self.lp}start:"
        try:
            while True:
                if not self._connected:
                    self._connected = await self.connect()
                if not self._connected:
                    delay = self._get_connection_delay(lp)
                    logger.info("%s connecting to MQTT broker failed, sleeping for %s seconds before re-trying...", lp, delay)
                    await asyncio.sleep(delay)
                    continue

                if self.on_connect is not None:
                    await self.on_connect(self._connect_count == 1)
                try:
                    await self._start_receiver()
                except (aiomqtt.MqttError, aiomqtt.MqttCodeError) as msg_err:
                    logger.warning("%s MQTT error: %s, reconnecting", lp, msg_err)
                    self._connected = False
        except asyncio.CancelledError:
            logger.debug("%s MQTT start task cancelled", lp)
            raise
        except Exception:
            logger.exception("%s MQTT start() EXCEPTION", lp)

    async def stop(self) -> None:
        lp = f"{self.lp}stop:"
        if self._connected:
            _ = await self.publish(self.bridge_topic, AVAILABILITY_OFFLINE, qos=1, retain=True)
        try:
            if self.client is not None:
                logger.debug("%s Disconnecting from broker...", lp)
                await self.client.__aexit__(None, None, None)
        except aiomqtt.MqttError as ce:
            logger.warning("%s MQTT disconnect failed: %s", lp, ce)
        except Exception as e:
            logger.warning("%s MQTT disconnect failed: %s", lp, e)
        else:
            logger.info("%s Disconnected from MQTT broker", lp)
        finally:
            self._connected = False
            if self.start_task and not self.start_task.done():
                logger.debug("%s FINISHING: Cancelling start task", lp)
                _ = self.start_task.cancel()

    async def subscribe(self, topic: str) -> bool:
        lp = f"{self.lp}subscribe:"
        self._subscriptions.add(topic)
        if not self._connected:
            return False
        assert self.client is not None, "client must be initialized"
        try:
            await self.client.subscribe(topic, qos=1)
        except aiomqtt.MqttError as mqtt_err:
            logger.warning("%s [MqttError] -> %s", lp, mqtt_err)
            return False
        return True

    async def publish(self, topic: str, payload: str | bytes, qos: int = 1, retain: bool = False) -> bool:
        """Publish a message to the MQTT broker."""
        lp = f"{self.lp}publish:"
        if not self._connected:
            return False
        assert self.client is not None, "client must be initialized"
        data = payload.encode() if isinstance(payload, str) else payload
        try:
            await self.client.publish(topic, data, qos=qos, retain=retain)
        except aiomqtt.MqttCodeError as mqtt_code_exc:
            logger.warning("%s [MqttCodeError] -> %s", lp, mqtt_code_exc)
            self._connected = False
        except aiomqtt.MqttError as mqtt_err:
            logger.warning("%s [MqttError] -> %s", lp, mqtt_err)
            self._connected = False
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("%s [Exception] -> %s", lp, e)
        else:
            return True
        return False
