"""MQTT sink publishing refresh events with paho-mqtt."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, cast

import paho.mqtt.client as mqtt

from confwatch.exceptions import NotificationError
from confwatch.models.events import RefreshEvent


class MqttSink:
    """Publish each refresh event as JSON on an MQTT topic.

    The paho network loop runs on its own thread; :meth:`publish` hands the
    message to it and, for QoS above zero, waits for the broker
    acknowledgement in an executor so the event loop is never blocked.
    """

    def __init__(
        self,
        *,
        host: str,
        topic: str,
        port: int = 1883,
        client_id: str = "",
        username: str | None = None,
        password: str | None = None,
        tls: bool = False,
        qos: int = 1,
        keepalive: int = 60,
        publish_timeout: float = 5.0,
        client: mqtt.Client | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._topic = topic
        self._client_id = client_id
        self._username = username
        self._password = password
        self._tls = tls
        self._qos = qos
        self._keepalive = keepalive
        self._publish_timeout = publish_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._client = client
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def _build_client(self) -> mqtt.Client:
        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if self._username is not None:
            client.username_pw_set(self._username, self._password)
        if self._tls:
            client.tls_set()

        def on_connect(
            _c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected host=%s topic=%s", self._host, self._topic)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_disconnect = on_disconnect
        return client

    def start(self) -> None:
        """Connect to the broker and start the network loop."""
        if self._running:
            return
        client = self._client or self._build_client()
        client.connect(self._host, self._port, keepalive=self._keepalive)
        client.loop_start()
        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Disconnect and stop the network loop."""
        client = self._client
        was_running = self._running
        self._running = False
        if client is None or not was_running:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    async def __aenter__(self) -> MqttSink:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.stop()

    async def publish(self, event: RefreshEvent) -> None:
        client = self._client
        if client is None or not self._running:
            raise NotificationError("MQTT sink is not running")

        info = client.publish(self._topic, event.model_dump_json(), qos=self._qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise NotificationError(f"MQTT publish to {self._topic} failed: {mqtt.error_string(info.rc)}")
        if self._qos == 0:
            return

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, info.wait_for_publish, self._publish_timeout)
        except (RuntimeError, ValueError) as exc:
            raise NotificationError(f"MQTT publish to {self._topic} failed: {exc}") from exc
        if not info.is_published():
            raise NotificationError(f"MQTT publish to {self._topic} not acknowledged within {self._publish_timeout}s")
