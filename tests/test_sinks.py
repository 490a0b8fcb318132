from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import paho.mqtt.client as mqtt
import pytest

from confwatch.exceptions import NotificationError
from confwatch.models.events import Category, ChangedCategory, RefreshEvent
from confwatch.sinks.bus import EventBus
from confwatch.sinks.mqtt import MqttSink
from confwatch.sinks.webhook import WebhookSink


def _event() -> RefreshEvent:
    return RefreshEvent(changes=(ChangedCategory(store="store1", category=Category.CONFIGURATION),))


# ----------------------------------------------------------------------
# EventBus
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_event_bus_delivers_to_sync_and_async_subscribers() -> None:
    bus = EventBus()
    seen: list[str] = []

    async def _async_subscriber(event: RefreshEvent) -> None:
        seen.append(f"async:{event.stores[0]}")

    bus.subscribe(lambda event: seen.append(f"sync:{event.stores[0]}"))
    bus.subscribe(_async_subscriber)

    await bus.publish(_event())

    assert seen == ["sync:store1", "async:store1"]
    assert bus.published == 1


@pytest.mark.asyncio
async def test_event_bus_failing_subscriber_does_not_block_others() -> None:
    bus = EventBus()
    seen: list[RefreshEvent] = []

    def _broken(_event: RefreshEvent) -> None:
        raise RuntimeError("boom")

    bus.subscribe(_broken)
    bus.subscribe(seen.append)

    await bus.publish(_event())

    assert len(seen) == 1


@pytest.mark.asyncio
async def test_event_bus_unsubscribe() -> None:
    bus = EventBus()
    seen: list[RefreshEvent] = []
    unsubscribe = bus.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    await bus.publish(_event())

    assert seen == []
    assert bus.published == 1


# ----------------------------------------------------------------------
# WebhookSink
# ----------------------------------------------------------------------


@dataclass
class _FakeResponse:
    status: int
    body: str = ""

    async def text(self) -> str:
        return self.body


@dataclass
class _FakePost:
    response: _FakeResponse | None
    error: Exception | None = None

    async def __aenter__(self) -> _FakeResponse:
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    async def __aexit__(self, *exc: Any) -> None:
        return None


@dataclass
class FakeHttpSession:
    status: int = 204
    error: Exception | None = None
    requests: list[dict[str, Any]] = field(default_factory=list)
    closed: bool = False

    def post(self, url: str, *, data: str, headers: dict[str, str]) -> _FakePost:
        self.requests.append({"url": url, "data": data, "headers": headers})
        return _FakePost(response=_FakeResponse(self.status, "nope"), error=self.error)

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_webhook_posts_event_json() -> None:
    http = FakeHttpSession()
    async with WebhookSink(
        "https://hooks.example.test/refresh",
        session=http,  # type: ignore[arg-type]
        headers={"x-token": "t"},
    ) as sink:
        await sink.publish(_event())

    request = http.requests[0]
    assert request["url"] == "https://hooks.example.test/refresh"
    assert request["headers"]["content-type"] == "application/json"
    assert request["headers"]["x-token"] == "t"
    assert json.loads(request["data"])["changes"] == [{"store": "store1", "category": "configuration"}]
    # External sessions are left open for their owner.
    assert http.closed is False


@pytest.mark.asyncio
async def test_webhook_non_2xx_raises() -> None:
    sink = WebhookSink("https://hooks.example.test/refresh", session=FakeHttpSession(status=500))  # type: ignore[arg-type]
    with pytest.raises(NotificationError, match="HTTP 500"):
        await sink.publish(_event())


@pytest.mark.asyncio
async def test_webhook_client_error_is_wrapped() -> None:
    http = FakeHttpSession(error=aiohttp.ClientConnectionError("refused"))
    sink = WebhookSink("https://hooks.example.test/refresh", session=http)  # type: ignore[arg-type]
    with pytest.raises(NotificationError, match="refused") as excinfo:
        await sink.publish(_event())
    assert isinstance(excinfo.value.__cause__, aiohttp.ClientError)


@pytest.mark.asyncio
async def test_webhook_requires_context_without_session() -> None:
    sink = WebhookSink("https://hooks.example.test/refresh")
    with pytest.raises(NotificationError, match="not initialized"):
        await sink.publish(_event())


# ----------------------------------------------------------------------
# MqttSink
# ----------------------------------------------------------------------


@dataclass
class _FakeMessageInfo:
    rc: int = mqtt.MQTT_ERR_SUCCESS
    published: bool = True
    waited: list[float | None] = field(default_factory=list)

    def wait_for_publish(self, timeout: float | None = None) -> None:
        self.waited.append(timeout)

    def is_published(self) -> bool:
        return self.published


@dataclass
class FakeMqttClient:
    info: _FakeMessageInfo = field(default_factory=_FakeMessageInfo)
    published: list[tuple[str, str, int]] = field(default_factory=list)
    connected_to: tuple[str, int] | None = None
    loop_running: bool = False

    def connect(self, host: str, port: int, keepalive: int = 60) -> None:
        self.connected_to = (host, port)

    def loop_start(self) -> None:
        self.loop_running = True

    def loop_stop(self) -> None:
        self.loop_running = False

    def disconnect(self) -> None:
        self.connected_to = None

    def publish(self, topic: str, payload: str, qos: int = 0) -> _FakeMessageInfo:
        self.published.append((topic, payload, qos))
        return self.info


@pytest.mark.asyncio
async def test_mqtt_sink_publishes_and_waits_for_ack() -> None:
    client = FakeMqttClient()
    async with MqttSink(host="broker.test", topic="config/refresh", client=client) as sink:  # type: ignore[arg-type]
        assert client.connected_to == ("broker.test", 1883)
        assert client.loop_running
        await sink.publish(_event())

    topic, payload, qos = client.published[0]
    assert topic == "config/refresh"
    assert qos == 1
    assert json.loads(payload)["message"] == "Configuration Refresh Event"
    assert client.info.waited == [5.0]
    assert not client.loop_running
    assert not sink.is_running


@pytest.mark.asyncio
async def test_mqtt_sink_qos0_does_not_wait() -> None:
    client = FakeMqttClient()
    sink = MqttSink(host="broker.test", topic="t", qos=0, client=client)  # type: ignore[arg-type]
    sink.start()
    await sink.publish(_event())
    sink.stop()

    assert client.info.waited == []


@pytest.mark.asyncio
async def test_mqtt_sink_publish_error_code_raises() -> None:
    client = FakeMqttClient(info=_FakeMessageInfo(rc=mqtt.MQTT_ERR_NO_CONN))
    sink = MqttSink(host="broker.test", topic="t", client=client)  # type: ignore[arg-type]
    sink.start()
    with pytest.raises(NotificationError):
        await sink.publish(_event())


@pytest.mark.asyncio
async def test_mqtt_sink_unacknowledged_publish_raises() -> None:
    client = FakeMqttClient(info=_FakeMessageInfo(published=False))
    sink = MqttSink(host="broker.test", topic="t", publish_timeout=0.1, client=client)  # type: ignore[arg-type]
    sink.start()
    with pytest.raises(NotificationError, match="not acknowledged"):
        await sink.publish(_event())


@pytest.mark.asyncio
async def test_mqtt_sink_not_started_raises() -> None:
    sink = MqttSink(host="broker.test", topic="t", client=FakeMqttClient())  # type: ignore[arg-type]
    with pytest.raises(NotificationError, match="not running"):
        await sink.publish(_event())
