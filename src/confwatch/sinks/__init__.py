"""Notification sinks receiving refresh events."""

from confwatch.sinks.base import NotificationSink
from confwatch.sinks.bus import EventBus
from confwatch.sinks.mqtt import MqttSink
from confwatch.sinks.webhook import WebhookSink

__all__ = ["EventBus", "MqttSink", "NotificationSink", "WebhookSink"]
