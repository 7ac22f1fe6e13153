"""Realtime notification helpers for the infrastructure layer."""

from .manager import DEFAULT_SEND_TIMEOUT_SECONDS, ConnectionRegistry, LiveConnection
from .publisher import NotificationPublisher, serialize_notification

__all__ = [
    "ConnectionRegistry",
    "LiveConnection",
    "DEFAULT_SEND_TIMEOUT_SECONDS",
    "NotificationPublisher",
    "serialize_notification",
]
