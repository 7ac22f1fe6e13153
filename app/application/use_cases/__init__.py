"""Aggregate application use cases."""

from .notifications import MaintenanceScheduler, NotificationDispatcher

__all__ = [
    "MaintenanceScheduler",
    "NotificationDispatcher",
]
