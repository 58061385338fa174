"""Outbound notification abstractions and implementations."""

from src.infrastructure.notifications.base import StatusNotifierBase
from src.infrastructure.notifications.webhook_notifier import WebhookStatusNotifier

__all__ = [
    "StatusNotifierBase",
    "WebhookStatusNotifier",
]
