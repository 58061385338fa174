"""Unit tests for the outbound status webhook notifier."""

import json

import httpx
import pytest

from src.infrastructure.notifications import WebhookStatusNotifier


async def test_posts_event_as_json():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append((request.method, str(request.url), json.loads(request.content)))
        return httpx.Response(204)

    notifier = WebhookStatusNotifier(
        "https://hooks.test/videos", transport=httpx.MockTransport(handler)
    )
    await notifier.notify({"event": "video.status_changed", "status": "ready"})
    await notifier.close()

    assert received == [
        (
            "POST",
            "https://hooks.test/videos",
            {"event": "video.status_changed", "status": "ready"},
        )
    ]


async def test_error_status_raises():
    notifier = WebhookStatusNotifier(
        "https://hooks.test/videos",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )

    with pytest.raises(httpx.HTTPStatusError):
        await notifier.notify({"event": "video.status_changed"})
