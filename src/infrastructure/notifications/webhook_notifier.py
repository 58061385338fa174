"""HTTP webhook implementation of status notifications."""

from typing import Any

import httpx

from src.infrastructure.notifications.base import StatusNotifierBase


class WebhookStatusNotifier(StatusNotifierBase):
    """POSTs status-change events as JSON to a fixed URL."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def notify(self, event: dict[str, Any]) -> None:
        response = await self._client.post(self._url, json=event)
        response.raise_for_status()

    async def close(self) -> None:
        await self._client.aclose()
