"""Abstract base class for outbound status-change notifications."""

from abc import ABC, abstractmethod
from typing import Any


class StatusNotifierBase(ABC):
    """Delivers video status-change events to an external consumer."""

    @abstractmethod
    async def notify(self, event: dict[str, Any]) -> None:
        """Deliver one event.

        Raises:
            Exception: Any delivery failure. Callers treat delivery as
                best-effort.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
