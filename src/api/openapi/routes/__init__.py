"""API route handlers."""

from src.api.openapi.routes import health, uploads, videos, webhooks

__all__ = [
    "health",
    "uploads",
    "videos",
    "webhooks",
]
