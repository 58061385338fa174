"""Domain models."""

from src.domain.models.video import StatusReport, VideoRecord, VideoStatus

__all__ = [
    "StatusReport",
    "VideoRecord",
    "VideoStatus",
]
