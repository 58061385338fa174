"""Domain value objects."""

from src.domain.value_objects.video_filename import (
    DEFAULT_VIDEO_EXTENSIONS,
    VideoFilename,
)

__all__ = [
    "DEFAULT_VIDEO_EXTENSIONS",
    "VideoFilename",
]
