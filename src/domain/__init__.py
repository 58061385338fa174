"""Domain layer - business models and logic."""

from src.domain.exceptions import (
    DomainException,
    DuplicateVideoException,
    InvalidInputException,
    PersistenceException,
    ProviderException,
    UnauthorizedException,
    VideoNotFoundException,
)
from src.domain.models import StatusReport, VideoRecord, VideoStatus
from src.domain.value_objects import DEFAULT_VIDEO_EXTENSIONS, VideoFilename

__all__ = [
    # Exceptions
    "DomainException",
    "InvalidInputException",
    "UnauthorizedException",
    "VideoNotFoundException",
    "DuplicateVideoException",
    "ProviderException",
    "PersistenceException",
    # Models
    "VideoRecord",
    "VideoStatus",
    "StatusReport",
    # Value Objects
    "VideoFilename",
    "DEFAULT_VIDEO_EXTENSIONS",
]
