"""Domain exceptions for the lesson video ingestion service."""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base exception for domain errors."""


class InvalidInputException(DomainException):
    """Raised when a caller or provider sends input we cannot accept."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class UnauthorizedException(DomainException):
    """Raised when a signature or admin credential check fails."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        self.reason = reason
        super().__init__(reason)


class VideoNotFoundException(DomainException):
    """Raised when no video record matches the given identifier."""

    def __init__(self, video_id: str, *, by: str = "id") -> None:
        self.video_id = video_id
        self.by = by
        super().__init__(f"Video not found ({by}): {video_id}")


class DuplicateVideoException(DomainException):
    """Raised when a lesson already has an active video record."""

    def __init__(
        self, course_id: str, lesson_id: str, existing_id: str | None = None
    ) -> None:
        self.course_id = course_id
        self.lesson_id = lesson_id
        self.existing_id = existing_id
        super().__init__(
            f"Video already exists for course {course_id}, lesson {lesson_id}"
        )


class ProviderException(DomainException):
    """Raised when the streaming provider is unavailable or rejects a call."""

    def __init__(
        self,
        operation: str,
        reason: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.operation = operation
        self.reason = reason
        self.status_code = status_code
        self.details = details or {}
        super().__init__(f"Provider call '{operation}' failed: {reason}")


class PersistenceException(DomainException):
    """Raised when the metadata store is unavailable or a write fails."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store operation '{operation}' failed: {reason}")
