"""Video filename value object."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator

from src.domain.exceptions import InvalidInputException

DEFAULT_VIDEO_EXTENSIONS: frozenset[str] = frozenset(
    {"mp4", "webm", "mov", "avi", "mkv", "flv"}
)


class VideoFilename(BaseModel):
    """Value object for a client-supplied video filename.

    Only the extension matters to us; it is normalised to lowercase without
    the leading dot.

    Examples:
        >>> VideoFilename.parse("Intro.MP4").extension
        'mp4'
    """

    value: str = Field(min_length=1, description="Original filename")

    @field_validator("value")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Filename cannot be blank")
        return v

    @property
    def extension(self) -> str:
        return PurePosixPath(self.value).suffix.lstrip(".").lower()

    @classmethod
    def parse(
        cls,
        filename: str,
        allowed_extensions: Iterable[str] = DEFAULT_VIDEO_EXTENSIONS,
    ) -> VideoFilename:
        """Validate a filename against an extension allow-list.

        Args:
            filename: Filename as sent by the client.
            allowed_extensions: Accepted extensions, with or without dots.

        Returns:
            A VideoFilename instance.

        Raises:
            InvalidInputException: If the name is blank or the extension is
                not allowed.
        """
        if not filename or not filename.strip():
            raise InvalidInputException("Filename is required", field="filename")

        candidate = cls(value=filename)
        allowed = {ext.lower().lstrip(".") for ext in allowed_extensions}
        if candidate.extension not in allowed:
            formats = ", ".join(sorted(ext.upper() for ext in allowed))
            raise InvalidInputException(
                f"Invalid file type. Supported formats: {formats}",
                field="filename",
            )
        return candidate

    def __str__(self) -> str:
        return self.value
