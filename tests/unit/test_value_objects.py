"""Unit tests for domain value objects."""

import pytest

from src.domain.exceptions import InvalidInputException
from src.domain.value_objects import DEFAULT_VIDEO_EXTENSIONS, VideoFilename


class TestVideoFilename:
    """Tests for VideoFilename value object."""

    @pytest.mark.parametrize(
        "filename, extension",
        [
            ("lesson1.mp4", "mp4"),
            ("Intro.MP4", "mp4"),
            ("my.lesson.final.webm", "webm"),
            ("  spaced.mov  ", "mov"),
        ],
    )
    def test_extension_normalised(self, filename, extension):
        assert VideoFilename.parse(filename).extension == extension

    def test_value_is_trimmed(self):
        assert str(VideoFilename.parse("  clip.mkv ")) == "clip.mkv"

    @pytest.mark.parametrize("filename", ["malware.exe", "notes.txt", "noextension"])
    def test_disallowed_extension(self, filename):
        with pytest.raises(InvalidInputException) as exc_info:
            VideoFilename.parse(filename)

        assert exc_info.value.field == "filename"
        assert "Invalid file type" in str(exc_info.value)
        assert "MP4" in str(exc_info.value)

    @pytest.mark.parametrize("filename", ["", "   "])
    def test_blank_filename(self, filename):
        with pytest.raises(InvalidInputException, match="Filename is required"):
            VideoFilename.parse(filename)

    def test_custom_allow_list(self):
        assert VideoFilename.parse("a.ogv", [".ogv"]).extension == "ogv"
        with pytest.raises(InvalidInputException):
            VideoFilename.parse("a.mp4", ["ogv"])

    def test_default_extensions(self):
        assert DEFAULT_VIDEO_EXTENSIONS == {"mp4", "webm", "mov", "avi", "mkv", "flv"}

    def test_direct_construction_rejects_blank(self):
        with pytest.raises(ValueError):
            VideoFilename(value="   ")
