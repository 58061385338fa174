"""Unit tests for domain exceptions."""

import pytest

from src.domain.exceptions import (
    DomainException,
    DuplicateVideoException,
    InvalidInputException,
    PersistenceException,
    ProviderException,
    UnauthorizedException,
    VideoNotFoundException,
)


@pytest.mark.parametrize(
    "exc",
    [
        InvalidInputException("bad"),
        UnauthorizedException(),
        VideoNotFoundException("v1"),
        DuplicateVideoException("c1", "l1"),
        ProviderException("op", "down"),
        PersistenceException("op", "down"),
    ],
)
def test_all_inherit_domain_exception(exc):
    assert isinstance(exc, DomainException)


class TestInvalidInputException:
    def test_field_is_optional(self):
        exc = InvalidInputException("fileSize must be a positive integer")
        assert exc.field is None
        assert str(exc) == "fileSize must be a positive integer"

    def test_field(self):
        exc = InvalidInputException("Filename is required", field="filename")
        assert exc.field == "filename"


class TestUnauthorizedException:
    def test_default_reason(self):
        assert UnauthorizedException().reason == "Unauthorized"

    def test_custom_reason(self):
        exc = UnauthorizedException("Invalid webhook signature")
        assert exc.reason == "Invalid webhook signature"
        assert str(exc) == "Invalid webhook signature"


class TestVideoNotFoundException:
    def test_attributes(self):
        exc = VideoNotFoundException("video-123")
        assert exc.video_id == "video-123"
        assert exc.by == "id"
        assert "video-123" in str(exc)

    def test_lookup_kind_in_message(self):
        exc = VideoNotFoundException("uid-9", by="provider_video_id")
        assert str(exc) == "Video not found (provider_video_id): uid-9"


class TestDuplicateVideoException:
    def test_attributes(self):
        exc = DuplicateVideoException("course-1", "lesson-2", existing_id="rec-3")
        assert exc.course_id == "course-1"
        assert exc.lesson_id == "lesson-2"
        assert exc.existing_id == "rec-3"
        assert "course-1" in str(exc)
        assert "lesson-2" in str(exc)

    def test_existing_id_optional(self):
        assert DuplicateVideoException("c", "l").existing_id is None


class TestProviderException:
    def test_attributes(self):
        exc = ProviderException(
            "issue_upload_ticket",
            "quota exceeded",
            status_code=429,
            details={"errors": [{"code": 10011}]},
        )
        assert exc.operation == "issue_upload_ticket"
        assert exc.reason == "quota exceeded"
        assert exc.status_code == 429
        assert exc.details == {"errors": [{"code": 10011}]}
        assert str(exc) == "Provider call 'issue_upload_ticket' failed: quota exceeded"

    def test_defaults(self):
        exc = ProviderException("get_asset_status", "request timed out")
        assert exc.status_code is None
        assert exc.details == {}


class TestPersistenceException:
    def test_attributes(self):
        exc = PersistenceException("create", "server selection timeout")
        assert exc.operation == "create"
        assert exc.reason == "server selection timeout"
        assert str(exc) == "Store operation 'create' failed: server selection timeout"
