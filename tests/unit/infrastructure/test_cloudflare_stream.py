"""Unit tests for the Cloudflare Stream client."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from src.domain.exceptions import ProviderException
from src.domain.models import VideoStatus
from src.infrastructure.streaming import CloudflareStreamClient, UploadTicketOptions

ACCOUNT = "acct-1"


def envelope(result, success=True, errors=None):
    return {
        "success": success,
        "errors": errors or [],
        "messages": [],
        "result": result,
    }


def make_client(handler) -> CloudflareStreamClient:
    return CloudflareStreamClient(
        account_id=ACCOUNT,
        api_token="token-1",
        base_url="https://api.test/client/v4",
        transport=httpx.MockTransport(handler),
    )


def ticket_options() -> UploadTicketOptions:
    return UploadTicketOptions(
        max_duration_seconds=3600,
        expires_at=datetime(2026, 5, 4, 10, 0, 30, 999, tzinfo=UTC),
        meta={"courseId": "c1", "lessonId": "l1"},
    )


class TestIssueUploadTicket:
    async def test_request_and_response(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["path"] = request.url.path
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=envelope(
                    {"uploadURL": "https://upload.test/tus/uid-1", "uid": "uid-1"}
                ),
            )

        client = make_client(handler)
        ticket = await client.issue_upload_ticket(ticket_options())

        assert ticket.upload_url == "https://upload.test/tus/uid-1"
        assert ticket.provider_video_id == "uid-1"
        assert captured["method"] == "POST"
        assert captured["path"] == f"/client/v4/accounts/{ACCOUNT}/stream/direct_upload"
        assert captured["auth"] == "Bearer token-1"
        assert captured["body"] == {
            "maxDurationSeconds": 3600,
            "expiry": "2026-05-04T10:00:30Z",
            "meta": {"courseId": "c1", "lessonId": "l1"},
            "requireSignedURLs": False,
        }
        await client.close()

    async def test_api_error_envelope(self):
        def handler(request):
            return httpx.Response(
                400,
                json=envelope(
                    None,
                    success=False,
                    errors=[{"code": 10005, "message": "Invalid expiry"}],
                ),
            )

        with pytest.raises(ProviderException) as exc_info:
            await make_client(handler).issue_upload_ticket(ticket_options())

        assert exc_info.value.operation == "issue_upload_ticket"
        assert exc_info.value.reason == "Invalid expiry"
        assert exc_info.value.status_code == 400
        assert exc_info.value.details["errors"][0]["code"] == 10005

    async def test_success_false_with_200(self):
        def handler(request):
            return httpx.Response(200, json=envelope(None, success=False))

        with pytest.raises(ProviderException) as exc_info:
            await make_client(handler).issue_upload_ticket(ticket_options())

        assert exc_info.value.reason == "HTTP 200"

    async def test_missing_upload_url(self):
        def handler(request):
            return httpx.Response(200, json=envelope({"uid": "uid-1"}))

        with pytest.raises(ProviderException, match="uploadURL"):
            await make_client(handler).issue_upload_ticket(ticket_options())

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ProviderException) as exc_info:
            await make_client(handler).issue_upload_ticket(ticket_options())

        assert exc_info.value.reason == "request timed out"

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderException, match="connection refused"):
            await make_client(handler).issue_upload_ticket(ticket_options())

    async def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        with pytest.raises(ProviderException) as exc_info:
            await make_client(handler).issue_upload_ticket(ticket_options())

        assert exc_info.value.status_code == 502


class TestAssetStatus:
    async def test_parses_asset(self):
        def handler(request):
            assert request.url.path.endswith(f"/accounts/{ACCOUNT}/stream/uid-1")
            return httpx.Response(
                200,
                json=envelope(
                    {
                        "uid": "uid-1",
                        "status": {
                            "state": "inprogress",
                            "pctComplete": "37.5",
                            "errorReasonCode": "",
                        },
                        "duration": -1,
                        "thumbnail": "https://cdn/t.jpg",
                        "playback": {"hls": "https://cdn/v.m3u8"},
                        "meta": {"courseId": "c1"},
                        "created": "2026-05-04T09:00:00.000000Z",
                    }
                ),
            )

        asset = await make_client(handler).get_asset_status("uid-1")

        assert asset.provider_video_id == "uid-1"
        assert asset.state == VideoStatus.IN_PROGRESS
        assert asset.progress == 37.5
        assert asset.duration == -1.0
        assert asset.playback_hls_url == "https://cdn/v.m3u8"
        assert asset.playback_dash_url is None
        assert asset.error_code is None
        assert asset.created_at == datetime(2026, 5, 4, 9, 0, tzinfo=UTC)

        report = asset.to_status_report()
        assert report.state == VideoStatus.IN_PROGRESS
        assert report.progress == 37.5

    async def test_unknown_state_becomes_none(self):
        def handler(request):
            return httpx.Response(
                200, json=envelope({"uid": "uid-1", "status": {"state": "mystery"}})
            )

        asset = await make_client(handler).get_asset_status("uid-1")
        assert asset.state is None

    async def test_pending_upload_is_queued(self):
        def handler(request):
            return httpx.Response(
                200,
                json=envelope({"uid": "uid-1", "status": {"state": "pendingupload"}}),
            )

        asset = await make_client(handler).get_asset_status("uid-1")
        assert asset.state == VideoStatus.QUEUED


class TestDeleteAndList:
    async def test_delete_asset(self):
        def handler(request):
            assert request.method == "DELETE"
            return httpx.Response(200, json=envelope(None))

        assert await make_client(handler).delete_asset("uid-1") is True

    async def test_delete_missing_asset(self):
        def handler(request):
            return httpx.Response(
                404,
                json=envelope(
                    None,
                    success=False,
                    errors=[{"code": 10003, "message": "Not found"}],
                ),
            )

        assert await make_client(handler).delete_asset("uid-1") is False

    async def test_delete_server_error_raises(self):
        def handler(request):
            return httpx.Response(500, json=envelope(None, success=False))

        with pytest.raises(ProviderException):
            await make_client(handler).delete_asset("uid-1")

    async def test_list_assets(self):
        def handler(request):
            assert request.url.params["limit"] == "50"
            assert request.url.params["status"] == "ready"
            return httpx.Response(
                200,
                json=envelope(
                    [
                        {"uid": "a", "status": {"state": "ready"}},
                        {"uid": "b", "status": {"state": "ready"}},
                    ]
                ),
            )

        assets = await make_client(handler).list_assets(
            status=VideoStatus.READY, limit=50
        )

        assert [asset.provider_video_id for asset in assets] == ["a", "b"]


class TestHealthCheck:
    async def test_healthy(self):
        def handler(request):
            return httpx.Response(200, json=envelope([]))

        status = await make_client(handler).health_check()
        assert status.healthy is True

    async def test_unauthorized(self):
        def handler(request):
            return httpx.Response(
                403,
                json=envelope(
                    None,
                    success=False,
                    errors=[{"code": 10000, "message": "Authentication error"}],
                ),
            )

        status = await make_client(handler).health_check()

        assert status.healthy is False
        assert "Authentication error" in status.message
