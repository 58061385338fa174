"""Streaming provider webhook endpoint."""

from fastapi import APIRouter, Request

from src.api.dependencies import WebhookReceiverDep
from src.application.dtos.webhooks import WebhookResponse

router = APIRouter()


@router.post(
    "/webhooks/video-provider",
    response_model=WebhookResponse,
    summary="Provider status webhook",
    description=(
        "Receive asset status notifications from the streaming provider. "
        "The body is authenticated with an HMAC-SHA256 signature header."
    ),
)
async def receive_provider_webhook(
    request: Request,
    receiver: WebhookReceiverDep,
) -> WebhookResponse:
    """Verify, parse and reconcile a provider notification.

    Unknown videos are acknowledged with ``ignored`` so the provider stops
    retrying; storage failures surface as 500 so it retries.
    """
    raw_body = await request.body()
    signature = request.headers.get(receiver.signature_header)
    outcome = await receiver.handle(raw_body, signature)
    return WebhookResponse(status=outcome)
