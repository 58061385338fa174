"""Inbound provider webhook handling."""

import hashlib
import hmac

from pydantic import ValidationError

from src.application.dtos.webhooks import ProviderWebhookPayload, WebhookOutcome
from src.application.services.reconciler import StatusReconciler
from src.commons.settings.models import WebhookSettings
from src.commons.telemetry import LogContext, get_logger
from src.domain.exceptions import (
    InvalidInputException,
    UnauthorizedException,
    VideoNotFoundException,
)


def parse_signature_header(header_value: str) -> dict[str, str]:
    """Split ``k1=v1,k2=v2`` into a dict. Malformed pairs are skipped."""
    pairs: dict[str, str] = {}
    for part in header_value.split(","):
        key, sep, value = part.strip().partition("=")
        if sep and key:
            pairs[key.strip()] = value.strip()
    return pairs


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


class WebhookReceiverService:
    """Authenticates, parses and dispatches provider webhooks.

    The signature is checked over the exact bytes received, before the
    body is parsed or the store is touched.
    """

    def __init__(
        self,
        reconciler: StatusReconciler,
        settings: WebhookSettings,
    ) -> None:
        self._reconciler = reconciler
        self._settings = settings
        self._logger = get_logger(__name__)

    @property
    def signature_header(self) -> str:
        return self._settings.signature_header

    def verify_signature(self, raw_body: bytes, header_value: str | None) -> None:
        """Check the delivery signature.

        Raises:
            UnauthorizedException: If a secret is configured and the header
                is missing, lacks the signature key, or does not match.
        """
        secret = self._settings.secret
        if not secret:
            self._logger.warning(
                "Webhook secret not configured, accepting unsigned delivery"
            )
            return

        if not header_value:
            raise UnauthorizedException("Missing webhook signature")

        provided = parse_signature_header(header_value).get(
            self._settings.signature_key
        )
        if not provided:
            raise UnauthorizedException("Malformed webhook signature")

        expected = compute_signature(secret, raw_body)
        if not hmac.compare_digest(provided.lower(), expected):
            raise UnauthorizedException("Invalid webhook signature")

    def parse_payload(self, raw_body: bytes) -> ProviderWebhookPayload:
        """Validate the body against the payload schema.

        Raises:
            InvalidInputException: If the body is not valid JSON or does not
                match the schema.
        """
        try:
            return ProviderWebhookPayload.model_validate_json(raw_body)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise InvalidInputException(
                f"Invalid webhook payload: {first.get('msg', 'validation failed')}",
                field=location or None,
            ) from e

    async def handle(
        self,
        raw_body: bytes,
        signature: str | None,
    ) -> WebhookOutcome:
        """Process one delivery end to end.

        Args:
            raw_body: Request body exactly as received.
            signature: Value of the signature header, if any.

        Returns:
            What the delivery did to the stored record.
        """
        self.verify_signature(raw_body, signature)
        payload = self.parse_payload(raw_body)

        with LogContext(provider_video_id=payload.uid):
            try:
                result = await self._reconciler.reconcile(payload.to_status_report())
            except VideoNotFoundException:
                self._logger.info("Webhook for unknown video ignored")
                return WebhookOutcome.IGNORED

        return WebhookOutcome.UPDATED if result.applied else WebhookOutcome.UNCHANGED
