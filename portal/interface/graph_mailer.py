"""Outbound email through Microsoft Graph using client-credentials auth via httpx."""

import logging
import time
from typing import Protocol

import httpx
from pydantic import BaseModel, Field

from portal.core.config import constants, settings
from portal.core.errors import DownstreamServiceError


logger = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
GRAPH_API_URL = "https://graph.microsoft.com/v1.0"
LOGIN_URL = "https://login.microsoftonline.com"


class SendEmailResult(BaseModel):
    """Result of sending one email."""

    success: bool = Field(..., description="Whether Graph accepted the message")
    error: str | None = Field(None, description="Error message if failed")


class Mailer(Protocol):
    """Anything that can deliver an HTML email."""

    @property
    def is_configured(self) -> bool: ...

    async def send_email(self, *, to: str, subject: str, html: str) -> SendEmailResult: ...


class GraphMailer:
    """Sends mail as ``settings.mailbox_to_send_from`` through the Graph sendMail API."""

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport
        self._token: str | None = None
        self._token_expires_at: float = 0.0

    @property
    def is_configured(self) -> bool:
        return all(
            [
                settings.azure_ad_tenant_id,
                settings.azure_ad_client_id,
                settings.azure_ad_client_secret,
                settings.mailbox_to_send_from,
            ]
        )

    async def _get_token(self, client: httpx.AsyncClient) -> str:
        """Return a cached access token, requesting a new one shortly before expiry."""
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        tenant_id = settings.require_credential("azure_ad_tenant_id", "Microsoft Graph")
        response = await client.post(
            f"{LOGIN_URL}/{tenant_id}/oauth2/v2.0/token",
            data={
                "grant_type": "client_credentials",
                "client_id": settings.require_credential("azure_ad_client_id", "Microsoft Graph"),
                "client_secret": settings.require_credential("azure_ad_client_secret", "Microsoft Graph"),
                "scope": GRAPH_SCOPE,
            },
        )
        response.raise_for_status()
        body = response.json()

        self._token = body["access_token"]
        expires_in = int(body.get("expires_in", 3600))
        self._token_expires_at = time.monotonic() + expires_in - constants.GRAPH_TOKEN_EXPIRY_MARGIN_SECONDS
        return self._token

    async def send_email(self, *, to: str, subject: str, html: str) -> SendEmailResult:
        """Send one HTML email. Failures are reported in the result, never retried."""
        sender = settings.mailbox_to_send_from
        if not self.is_configured or not sender:
            return SendEmailResult(success=False, error="Mail credentials are not configured")

        message = {
            "message": {
                "subject": subject,
                "body": {"contentType": "HTML", "content": html},
                "from": {"emailAddress": {"address": sender}},
                "toRecipients": [{"emailAddress": {"address": to}}],
            },
            "saveToSentItems": True,
        }

        try:
            async with httpx.AsyncClient(timeout=constants.API_TIMEOUT_SECONDS, transport=self._transport) as client:
                token = await self._get_token(client)
                response = await client.post(
                    f"{GRAPH_API_URL}/users/{sender}/sendMail",
                    json=message,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.error("graph_send_failed", extra={"to": to, "subject": subject, "error": str(e)})
            return SendEmailResult(success=False, error=f"Graph request failed: {e!s}")

        if response.is_success:
            logger.info("Email sent", extra={"to": to, "subject": subject})
            return SendEmailResult(success=True)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            self._token = None
        logger.error(
            "graph_send_rejected", extra={"to": to, "status_code": response.status_code, "body": response.text[:500]}
        )
        return SendEmailResult(success=False, error=f"Graph returned {response.status_code}: {response.text[:200]}")


async def send_or_raise(mailer: Mailer, *, to: str, subject: str, html: str) -> None:
    """Send an email and raise DownstreamServiceError when it is not delivered."""
    result = await mailer.send_email(to=to, subject=subject, html=html)
    if not result.success:
        raise DownstreamServiceError("Email delivery", result.error or "unknown error")


class _MailerState:
    """Singleton state for the mailer instance."""

    instance: GraphMailer | None = None


def get_mailer() -> Mailer:
    """Return the process-wide Graph mailer."""
    if _MailerState.instance is None:
        _MailerState.instance = GraphMailer()
    return _MailerState.instance
