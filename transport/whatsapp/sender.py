"""
WhatsApp Response Sender

Sends relay output back to WhatsApp.
No formatting intelligence. No retries. No logic.
"""

import logging
from typing import Optional

import httpx

from .schemas import TextMessageRequest, WhatsAppMessageResponse

logger = logging.getLogger(__name__)


class WhatsAppSenderError(Exception):
    """Failed to send response to WhatsApp."""
    pass


class WhatsAppSender:
    """Client for the Cloud API send-message endpoint."""

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v18.0",
        graph_url: str = "https://graph.facebook.com",
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.api_version = api_version
        self.graph_url = graph_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.graph_url}/{self.api_version}/{self.phone_number_id}/messages"

    async def send_text(self, request: TextMessageRequest) -> WhatsAppMessageResponse:
        """
        Send a text reply via WhatsApp Cloud API.

        No formatting, no branching, no retries.

        Raises:
            WhatsAppSenderError: Missing credentials, non-200 reply,
                or transport failure
        """

        if not self.access_token:
            raise WhatsAppSenderError("WHATSAPP_ACCESS_TOKEN not configured")
        if not self.phone_number_id:
            raise WhatsAppSenderError("WHATSAPP_PHONE_NUMBER_ID not configured")

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    json=request.to_graph_payload(),
                    headers=headers,
                    timeout=self.timeout_s,
                )
        except httpx.RequestError as e:
            raise WhatsAppSenderError(f"HTTP request failed: {e}") from e

        if response.status_code != 200:
            error_text = response.text
            logger.error(
                f"WhatsApp API error: {response.status_code} - {error_text}",
                extra={
                    "status_code": response.status_code,
                    "error_body": error_text,
                },
            )
            raise WhatsAppSenderError(
                f"WhatsApp API returned {response.status_code}"
            )

        try:
            result = WhatsAppMessageResponse(**response.json())
        except (TypeError, ValueError) as e:
            raise WhatsAppSenderError(f"Unreadable WhatsApp API response: {e}") from e

        logger.info(
            f"Response sent to {request.to}",
            extra={
                "recipient": request.to,
                "response_id": result.message_id,
            },
        )
        return result
