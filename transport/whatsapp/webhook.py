"""
WhatsApp Webhook Receiver

FastAPI router for the Cloud API webhook plus the WebhookHandler that
relays each text message to the model and sends the completion back.

POST always answers 200. Meta redelivers any event that is not
acknowledged, so every failure on that path is logged and swallowed in
WebhookHandler.receive and nowhere else.
"""

import json
import logging
from typing import Any, Optional, Protocol

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from inference import CompletionAggregator

from .normalize import extract_message
from .schemas import NoMessage, NormalizedMessage, TextMessageRequest, WhatsAppMessageResponse
from .security import verify_webhook_challenge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["WhatsApp Transport"])


class ReplySender(Protocol):
    async def send_text(self, request: TextMessageRequest) -> WhatsAppMessageResponse:
        ...

class WebhookHandler:
    """
    Orchestrates one webhook event: extract → generate → send.

    Holds only immutable collaborators, so one instance serves every
    concurrent request.
    """

    def __init__(self, verify_token: str, aggregator: CompletionAggregator, sender: ReplySender):
        self.verify_token = verify_token
        self.aggregator = aggregator
        self.sender = sender

    def verify(
        self,
        mode: Optional[str],
        challenge: Optional[str],
        supplied_token: Optional[str],
    ) -> int:
        """Subscription handshake. Raises HTTPException(400) on mismatch."""
        return verify_webhook_challenge(mode, challenge, supplied_token, self.verify_token)

    async def receive(self, request: Request) -> dict[str, str]:
        """
        Process an event request and return the acknowledgment.

        Never raises.
        """
        try:
            body = await request.body()
            await self.process(body)
        except Exception as e:
            logger.error(f"Webhook event dropped: {e}", exc_info=True)
        return {"status": "ok"}

    async def process(self, body: bytes) -> Optional[WhatsAppMessageResponse]:
        """
        Relay one event. Errors from the model or WhatsApp propagate.

        Returns:
            The send API response, or None when nothing was actionable
        """
        payload = _parse_body(body)
        extraction = extract_message(payload)

        if isinstance(extraction, NoMessage):
            logger.debug(f"Ignoring webhook event: {extraction.reason}")
            return None

        return await self.reply(extraction)

    async def reply(self, message: NormalizedMessage) -> WhatsAppMessageResponse:
        logger.info(
            "Message received",
            extra={"sender": message.sender, "input_length": len(message.text)},
        )

        completion = await self.aggregator.generate_response(message.text)
        logger.info(
            "Completion generated",
            extra={"sender": message.sender, "output_length": len(completion)},
        )

        outbound = TextMessageRequest(to=message.sender, body=completion, preview_url=False)
        return await self.sender.send_text(outbound)

def _parse_body(body: bytes) -> Any:
    # Unparseable bodies decode to None, which extracts to NoMessage
    try:
        return json.loads(body or b"null")
    except (UnicodeDecodeError, ValueError):
        logger.warning("Webhook body is not valid JSON")
        return None

def get_webhook_handler(request: Request) -> WebhookHandler:
    """Dependency: the handler built by the app factory."""
    return request.app.state.webhook_handler

# ============================================================================
# WEBHOOK CHALLENGE (Setup only)
# ============================================================================

@router.get("/whatsapp", response_class=PlainTextResponse)
async def whatsapp_webhook_challenge(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> PlainTextResponse:
    """
    Verify webhook subscription challenge from Meta.

    Returns:
        The challenge as plain text (200)

    Raises:
        HTTPException(400): Invalid mode, token or challenge
    """
    challenge = handler.verify(hub_mode, hub_challenge, hub_verify_token)
    logger.info("Webhook subscription verified")
    return PlainTextResponse(str(challenge))

# ============================================================================
# WEBHOOK RECEIVER (Message processing)
# ============================================================================

@router.post("/whatsapp")
async def whatsapp_webhook_receiver(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> dict[str, str]:
    """
    Receive WhatsApp events via webhook.

    Flow:
    1. Read raw body and parse JSON
    2. Extract the first text message (or ignore the event)
    3. Generate a completion from the model
    4. Send it back to the sender

    Returns:
        {"status": "ok"} on every path
    """
    return await handler.receive(request)
