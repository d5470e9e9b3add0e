"""WhatsApp Transport Layer - Module Exports"""

from .normalize import extract_message
from .schemas import (
    Extraction,
    NoMessage,
    NormalizedMessage,
    TextMessageRequest,
    WhatsAppMessageResponse,
)
from .security import verify_webhook_challenge
from .sender import WhatsAppSender, WhatsAppSenderError
from .webhook import WebhookHandler, get_webhook_handler, router

__all__ = [
    # Schemas
    "NormalizedMessage",
    "NoMessage",
    "Extraction",
    "TextMessageRequest",
    "WhatsAppMessageResponse",
    # Normalization
    "extract_message",
    # Security
    "verify_webhook_challenge",
    # Sender
    "WhatsAppSender",
    "WhatsAppSenderError",
    # Router
    "WebhookHandler",
    "get_webhook_handler",
    "router",
]
