"""
WhatsApp Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Only defines the contract between WhatsApp and the relay.
"""

from dataclasses import dataclass
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# NORMALIZED MESSAGE (THE CONTRACT)
# ============================================================================

class NormalizedMessage(BaseModel):
    """
    A text message the relay can act on.

    Both fields are non-empty once trimmed; anything else is a NoMessage.
    """

    model_config = ConfigDict(frozen=True)

    sender: str = Field(..., min_length=1, description="WhatsApp phone number (wa_id)")
    text: str = Field(..., min_length=1, description="Message body, trimmed")

    @field_validator("sender", "text")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


@dataclass(frozen=True)
class NoMessage:
    """
    The payload holds nothing to reply to.

    Status callbacks, delivery receipts, media messages and malformed
    bodies all end up here. The reason is for logs only.
    """

    reason: str


Extraction = Union[NormalizedMessage, NoMessage]


# ============================================================================
# WHATSAPP SEND API (OUTPUT)
# ============================================================================

class TextMessageRequest(BaseModel):
    """Outbound text reply."""

    model_config = ConfigDict(frozen=True)

    to: str = Field(..., min_length=1, description="Recipient phone number")
    body: str = Field("", description="Reply text; may be empty")
    preview_url: bool = False

    def to_graph_payload(self) -> dict:
        """Body for POST /{phone_number_id}/messages."""
        return {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": self.to,
            "type": "text",
            "text": {
                "preview_url": self.preview_url,
                "body": self.body,
            },
        }


class WhatsAppMessageResponse(BaseModel):
    """Response from WhatsApp Cloud API when sending a message."""

    model_config = ConfigDict(extra="allow")  # Meta may add fields

    messaging_product: str = Field(default="whatsapp")
    contacts: list[dict[str, str]] = Field(default_factory=list)  # [{"input": "...", "wa_id": "..."}]
    messages: list[dict[str, str]] = Field(default_factory=list)  # [{"id": "wamid.xxx"}]

    @property
    def message_id(self) -> str | None:
        if self.messages:
            return self.messages[0].get("id")
        return None
