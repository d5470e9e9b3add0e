"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Config  # noqa: E402
from transport.whatsapp.schemas import TextMessageRequest, WhatsAppMessageResponse  # noqa: E402

VERIFY_TOKEN = "s3cret-Token"


class RecordingSender:
    """Fake send-reply capability that records outbound messages."""

    def __init__(self, error: Exception = None):
        self.sent = []
        self.error = error

    async def send_text(self, request: TextMessageRequest) -> WhatsAppMessageResponse:
        self.sent.append(request)
        if self.error is not None:
            raise self.error
        return WhatsAppMessageResponse(
            contacts=[{"input": request.to, "wa_id": request.to}],
            messages=[{"id": "wamid.reply_1"}],
        )


def make_text_payload(sender="5511999999999", body="hello"):
    """Minimal Cloud API envelope carrying one text message."""
    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "WABA_ID",
            "changes": [{
                "field": "messages",
                "value": {
                    "messaging_product": "whatsapp",
                    "metadata": {"phone_number_id": "PHONE_ID"},
                    "messages": [{
                        "from": sender,
                        "id": "wamid.msg_123",
                        "timestamp": "1707500000",
                        "type": "text",
                        "text": {"body": body},
                    }],
                },
            }],
        }],
    }


@pytest.fixture
def config():
    return Config(
        verify_token=VERIFY_TOKEN,
        whatsapp_access_token="access",
        whatsapp_phone_number_id="PHONE_ID",
        llm_backend="stub",
        ollama_model="llama3",
    )


@pytest.fixture
def sender():
    return RecordingSender()
