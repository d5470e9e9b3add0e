"""
WhatsApp Relay Integration Tests

End-to-end flow tests: webhook → extraction → model stream → reply

KEY ASSERTION: the webhook is acknowledged with 200 on every path
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import RecordingSender, make_text_payload
from inference import CompletionAggregator, InferenceError, StubModelBackend
from main import create_app
from transport.whatsapp.sender import WhatsAppSenderError
from transport.whatsapp.webhook import WebhookHandler


def _client(config, backend, sender):
    return TestClient(create_app(config, backend=backend, sender=sender))


class TestTextFlow:
    """Test complete text message flow."""

    def test_text_message_flow(self, config, sender):
        """Full flow: webhook → model → reply addressed to the sender."""
        backend = StubModelBackend(["Hel", "lo!"])
        client = _client(config, backend, sender)

        response = client.post("/webhook/whatsapp", json=make_text_payload("5511999999999", "hello"))

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

        assert len(backend.requests) == 1
        assert backend.requests[0].prompt == "hello"
        assert backend.requests[0].model == "llama3"

        assert len(sender.sent) == 1
        reply = sender.sent[0]
        assert reply.to == "5511999999999"
        assert reply.body == "Hello!"
        assert reply.preview_url is False

    def test_empty_completion_is_sent(self, config, sender):
        client = _client(config, StubModelBackend([]), sender)

        response = client.post("/webhook/whatsapp", json=make_text_payload())

        assert response.status_code == 200
        assert len(sender.sent) == 1
        assert sender.sent[0].body == ""


class TestNonActionableEvents:
    """Events that carry nothing to reply to."""

    def test_status_callback_is_acknowledged(self, config, sender):
        backend = StubModelBackend()
        client = _client(config, backend, sender)

        payload = {
            "object": "whatsapp_business_account",
            "entry": [{"changes": [{"value": {"statuses": [{"status": "read"}]}}]}],
        }
        response = client.post("/webhook/whatsapp", json=payload)

        assert response.status_code == 200
        assert backend.requests == []
        assert sender.sent == []

    @pytest.mark.parametrize("body", [b"", b"{not json", b"\xff\xfe", b"[]", b"null"])
    def test_malformed_body_is_acknowledged(self, config, sender, body):
        backend = StubModelBackend()
        client = _client(config, backend, sender)

        response = client.post(
            "/webhook/whatsapp",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert backend.requests == []
        assert sender.sent == []


class TestFailureIsolation:
    """Failures are logged, never surfaced to WhatsApp."""

    @pytest.mark.parametrize("fail_after", [0, 1])
    def test_inference_failure_still_returns_200(self, config, sender, fail_after):
        backend = StubModelBackend(["Hel", "lo!"], fail_after=fail_after)
        client = _client(config, backend, sender)

        response = client.post("/webhook/whatsapp", json=make_text_payload())

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert sender.sent == []

    def test_send_failure_still_returns_200(self, config):
        sender = RecordingSender(error=WhatsAppSenderError("WhatsApp API returned 500"))
        client = _client(config, StubModelBackend(["ok"]), sender)

        response = client.post("/webhook/whatsapp", json=make_text_payload())

        assert response.status_code == 200
        assert len(sender.sent) == 1

    def test_unexpected_error_still_returns_200(self, config):
        sender = RecordingSender(error=RuntimeError("boom"))
        client = _client(config, StubModelBackend(["ok"]), sender)

        response = client.post("/webhook/whatsapp", json=make_text_payload())

        assert response.status_code == 200

    def test_failure_is_logged(self, config, caplog):
        sender = RecordingSender(error=WhatsAppSenderError("down"))
        client = _client(config, StubModelBackend(["ok"]), sender)

        with caplog.at_level("ERROR", logger="transport.whatsapp.webhook"):
            client.post("/webhook/whatsapp", json=make_text_payload())

        assert any("Webhook event dropped" in record.message for record in caplog.records)


class TestWebhookHandler:
    """Direct tests of the orchestration object."""

    @pytest.fixture
    def handler(self, sender):
        aggregator = CompletionAggregator(StubModelBackend(["a", "b"]), model_name="llama3")
        return WebhookHandler(verify_token="token", aggregator=aggregator, sender=sender)

    @pytest.mark.asyncio
    async def test_process_returns_send_response(self, handler, sender):
        result = await handler.process(json.dumps(make_text_payload()).encode())

        assert result.message_id == "wamid.reply_1"
        assert sender.sent[0].body == "ab"

    @pytest.mark.asyncio
    async def test_process_ignores_non_message(self, handler, sender):
        assert await handler.process(b"{}") is None
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_process_propagates_inference_error(self, sender):
        aggregator = CompletionAggregator(StubModelBackend(["a"], fail_after=0), model_name="llama3")
        handler = WebhookHandler(verify_token="token", aggregator=aggregator, sender=sender)

        with pytest.raises(InferenceError):
            await handler.process(json.dumps(make_text_payload()).encode())

    @pytest.mark.asyncio
    async def test_receive_swallows_body_read_error(self, handler):
        request = MagicMock()
        request.body = AsyncMock(side_effect=RuntimeError("client disconnected"))

        assert await handler.receive(request) == {"status": "ok"}


class TestHealth:
    """Health endpoints."""

    def test_live(self, config, sender):
        client = _client(config, StubModelBackend(), sender)
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_ready(self, config, sender):
        client = _client(config, StubModelBackend(), sender)
        assert client.get("/health/ready").json() == {"status": "ready"}

    def test_not_ready_lists_missing(self, sender):
        from config import Config

        client = _client(Config(), StubModelBackend(), sender)
        body = client.get("/health/ready").json()

        assert body["status"] == "not_ready"
        assert "WHATSAPP_VERIFY_TOKEN" in body["missing"]
