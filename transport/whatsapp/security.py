"""
WhatsApp Webhook Verification

SECURITY BOUNDARY - Subscription handshake only.
No agent imports. No retries. No logic.
"""

from typing import Optional

from fastapi import HTTPException, status

SUBSCRIBE_MODE = "subscribe"
REJECTION_DETAIL = "Invalid verification token"


def verify_webhook_challenge(
    hub_mode: Optional[str],
    hub_challenge: Optional[str],
    hub_verify_token: Optional[str],
    expected_token: str,
) -> int:
    """
    Verify webhook subscription challenge from WhatsApp.

    WhatsApp calls GET /webhook/whatsapp with:
    - hub.mode=subscribe
    - hub.challenge=<integer nonce>
    - hub.verify_token=configured_token

    The token comparison is exact: case-sensitive and untrimmed. An empty
    configured token never matches.

    Returns:
        The challenge, unchanged

    Raises:
        HTTPException(400): Wrong mode, wrong token, or bad challenge
    """

    if (
        hub_mode != SUBSCRIBE_MODE
        or not expected_token
        or hub_verify_token != expected_token
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=REJECTION_DETAIL,
        )

    try:
        return int(hub_challenge)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=REJECTION_DETAIL,
        )
