"""
WhatsApp Input Normalization

PURE CONVERSION - NO LOGIC, NO MODEL CALLS

Decodes a webhook payload into a NormalizedMessage, or a NoMessage saying
why there is nothing to answer.

Only entry[0].changes[0].value.messages[0] is examined. Payloads that batch
several messages get a reply to the first one only.
"""

from typing import Any, Optional, Sequence, Union

from .schemas import Extraction, NoMessage, NormalizedMessage

MESSAGE_PATH: Sequence[Union[str, int]] = ("entry", 0, "changes", 0, "value", "messages", 0)

_MISSING = object()


def _walk(node: Any, path: Sequence[Union[str, int]]) -> Any:
    """
    Follow path through nested dicts and lists.

    Returns _MISSING as soon as a key is absent, an index is out of range,
    or a container has the wrong type.
    """
    for step in path:
        if isinstance(step, int):
            if not isinstance(node, list) or len(node) <= step:
                return _MISSING
        elif not isinstance(node, dict) or step not in node:
            return _MISSING
        node = node[step]
    return node


def _as_text(value: Any) -> Optional[str]:
    # JSON numbers are accepted for "from"; bool is an int subclass
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    return None


def extract_message(payload: Any) -> Extraction:
    """
    Convert a parsed WhatsApp webhook payload into an Extraction.

    Args:
        payload: Decoded JSON body (any shape)

    Returns:
        NormalizedMessage for a text message with sender and body,
        NoMessage otherwise
    """
    message = _walk(payload, MESSAGE_PATH)
    if message is _MISSING:
        return NoMessage("payload has no entry[0].changes[0].value.messages[0]")

    sender = _as_text(_walk(message, ("from",)))
    if sender is None or not sender.strip():
        return NoMessage("message has no sender")

    body = _walk(message, ("text", "body"))
    if not isinstance(body, str) or not body.strip():
        message_type = _walk(message, ("type",))
        if message_type is not _MISSING and message_type != "text":
            return NoMessage(f"unsupported message type: {message_type}")
        return NoMessage("message has no text body")

    return NormalizedMessage(sender=sender, text=body)
