import json
import logging
from typing import AsyncIterator, Optional

import httpx

from .base import InferenceError, ModelBackend
from .types import ModelRequest, StreamChunk

logger = logging.getLogger(__name__)


def _parse_line(line: str) -> StreamChunk:
    """
    Decode one NDJSON line from /api/generate.

    Ollama reports mid-stream failures as {"error": "..."} instead of a
    non-2xx status, so those are raised here too.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise InferenceError(f"Malformed stream line: {line[:80]!r}") from e

    if not isinstance(data, dict):
        raise InferenceError(f"Unexpected stream line: {line[:80]!r}")

    if data.get("error"):
        raise InferenceError(f"Ollama error: {data['error']}")

    response = data.get("response") or ""
    if not isinstance(response, str):
        raise InferenceError(f"Non-string response fragment: {response!r}")

    return StreamChunk(response=response, done=bool(data.get("done", False)))


class OllamaModelBackend(ModelBackend):
    """
    Ollama backend for local model inference.

    Uses /api/generate with "stream": true. Each line of the response body
    is a JSON object carrying the next fragment in "response"; the last one
    has "done": true.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Ollama backend.

        Args:
            base_url:  Base URL of the Ollama service
            timeout_s: Per-operation httpx timeout; None waits indefinitely
            transport: Optional httpx transport (tests inject MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

    async def stream(self, request: ModelRequest) -> AsyncIterator[str]:
        """
        Stream completion fragments for request.prompt.

        Raises:
            InferenceError: connection failure, non-2xx status,
                malformed line or an in-stream error object
        """
        payload = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": True,
        }
        if request.options:
            payload["options"] = request.options

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_s),
                transport=self._transport,
            ) as client:
                async with client.stream(
                    "POST",
                    f"{self.base_url}/api/generate",
                    json=payload,
                ) as response:
                    if response.status_code != 200:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        raise InferenceError(
                            f"Ollama returned {response.status_code}: {body[:200]}"
                        )

                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        chunk = _parse_line(line)
                        if chunk.response:
                            yield chunk.response
                        if chunk.done:
                            return

        except httpx.HTTPError as e:
            logger.debug(
                f"Ollama stream failed: {e}",
                extra={"model": request.model, "trace_id": request.trace_id},
            )
            raise InferenceError(f"Ollama request failed: {e}") from e
