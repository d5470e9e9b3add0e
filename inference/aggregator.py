"""
Completion aggregation.

Folds a model token stream into the final reply text.
"""

import logging
from contextlib import aclosing

from .base import ModelBackend
from .types import ModelRequest

logger = logging.getLogger(__name__)


class CompletionAggregator:
    """
    Collects streamed fragments for one prompt into a single string.

    The fold is bounded by max_chars: once the cap is reached the stream is
    closed and the text is truncated. Errors from the backend propagate.
    """

    def __init__(self, backend: ModelBackend, model_name: str, max_chars: int = 4096):
        if max_chars <= 0:
            raise ValueError("max_chars must be positive")
        self.backend = backend
        self.model_name = model_name
        self.max_chars = max_chars

    async def generate_response(self, prompt: str) -> str:
        """
        Generate the full completion for prompt.

        Returns "" for an empty or whitespace-only prompt without contacting
        the backend.
        """
        if not prompt or not prompt.strip():
            return ""

        request = ModelRequest(prompt=prompt, model=self.model_name)
        parts = []
        length = 0

        async with aclosing(self.backend.stream(request)) as fragments:
            async for fragment in fragments:
                parts.append(fragment)
                length += len(fragment)
                if length >= self.max_chars:
                    if length > self.max_chars:
                        logger.warning(
                            f"Completion truncated to {self.max_chars} chars",
                            extra={"model": self.model_name, "max_chars": self.max_chars},
                        )
                    break

        return "".join(parts)[: self.max_chars]
