from typing import AsyncIterator, List, Optional, Sequence

from .base import InferenceError, ModelBackend
from .types import ModelRequest


class StubModelBackend(ModelBackend):
    """
    Deterministic fake model for testing and CI.

    Yields a fixed sequence of fragments and records every request it
    receives. With ``fail_after`` set, raises InferenceError after that
    many fragments to simulate a broken stream.
    """

    def __init__(
        self,
        tokens: Optional[Sequence[str]] = None,
        fail_after: Optional[int] = None,
    ):
        self.tokens = list(tokens) if tokens is not None else ["This is a ", "stubbed response."]
        self.fail_after = fail_after
        self.requests: List[ModelRequest] = []

    async def stream(self, request: ModelRequest) -> AsyncIterator[str]:
        self.requests.append(request)
        for index, token in enumerate(self.tokens):
            if self.fail_after is not None and index >= self.fail_after:
                raise InferenceError("stub stream failure")
            yield token
        if self.fail_after is not None and self.fail_after >= len(self.tokens):
            raise InferenceError("stub stream failure")
