from abc import ABC, abstractmethod
from typing import AsyncIterator

from .types import ModelRequest


class InferenceError(Exception):
    """The model stream failed before completion."""
    pass


class ModelBackend(ABC):
    """
    Abstract model boundary.
    Relay code must depend ONLY on this interface.
    """

    @abstractmethod
    def stream(self, request: ModelRequest) -> AsyncIterator[str]:
        """Yield completion fragments in generation order."""
        raise NotImplementedError
