"""
Model boundary layer for LLM inference.

This package provides a clean abstraction for streamed model invocation,
allowing the relay to remain agnostic of the underlying backend.

Supported backends:
- StubModelBackend: Deterministic fake model (default for CI/tests)
- OllamaModelBackend: Local Ollama inference

Example usage:
    from inference import CompletionAggregator, StubModelBackend

    aggregator = CompletionAggregator(StubModelBackend(["Hel", "lo!"]), "llama3")
    text = await aggregator.generate_response("hi")   # "Hello!"
"""

from .types import ModelRequest, StreamChunk
from .base import InferenceError, ModelBackend
from .stub import StubModelBackend
from .ollama import OllamaModelBackend
from .aggregator import CompletionAggregator

__all__ = [
    "ModelRequest",
    "StreamChunk",
    "InferenceError",
    "ModelBackend",
    "StubModelBackend",
    "OllamaModelBackend",
    "CompletionAggregator",
]
