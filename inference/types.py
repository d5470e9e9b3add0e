from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ModelRequest:
    prompt: str
    model: str                 # e.g. "llama3", "phi3:mini"
    options: Dict[str, Any] = field(default_factory=dict)
    trace_id: Optional[str] = None


@dataclass(frozen=True)
class StreamChunk:
    """One NDJSON line of a streamed generation."""

    response: str = ""
    done: bool = False
