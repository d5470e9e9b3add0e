"""
Configuration management for the WhatsApp relay.

Loads environment variables from .env file and builds an immutable Config
once at startup. The instance is passed explicitly to the app factory;
nothing reads the environment after that.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


LLMBackendType = Literal["ollama", "stub"]


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass(frozen=True)
class Config:
    """Relay configuration."""

    # WhatsApp Cloud API
    verify_token: str = ""
    whatsapp_access_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_api_version: str = "v18.0"
    whatsapp_graph_url: str = "https://graph.facebook.com"

    # LLM Backend Configuration
    llm_backend: LLMBackendType = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3"
    ollama_timeout_s: Optional[float] = None
    max_completion_chars: int = 4096

    # Server
    port: int = 8000
    environment: str = "development"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            verify_token=os.getenv("WHATSAPP_VERIFY_TOKEN", ""),
            whatsapp_access_token=os.getenv("WHATSAPP_ACCESS_TOKEN", ""),
            whatsapp_phone_number_id=os.getenv("WHATSAPP_PHONE_NUMBER_ID", ""),
            whatsapp_api_version=os.getenv("WHATSAPP_API_VERSION", "v18.0"),
            whatsapp_graph_url=os.getenv("WHATSAPP_GRAPH_URL", "https://graph.facebook.com"),
            llm_backend=os.getenv("LLM_BACKEND", "ollama"),  # type: ignore
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            ollama_model=os.getenv("OLLAMA_MODEL", "llama3"),
            ollama_timeout_s=_optional_float(os.getenv("OLLAMA_TIMEOUT_S")),
            max_completion_chars=int(os.getenv("MAX_COMPLETION_CHARS", "4096")),
            port=int(os.getenv("AGENT_PORT", "8000")),
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def missing(self) -> List[str]:
        """Names of required settings that are unset."""
        required = {
            "WHATSAPP_VERIFY_TOKEN": self.verify_token,
            "WHATSAPP_ACCESS_TOKEN": self.whatsapp_access_token,
            "WHATSAPP_PHONE_NUMBER_ID": self.whatsapp_phone_number_id,
        }
        return [key for key, value in required.items() if not value]

    def validate(self) -> bool:
        """Validate that required configuration is set."""
        return not self.missing()


if __name__ == "__main__":
    # Test configuration loading
    config = Config.from_env()
    print("Configuration loaded:")
    print(f"  Verify Token: {'✓ Set' if config.verify_token else '✗ Missing'}")
    print(f"  Access Token: {'✓ Set' if config.whatsapp_access_token else '✗ Missing'}")
    print(f"  Phone Number ID: {config.whatsapp_phone_number_id}")
    print(f"  LLM Backend: {config.llm_backend} ({config.ollama_model} @ {config.ollama_base_url})")
    print(f"  Environment: {config.environment}")
    print(f"\n  Validation: {'✓ PASSED' if config.validate() else '✗ FAILED'}")
