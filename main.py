"""
FastAPI Application Entry Point

Integrates:
  - WhatsApp webhook handler
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import Config
from inference import CompletionAggregator, ModelBackend, OllamaModelBackend, StubModelBackend
from transport.whatsapp import WebhookHandler, WhatsAppSender, router as whatsapp_router
from transport.whatsapp.webhook import ReplySender

logger = logging.getLogger(__name__)


def configure_logging(config: Config) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_llm_backend(config: Config) -> ModelBackend:
    """Create LLM backend instance based on configuration."""
    if config.llm_backend == "stub":
        return StubModelBackend()
    return OllamaModelBackend(
        base_url=config.ollama_base_url,
        timeout_s=config.ollama_timeout_s,
    )


def create_sender(config: Config) -> WhatsAppSender:
    return WhatsAppSender(
        access_token=config.whatsapp_access_token,
        phone_number_id=config.whatsapp_phone_number_id,
        api_version=config.whatsapp_api_version,
        graph_url=config.whatsapp_graph_url,
    )


def create_app(
    config: Optional[Config] = None,
    backend: Optional[ModelBackend] = None,
    sender: Optional[ReplySender] = None,
) -> FastAPI:
    """
    Build the relay application.

    Collaborators default to the ones described by config; tests pass
    their own backend and sender.
    """
    config = config or Config.from_env()

    aggregator = CompletionAggregator(
        backend=backend or create_llm_backend(config),
        model_name=config.ollama_model,
        max_chars=config.max_completion_chars,
    )
    handler = WebhookHandler(
        verify_token=config.verify_token,
        aggregator=aggregator,
        sender=sender or create_sender(config),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan: startup and shutdown handlers.
        """
        # Startup
        logger.info("=" * 60)
        logger.info("WhatsApp relay starting up...")
        logger.info(f"Environment: {config.environment}")
        logger.info(f"LLM Backend: {config.llm_backend} ({config.ollama_model})")
        missing = config.missing()
        if missing:
            logger.warning(f"Missing configuration: {', '.join(missing)}")
        logger.info("=" * 60)

        yield

        # Shutdown
        logger.info("WhatsApp relay shutting down...")

    app = FastAPI(
        title="WhatsApp Ollama Relay",
        description="Relays WhatsApp messages to a local language model",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.webhook_handler = handler

    # Middleware for logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )

    app.include_router(whatsapp_router)

    # Health check endpoints
    @app.get("/health/live")
    async def health_live():
        """Live health check (Kubernetes liveness probe)."""
        return {"status": "alive"}

    @app.get("/health/ready")
    async def health_ready():
        """Readiness health check (Kubernetes readiness probe)."""
        missing = config.missing()
        if missing:
            return {"status": "not_ready", "missing": missing}
        return {"status": "ready"}

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "WhatsApp Ollama Relay",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "whatsapp_verify": "GET /webhook/whatsapp",
                "whatsapp_webhook": "POST /webhook/whatsapp",
                "health_live": "GET /health/live",
                "health_ready": "GET /health/ready",
            },
        }

    return app


settings = Config.from_env()
configure_logging(settings)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.environment == "development",
    )
