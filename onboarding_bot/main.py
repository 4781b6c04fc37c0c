"""Quart application for the onboarding assistant."""
import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from hypercorn.asyncio import serve
from hypercorn.config import Config as HypercornConfig
from pydantic import BaseModel, ValidationError, field_validator
from quart import Quart, request, jsonify
import structlog

from onboarding_bot import config
from onboarding_bot.errors import InitializationFailure, UninitializedIndex
from onboarding_bot.rag.pipeline import OnboardingChatbot, PipelineConfig

# Configure structured logging
logging.basicConfig(format="%(message)s", level=config.LOG_LEVEL)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()


class ChatRequest(BaseModel):
    """Request payload for the chat endpoint."""

    message: str

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message is required")
        return value


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_app(
    chatbot: Optional[OnboardingChatbot] = None,
    initialize_on_startup: bool = True,
) -> Quart:
    """Build the web app around a chatbot instance.

    Args:
        chatbot: Service object shared by all handlers (default: built from config)
        initialize_on_startup: Build the index before serving; a failure here
            aborts startup
    """
    chatbot = chatbot or OnboardingChatbot(PipelineConfig.from_variant(config.PIPELINE_VARIANT))

    app = Quart(__name__)

    if initialize_on_startup:
        @app.before_serving
        async def initialize_chatbot():
            await chatbot.initialize()

    @app.route("/")
    async def index():
        """Service metadata."""
        return jsonify({
            "message": "RAG Onboarding Chatbot API",
            "status": "ready" if chatbot.is_initialized else "initializing",
            "endpoints": {
                "chat": "POST /chat",
                "health": "GET /health",
                "ready": "GET /health/ready",
            },
            "features": [
                "Semantic search with RAG",
                "Auto-generated titles",
                "Formatted bullet point responses",
                "Clean, structured output",
            ],
        })

    @app.route("/chat", methods=["POST"])
    async def chat():
        """Answer an onboarding question.

        Expects JSON body:
        {
            "message": "user question"
        }

        Returns JSON:
        {
            "query": "...",
            "response": "plain text answer",
            "context": [{"content", "metadata", "relevanceScore"}, ...],
            "timestamp": "ISO-8601",
            "formattedResponse": "HTML-safe answer",
            "plainResponse": "plain text answer"
        }
        """
        data = await request.get_json(silent=True)

        try:
            chat_request = ChatRequest.model_validate(data or {})
        except ValidationError as e:
            logger.warning("invalid_chat_request", errors=e.error_count())
            return jsonify({"error": "Message is required"}), 400

        if not chatbot.is_initialized:
            return jsonify({
                "error": "Chatbot is still initializing. Please try again in a moment."
            }), 503

        try:
            result = await chatbot.generate_response(chat_request.message)
        except UninitializedIndex:
            return jsonify({
                "error": "Chatbot is still initializing. Please try again in a moment."
            }), 503
        except Exception as e:
            logger.error(
                "chat_endpoint_error",
                error=str(e),
                error_type=type(e).__name__,
                query_preview=chat_request.message[:100],
            )
            return jsonify({
                "error": "Internal server error",
                "message": str(e),
            }), 500

        logger.info(
            "chat_response_sent",
            response_length=len(result.response),
            sources=len(result.context),
        )

        return jsonify(result.to_dict())

    @app.route("/health")
    async def health():
        """Liveness plus initialization state."""
        return jsonify({
            "status": "healthy" if chatbot.is_initialized else "initializing",
            "timestamp": _now(),
        })

    @app.route("/health/ready")
    async def health_ready():
        """Readiness probe - check if app can serve requests.

        Checks:
        - Index has been built
        - Ollama service is reachable
        - Required models are available
        """
        checks = {
            "status": "healthy",
            "index": chatbot.is_initialized,
            "ollama": False,
            "models": False,
        }

        try:
            models = await chatbot.llm_client.list_models()
            checks["ollama"] = True

            missing = [
                name
                for name in (chatbot.config.model, getattr(chatbot.ingest.embedder, "model", None))
                if name and name not in models and f"{name}:latest" not in models
            ]
            if missing:
                checks["status"] = "unhealthy"
                checks["error"] = f"Missing models: {', '.join(missing)}"
            else:
                checks["models"] = True

        except Exception as e:
            logger.error("health_check_failed", error=str(e))
            checks["status"] = "unhealthy"
            checks["error"] = str(e)

        if not checks["index"]:
            checks["status"] = "unhealthy"

        status_code = 200 if checks["status"] == "healthy" else 503
        return jsonify(checks), status_code

    @app.errorhandler(404)
    async def not_found(error):
        """Handle 404 errors."""
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    async def internal_error(error):
        """Handle 500 errors."""
        logger.error("internal_server_error", error=str(error))
        return jsonify({"error": "Internal server error", "message": str(error)}), 500

    return app


async def _serve(chatbot: OnboardingChatbot, hypercorn_config: HypercornConfig) -> None:
    # Index is built before binding so a failure surfaces as InitializationFailure
    await chatbot.initialize()
    await serve(create_app(chatbot, initialize_on_startup=False), hypercorn_config)


def run(chatbot: Optional[OnboardingChatbot] = None) -> None:
    """Serve the app with Hypercorn. Exits with status 1 if startup fails."""
    chatbot = chatbot or OnboardingChatbot(PipelineConfig.from_variant(config.PIPELINE_VARIANT))

    hypercorn_config = HypercornConfig()
    hypercorn_config.bind = [f"{config.HOST}:{config.PORT}"]
    logger.info("server_starting", bind=hypercorn_config.bind, variant=config.PIPELINE_VARIANT)

    try:
        asyncio.run(_serve(chatbot, hypercorn_config))
    except InitializationFailure as e:
        logger.error("server_start_failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    run()
