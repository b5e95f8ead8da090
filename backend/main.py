"""
World Chat - real-time group chat with an AI assistant
FastAPI Backend with WebSocket relay, AI queries and GIF search
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from routers import chat, gifs
from routers.chat_orchestration import ConnectionHub, MessageRouter
from config import RuntimeConfig, runtime_config
from errors import UpstreamProxyError, format_error_for_user
from logging_config import setup_logging
from services.ai_gateway import AiGateway
from services.conversation_store import ConversationStore
from services.gif_proxy import GifProxy
from services.llm_client import LLMClient
from services.participant_registry import ParticipantRegistry
from validation import validate_startup

logger = logging.getLogger(__name__)

APP_NAME = "World Chat"

# Directories
BASE_DIR = Path(__file__).parent
STATIC_DIR = BASE_DIR / "static"

# WebSocket frame size limit
MAX_WS_FRAME_SIZE = 1 * 1024 * 1024  # 1MB


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown events"""
    config: RuntimeConfig = app.state.config

    # Refuse to serve without an LLM key (raises ConfigurationError)
    validate_startup(config)
    logger.debug(f"Effective config: {config.to_dict()}")
    logger.info(f"{APP_NAME} ready (model={config.model_chat})")

    yield

    # Shutdown
    await app.state.message_router.shutdown()
    try:
        await app.state.llm_client.close()
    except Exception as e:
        logger.debug(f"LLM client close error: {e}")

    logger.info(f"{APP_NAME} signing off")


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Referrer policy for privacy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


async def upstream_proxy_error_handler(request: Request, exc: UpstreamProxyError) -> JSONResponse:
    logger.warning(f"GIF proxy error: {exc.code.value}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": format_error_for_user(exc), "code": exc.code.value},
    )


def create_app(
    config: Optional[RuntimeConfig] = None,
    llm_client: Optional[LLMClient] = None,
    gif_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application and wire its components onto app.state.

    Args:
        config: Runtime configuration (defaults to the process singleton)
        llm_client: Pre-built LLM client (tests inject a fake)
        gif_transport: httpx transport for the GIF provider (tests inject a MockTransport)
    """
    config = config or runtime_config

    registry = ParticipantRegistry(max_display_name_length=config.max_display_name_length)
    store = ConversationStore(max_turns=config.history_max_turns)
    llm_client = llm_client or LLMClient(
        base_url=config.llm_base_url,
        api_key=config.llm_api_key,
        timeout=config.llm_timeout_s,
    )
    gateway = AiGateway(llm_client, store, config)
    hub = ConnectionHub(max_pending=config.outbox_max_pending)
    message_router = MessageRouter(registry, store, gateway, hub, config)

    app = FastAPI(
        title=APP_NAME,
        description="Real-time group chat with an AI assistant",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.registry = registry
    app.state.store = store
    app.state.llm_client = llm_client
    app.state.message_router = message_router
    app.state.gif_proxy = GifProxy(config, transport=gif_transport)

    app.add_middleware(SecurityHeadersMiddleware)

    # CORS - allow local development front-ends on any port
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|192\.168\.\d+\.\d+)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(UpstreamProxyError, upstream_proxy_error_handler)

    # Chat router is mounted WITHOUT /api prefix so WebSocket is at /ws/chat
    app.include_router(chat.router, tags=["chat"])
    app.include_router(gifs.router, tags=["gifs"])

    @app.get("/", include_in_schema=False)
    async def index():
        """Serve the chat client page."""
        return FileResponse(STATIC_DIR / "index.html")

    @app.get("/health")
    async def health(request: Request):
        """Health check - reports configuration and presence."""
        cfg: RuntimeConfig = request.app.state.config
        return {
            "status": "healthy" if cfg.llm_configured else "degraded",
            "participants": request.app.state.registry.count(),
            "llm_configured": cfg.llm_configured,
            "gif_configured": cfg.gif_configured,
        }

    @app.get("/api/status")
    async def status(request: Request):
        """Session counters for operators."""
        state = request.app.state
        return {
            "participants": state.registry.count(),
            "private_contexts": state.store.private_context_count(),
            "public_turns": len(state.store.get_public_context()),
            "pending_ai_queries": state.message_router.pending_queries,
            "gif_cache_entries": len(state.gif_proxy.cache),
        }

    return app


setup_logging(runtime_config.log_level)
app = create_app()


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        app,
        host=runtime_config.host,
        port=runtime_config.port,
        ws_max_size=MAX_WS_FRAME_SIZE,
    )


if __name__ == "__main__":
    run()
