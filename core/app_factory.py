"""
FastAPI application factory and lifecycle wiring.

Keeps app assembly separate from route/business modules for easier maintenance.
"""

# Standard library
import logging
import os
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

# Third-party
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from core.errors import (
    AppError,
    app_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)

logger = logging.getLogger(__name__)

_DEFAULT_ORIGINS = [
    "http://localhost:5173",  # Vite dev server
    "http://127.0.0.1:5173",
]
_ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]


def _is_true(name: str, default: str = "false") -> bool:
    """Parse boolean-like env vars."""
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _should_use_fake_providers() -> bool:
    """TEST_MODE or USE_FAKE_PROVIDERS keeps the app off the real model API."""
    return _is_true("TEST_MODE") or _is_true("USE_FAKE_PROVIDERS")


def _load_environment() -> None:
    """Load environment variables from config.env."""
    project_root = os.path.dirname(os.path.dirname(__file__))
    dotenv_path = os.path.join(project_root, "config.env")
    load_dotenv(dotenv_path=dotenv_path)


def _configure_logging() -> None:
    """Configure application logging and key environment visibility."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(
        "GOOGLE_API_KEY: %s",
        "Loaded" if os.getenv("GOOGLE_API_KEY") else "Not Found",
    )
    logger.info("TRANSLATION_MODEL: %s", os.getenv("TRANSLATION_MODEL") or "default")
    logger.info("USE_FAKE_PROVIDERS: %s", _should_use_fake_providers())


def _get_cors_origins() -> list[str]:
    """Return CORS origins from env or development defaults."""
    raw_origins = os.getenv("CORS_ORIGINS", "")
    origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    if origins:
        logger.info("CORS: Using env origins: %s", origins)
        return origins
    if raw_origins:
        logger.warning("CORS_ORIGINS is set but empty after parsing; using defaults")
    return list(_DEFAULT_ORIGINS)


def _configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_cors_origins(),
        allow_credentials=True,
        allow_methods=list(_ALLOWED_METHODS),
        allow_headers=["*"],
    )


def _register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def _register_middlewares(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_id_middleware(
        request: Request, call_next
    ) -> Response:
        request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response


def _register_routers(app: FastAPI) -> None:
    from message_translation.router import router as translation_router

    app.include_router(
        translation_router, prefix="/api/messages", tags=["Message Translation"]
    )


def _initialize_external_clients(app: FastAPI) -> None:
    """Initialize Supabase and the LLM provider registry."""
    from core.providers import configure_providers
    from supabase_client import init_supabase

    client = init_supabase()
    app.state.supabase = client
    if client:
        logger.info("Supabase client ready")
    else:
        logger.warning("Supabase unavailable; translation persistence is disabled")

    configure_providers(use_fake=_should_use_fake_providers())


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI lifespan hook for startup initialization."""
    logger.info("=== Application Startup ===")
    _initialize_external_clients(app)
    logger.info("=== All components ready ===")
    yield


async def read_root() -> dict[str, str]:
    """Health check endpoint."""
    return {"message": "Message word translation API"}


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    _load_environment()
    _configure_logging()

    app = FastAPI(
        title="Message Word Translation API",
        description="Word-level and full translation of chat messages",
        version="1.0.0",
        lifespan=app_lifespan,
    )
    _configure_cors(app)
    _register_middlewares(app)
    _register_error_handlers(app)
    _register_routers(app)
    app.add_api_route("/", read_root, methods=["GET"])
    return app
