"""FastAPI application with lifespan, domain error mapping and health endpoint."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from capture_inbox.api import router as capture_router
from capture_inbox.auth import TokenProvider
from capture_inbox.config import Settings, get_settings
from capture_inbox.errors import (
    CaptureNotFound,
    ClassificationUnavailable,
    InvalidInput,
    PersistenceUnavailable,
    Unauthorized,
)
from capture_inbox.llm import classify_capture, get_gemini_client
from capture_inbox.logging_config import configure_logging
from capture_inbox.models.capture import Capture, ContentType
from capture_inbox.models.context import ClassificationContext
from capture_inbox.repository import CaptureRepository
from capture_inbox.store import LocalCache, RemoteStore

logger = logging.getLogger(__name__)


async def classify_with_gemini(
    content: str, content_type: ContentType, context: ClassificationContext | None
) -> Capture:
    """Repository classifier backed by Gemini. Without an API key it is always unavailable."""
    if not get_settings().gemini_api_key:
        raise ClassificationUnavailable("No Gemini API key configured")
    return await classify_capture(get_gemini_client(), content, content_type, context)


def build_repository(settings: Settings, tokens: TokenProvider) -> CaptureRepository:
    remote = None
    if settings.remote_store_url:
        remote = RemoteStore(
            settings.remote_store_url, tokens, timeout=settings.remote_timeout_seconds
        )
    else:
        logger.info("No remote store configured, captures stay local-only")
    return CaptureRepository(
        classifier=classify_with_gemini,
        cache=LocalCache(settings.local_cache_path),
        remote=remote,
        quiet_period=settings.sync_quiet_period_seconds,
        context=ClassificationContext.from_settings(settings),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging, load captures, flush on shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level)
    tokens = TokenProvider(settings.remote_store_token)
    repository = build_repository(settings, tokens)
    await repository.start()

    app.state.settings = settings
    app.state.tokens = tokens
    app.state.repository = repository
    yield
    await repository.aclose()


app = FastAPI(
    title="Capture Inbox",
    lifespan=lifespan,
)
app.include_router(capture_router)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(CaptureNotFound)
async def capture_not_found_handler(request: Request, exc: CaptureNotFound) -> JSONResponse:
    return _error(404, exc)


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput) -> JSONResponse:
    return _error(400, exc)


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
    return _error(401, exc)


@app.exception_handler(PersistenceUnavailable)
async def persistence_unavailable_handler(
    request: Request, exc: PersistenceUnavailable
) -> JSONResponse:
    logger.warning("Remote store unavailable: %s", exc)
    return _error(503, exc)


@app.get("/health")
async def health():
    """Health check endpoint for Cloud Run and local development."""
    return {
        "status": "ok",
        "service": "capture-inbox",
        "version": "0.1.0",
    }


def main() -> None:
    """Serve the API on the configured port."""
    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())
