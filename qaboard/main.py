import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from qaboard.api.admin import router as admin_router
from qaboard.api.questions import router as questions_router
from qaboard.config import Settings
from qaboard.errors import QABoardError, StorageFailure
from qaboard.middleware import error_response, limit_body_size, security_headers
from qaboard.services.qa_store import QAStore
from qaboard.storage import build_backend

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.store.init()
    yield
    app.state.store.close()


def create_app(settings: Settings | None = None, store: QAStore | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    store = store or QAStore(build_backend(settings))

    app = FastAPI(
        title="Band Vopros",
        lifespan=lifespan,
        docs_url=None if settings.env == "prod" else "/docs",
        redoc_url=None if settings.env == "prod" else "/redoc",
    )
    app.state.settings = settings
    app.state.store = store

    # Simple spam protection, per client address
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit] if settings.rate_limit else [],
        enabled=bool(settings.rate_limit),
    )

    # Last added runs first: CORS wraps everything so even 413/429 stay readable
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(limit_body_size)
    app.middleware("http")(security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return error_response(429, "rate_limited")

    @app.exception_handler(QABoardError)
    async def qaboard_error_handler(request: Request, exc: QABoardError):
        if isinstance(exc, StorageFailure):
            logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return error_response(exc.status_code, exc.code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(400, "invalid_body")

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "server_error")

    @app.get("/health")
    def health_check():
        return {"ok": True}

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Band Vopros backend is running."

    app.include_router(questions_router, prefix=settings.api_prefix)
    app.include_router(admin_router, prefix=settings.api_prefix)

    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

    return app


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


settings = Settings.from_env()
configure_logging(settings.log_level)
app = create_app(settings)
