"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from kilometracker import __version__
from kilometracker.api.auth import router as auth_router
from kilometracker.api.health import router as health_router
from kilometracker.api.resources import router as resources_router
from kilometracker.config import Settings
from kilometracker.middleware.gate import RequestGateMiddleware
from kilometracker.proxy.engine import ProxyEngine
from kilometracker.proxy.envelope import INTERNAL_ERROR_MESSAGE, ErrorEnvelope
from kilometracker.services.gate_service import RequestGate
from kilometracker.services.session_service import SessionStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.responses import Response

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure application logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings
    settings.validate_runtime()
    _configure_logging(settings.debug)
    logger.info(
        "Starting Kilometracker edge (environment=%s, backend=%s)",
        settings.environment,
        settings.api_base_url,
    )

    proxy = ProxyEngine(settings.api_base_url, timeout=settings.backend_timeout_seconds)
    app.state.proxy = proxy

    yield

    try:
        await proxy.aclose()
    except Exception as exc:
        logger.error("Error while closing backend client: %s", exc, exc_info=True)

    logger.info("Kilometracker edge stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    docs_enabled = settings.debug or settings.expose_docs

    app = FastAPI(
        title="Kilometracker",
        description="Session-authenticated edge for the fleet tracking API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.settings = settings
    session_store = SessionStore(settings)
    app.state.session_store = session_store

    app.add_middleware(
        RequestGateMiddleware,
        session_store=session_store,
        gate=RequestGate(),
    )

    @app.middleware("http")
    async def security_headers(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        if settings.security_headers_enabled:
            response.headers.setdefault("X-Content-Type-Options", "nosniff")
            response.headers.setdefault("X-Frame-Options", "DENY")
            response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        return response

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(resources_router)

    # Global exception handlers: safety net behind the proxy boundary

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = []
        for err in exc.errors():
            loc = err.get("loc", ())
            field = str(loc[-1]) if loc else "unknown"
            errors.append(f"{field}: {err.get('msg', 'Invalid value')}")
        logger.warning(
            "RequestValidationError in %s %s: %s",
            request.method,
            request.url.path,
            errors,
        )
        return ErrorEnvelope(error="; ".join(errors) or "Solicitud inválida", status=400).to_response()

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled %s in %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return ErrorEnvelope(error=INTERNAL_ERROR_MESSAGE, status=500).to_response()

    # Serve frontend pages in production; the gate still runs in front of them
    frontend_dir = settings.frontend_dir
    if frontend_dir.exists():
        app.mount("/", StaticFiles(directory=str(frontend_dir), html=True), name="static")

    return app


app = create_app()


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    settings: Settings = app.state.settings
    uvicorn.run(
        "kilometracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
