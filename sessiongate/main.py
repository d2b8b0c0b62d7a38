"""sessiongate - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sessiongate.api import auth_router, health_router
from sessiongate.api.auth import GateRejected
from sessiongate.core import async_session_maker, settings, setup_logging
from sessiongate.core.logging import get_logger
from sessiongate.middleware import SessionGateMiddleware, rejection_response
from sessiongate.services.runtime import SessionRuntime, build_sql_runtime

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    runtime: SessionRuntime = app.state.runtime
    await runtime.sweeper.start()

    yield

    logger.info("Shutting down...")
    await runtime.sweeper.stop()


def create_app(
    runtime: SessionRuntime | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``runtime`` and ``session_factory`` default to the database configured
    in settings; tests pass their own to swap in other stores.
    """
    session_factory = session_factory or async_session_maker
    app = FastAPI(
        title=settings.app_name,
        description="Session credential issuance, revocation and request gating",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.session_factory = session_factory
    app.state.runtime = runtime or build_sql_runtime(settings, session_factory)

    @app.exception_handler(GateRejected)
    async def gate_rejected_handler(request: Request, exc: GateRejected) -> JSONResponse:
        return rejection_response(exc.decision)

    app.add_middleware(SessionGateMiddleware, protected_prefixes=settings.protected_prefixes)

    # CORS must be outermost so 401/403 responses from the gate carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    if settings.enable_metrics:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app).expose(
            app, endpoint="/metrics", include_in_schema=False
        )

    app.include_router(health_router)
    app.include_router(auth_router)

    return app


# Application instance
app = create_app()


def serve() -> None:
    """Run the application with uvicorn on the configured host and port."""
    uvicorn.run(
        "sessiongate.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve()
