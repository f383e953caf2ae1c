"""FastAPI application entry point for the HairCare assistant API.

Run with:
    uvicorn haircare.main:app --reload
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from haircare import __version__
from haircare.api.auth import router as auth_router
from haircare.api.middleware import SessionGateMiddleware
from haircare.api.routes.chat import router as chat_router
from haircare.api.routes.live import router as live_router
from haircare.api.routes.profile import router as profile_router
from haircare.config import configure_logging, settings
from haircare.core.session_gate import GateRoutes
from haircare.database import build_engine, init_db
from haircare.errors import NotFoundError, PersistenceError, ValidationError
from haircare.realtime.live_sync import LiveSyncChannel

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    init_db(app.state.engine)
    yield
    app.state.engine.dispose()


def create_app(
    engine: Optional[Engine] = None,
    live_sync: Optional[LiveSyncChannel] = None,
    gate_routes: Optional[GateRoutes] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        engine: Database engine (defaults to DATABASE_URL)
        live_sync: Change channel shared by all requests of this app
        gate_routes: Session gate namespaces (defaults to settings)
    """
    configure_logging()

    app = FastAPI(
        title="HairCare Assistant API",
        description="Hair profiles, conversations and rule-based hair care advice",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine or build_engine()
    app.state.live_sync = live_sync or LiveSyncChannel()

    app.add_middleware(SessionGateMiddleware, routes=gate_routes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(chat_router)
    app.include_router(live_router)

    @app.get("/health")
    def health_check():
        """Health check endpoint, including a database round-trip."""
        try:
            with app.state.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Health check database failure: {e}")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "degraded", "database": "unavailable"},
            )
        return {"status": "ok", "database": "ok"}

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.warning(f"Not found on {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Service temporarily unavailable"},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Hide internal error details from clients."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    return app


app = create_app()
