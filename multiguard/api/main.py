"""
Multiguard API - Main Application Entry Point

FastAPI backend exposing the authentication lifecycle and the access
decision engine.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from multiguard.api.config import settings
from multiguard.api.db.session import init_db, close_db
from multiguard.core.exceptions import (
    AccountLockedError,
    AuthenticationError,
    InfrastructureError,
    InputError,
    MultiguardError,
    PolicyDenied,
)


logger = logging.getLogger(__name__)


ERROR_STATUS: list[tuple[type, int]] = [
    (InputError, status.HTTP_400_BAD_REQUEST),
    (AccountLockedError, status.HTTP_423_LOCKED),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PolicyDenied, status.HTTP_403_FORBIDDEN),
    (InfrastructureError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_for(exc: MultiguardError) -> int:
    """HTTP status for a domain error; most specific class wins."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    await init_db()
    yield
    # Shutdown
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Multiguard - MAC, DAC, RBAC, RuBAC and ABAC access control demo",
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MultiguardError)
    async def multiguard_error_handler(request: Request, exc: MultiguardError):
        """Translate domain errors into JSON responses."""
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("Request to %s failed: %s", request.url.path, exc)
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    # Include routers
    from multiguard.api.auth.routes import router as auth_router
    from multiguard.api.access.routes import router as access_router

    app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(access_router, prefix="/api/v1/access", tags=["Access Control"])

    # Health check endpoint
    @app.get("/api/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "service": settings.APP_NAME,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "multiguard.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
