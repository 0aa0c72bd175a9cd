"""FastAPI application entry point for RAMS.

Report Approval Management System REST API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api import register_exception_handlers
from .api import auth, institutions, pdfs, reports, statistics, users
from .api.deps import SessionFactory
from .config import get_settings
from .db import close_all_connections, init_db
from .logging import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(
        "Starting RAMS API",
        extra={
            "environment": settings.environment,
            "debug": settings.api_debug,
            "business_timezone": settings.business_timezone,
        },
    )
    # SQLite deployments have no migration step; create missing tables
    if settings.database_url.startswith("sqlite"):
        await init_db()
    settings.pdf_storage_path.mkdir(parents=True, exist_ok=True)

    yield

    # Shutdown
    logger.info("Shutting down RAMS API")
    await close_all_connections()


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="RAMS API",
        description="Report Approval Management System REST API",
        version="1.0.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Error-Code"],
    )

    register_exception_handlers(app)

    # =========================
    # Health Check Endpoints
    # =========================

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "service": "rams-api"}

    @app.get("/health/ready", tags=["Health"])
    async def readiness_check(factory: SessionFactory):
        """Readiness check that verifies database connectivity."""
        checks = {"database": "unknown"}
        try:
            async with factory() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = "healthy"
        except Exception as e:
            logger.warning(f"Readiness check failed: {e}")
            checks["database"] = f"unhealthy: {e}"

        ready = all(v == "healthy" for v in checks.values())
        return {"status": "ready" if ready else "not_ready", "checks": checks}

    # =========================
    # API Routers
    # =========================

    for module in (auth, users, institutions, reports, pdfs, statistics):
        app.include_router(module.router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "rams.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
