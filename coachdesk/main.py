"""
FastAPI application entry point.

create_app() builds the application so tests can construct it with
overridden dependencies.

For local development:
    uvicorn coachdesk.main:app --reload

For production:
    gunicorn coachdesk.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import exercises, health, markdown, plans, progress, recipes, trainees
from .config.settings import get_settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration problems on startup; nothing to release on shutdown."""
    settings = get_settings()

    logger.info(
        "CoachDesk API starting",
        extra={
            "version": settings.api_version,
            "mock_mode": {
                "database": settings.database_mock_mode,
                "storage": settings.storage_mock_mode,
            }
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        # Keep serving so /health/ready can report what is missing
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("CoachDesk API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Called once at import time for uvicorn, and again by tests that need
    a fresh instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Backend for a personal coaching app: trainees see their daily plan,
        browse exercises and recipes, and track their progress.

        ## Authentication

        All endpoints except health checks require an API key in the
        `X-API-Key` header.

        ## Areas

        - **Trainees**: register, log in, list clients
        - **Plans & notes**: per-day coach note, program and meal (Markdown)
        - **Exercises / Recipes**: libraries with video and image uploads
        - **Progress**: log weight, measurements, strength, habits and photos;
          get trend, averages and goal progress
        - **Markdown**: preview notes exactly as trainees will see them
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(markdown.router, prefix="/api/v1/markdown", tags=["Markdown"])
    app.include_router(progress.router, prefix="/api/v1", tags=["Progress"])
    app.include_router(trainees.router, prefix="/api/v1/trainees", tags=["Trainees"])
    app.include_router(plans.router, prefix="/api/v1/trainees", tags=["Plans"])
    app.include_router(exercises.router, prefix="/api/v1/exercises", tags=["Exercises"])
    app.include_router(recipes.router, prefix="/api/v1/recipes", tags=["Recipes"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "CoachDesk API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Log the full error server-side; clients get a generic 500."""
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "coachdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
