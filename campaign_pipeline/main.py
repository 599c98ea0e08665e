import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from campaign_pipeline.config import settings
from campaign_pipeline.db.base import engine
from campaign_pipeline.errors import PipelineError
from campaign_pipeline.routers import campaigns, generation

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Campaign Content Pipeline API",
        default_response_class=ORJSONResponse,
    )

    allow_origins = sorted(set(settings.BACKEND_CORS_ORIGINS))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(_request: Request, exc: PipelineError) -> ORJSONResponse:
        if exc.status_code >= 500:
            logger.error("Content pipeline failed", extra={"error": str(exc), "status_code": exc.status_code})
        return ORJSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", exc_info=exc)
        return ORJSONResponse(status_code=500, content={"error": str(exc) or "Internal server error."})

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/health/db")
    def health_db():
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:  # pragma: no cover - needs a broken database
            logger.error("Database health check failed", extra={"error": str(exc)})
            return ORJSONResponse(status_code=503, content={"db": "unavailable"})
        return {"db": "ok"}

    app.include_router(campaigns.router)
    app.include_router(generation.router)

    return app


app = create_app()
