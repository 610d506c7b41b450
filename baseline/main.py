from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from baseline import __version__
from baseline.api.routes.candidates import router as candidates_router
from baseline.api.routes.cron import router as cron_router
from baseline.api.routes.system import router as system_router
from baseline.api.routes.topics import router as topics_router
from baseline.core.config import get_settings
from baseline.core.exceptions import ValidationError
from baseline.core.logging import get_logger

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(_: FastAPI):
    try:
        settings = get_settings()
        get_logger("baseline", settings.LOG_LEVEL)
        missing: list[str] = []
        if not settings.OPENAI_API_KEY:
            missing.append("OPENAI_API_KEY")
        if not settings.CRON_SECRET:
            missing.append("CRON_SECRET")

        if missing:
            logger.warning("Missing environment variables at startup: %s", ", ".join(missing))
    except Exception:
        logger.warning("Startup environment check failed; continuing without strict validation", exc_info=True)

    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    application = FastAPI(
        title="Baseline Topic Radar",
        version=__version__,
        lifespan=app_lifespan,
    )

    settings = get_settings()
    allowed_origins_set = {
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    }

    if settings.CORS_ORIGINS:
        allowed_origins_set.update(str(origin).rstrip("/") for origin in settings.CORS_ORIGINS)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(allowed_origins_set),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(system_router)
    application.include_router(candidates_router)
    application.include_router(topics_router)
    application.include_router(cron_router)

    @application.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("Rejected request at %s: %s", request.url.path, exc, extra={"path": request.url.path})
        return JSONResponse(status_code=400, content={"status": "error", "msg": str(exc)})

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception at %s", request.url.path, exc_info=True, extra={"path": request.url.path})
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "msg": "An internal system error occurred. Please check server logs.",
            },
        )

    @application.get("/")
    def read_root() -> dict[str, str]:
        return {"status": "System Operational", "message": "Baseline Topic Radar is Running"}

    return application


app = create_app()
