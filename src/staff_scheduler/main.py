import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from staff_scheduler.api.routes import api_router
from staff_scheduler.core.config import get_settings


async def health_check() -> dict[str, str]:
    """Simple health endpoint for infrastructure monitoring."""
    return {"status": "ok"}


def create_application() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        description="API for generating weekly staff schedules.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix="/api")
    app.add_api_route("/health", health_check, methods=["GET"])
    return app


app = create_application()
