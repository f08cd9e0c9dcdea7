# app/main.py
from fastapi import FastAPI

from app.api.routes import health, internal
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import AsyncSessionLocal, init_db_for_startup
from app.services.scheduler import MaterializationScheduler


def create_app() -> FastAPI:
    """
    Application factory for the Recurring Meeting Materializer service.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Background service that turns recurring meeting templates into\n"
            "concrete, conflict-free meetings ahead of time. A daily timer and a\n"
            "catch-up run at startup keep the lookahead window filled."
        ),
        version="0.1.0",
    )

    app.state.materialization_scheduler = MaterializationScheduler(
        session_factory=AsyncSessionLocal,
        settings=settings,
    )

    # Routers
    app.include_router(health.router)
    app.include_router(internal.router)

    @app.on_event("startup")
    async def on_startup() -> None:  # pragma: no cover
        await init_db_for_startup()
        if settings.SCHEDULER_ENABLED:
            app.state.materialization_scheduler.start()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:  # pragma: no cover
        await app.state.materialization_scheduler.stop()

    return app


app = create_app()
