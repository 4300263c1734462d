from contextlib import asynccontextmanager

from fastapi import FastAPI

from stockroom.common import (
    DEFAULT_APP_NAME,
    ServiceSettings,
    build_app,
    configure_logging,
    create_tables,
    dispose_engines,
    get_session_factory,
    get_settings,
    resolve_database_url,
)

from .api.categories import router as categories_router
from .api.health import router as health_router
from .api.items import router as items_router
from .api.notifications import router as notifications_router
from .api.reports import router as reports_router
from .api.suppliers import router as suppliers_router
from .dispatcher import NotificationDispatcher
from .models import Base

SERVICE_NAME = "Inventory Service"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./inventory_service.db"


def create_app(settings: ServiceSettings | None = None) -> FastAPI:
    """Create the Inventory Service FastAPI application."""

    resolved_settings = settings or get_settings()
    if resolved_settings.app_name == DEFAULT_APP_NAME:
        resolved_settings = resolved_settings.model_copy(update={"app_name": SERVICE_NAME})
    configure_logging(resolved_settings)
    database_url = resolve_database_url(resolved_settings, DEFAULT_DATABASE_URL)
    session_factory = get_session_factory(database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        dispatcher = NotificationDispatcher(
            session_factory,
            default_user_id=resolved_settings.default_user_id,
        )
        app.state.session_factory = session_factory
        app.state.notification_dispatcher = dispatcher
        try:
            if resolved_settings.create_tables:
                await create_tables(database_url, Base)
            yield
        finally:
            await dispatcher.drain()
            app.state.session_factory = None  # type: ignore[assignment]
            app.state.notification_dispatcher = None
            await dispose_engines()

    app = build_app(resolved_settings, lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(items_router)
    app.include_router(categories_router)
    app.include_router(suppliers_router)
    app.include_router(notifications_router)
    app.include_router(reports_router)
    return app


app = create_app()
