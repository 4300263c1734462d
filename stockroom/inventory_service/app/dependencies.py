"""Dependency wiring for the inventory API."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockroom.common import ServiceSettings, lifespan_session

from .dispatcher import NotificationDispatcher
from .repository import InventoryRepository, NotificationRepository, ReportRepository
from .services import CatalogService, InventoryService, NotificationService, ReportService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield an AsyncSession for the current request lifecycle."""

    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with lifespan_session(session_factory) as session:
        yield session


def get_service_settings(request: Request) -> ServiceSettings:
    return request.app.state.settings


def get_repository(session: AsyncSession = Depends(get_session)) -> InventoryRepository:
    """Provide a repository bound to the active session."""

    return InventoryRepository(session)


def get_inventory_service(repository: InventoryRepository = Depends(get_repository)) -> InventoryService:
    return InventoryService(repository)


def get_catalog_service(repository: InventoryRepository = Depends(get_repository)) -> CatalogService:
    return CatalogService(repository)


def get_notification_service(
    session: AsyncSession = Depends(get_session),
    settings: ServiceSettings = Depends(get_service_settings),
) -> NotificationService:
    return NotificationService(NotificationRepository(session), default_user_id=settings.default_user_id)


def get_report_service(
    repository: InventoryRepository = Depends(get_repository),
) -> ReportService:
    return ReportService(repository, ReportRepository(repository.session))


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.notification_dispatcher
