"""Runs the stock-notification side effect of an item write in its own session."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockroom.common import lifespan_session
from stockroom.common.tracing import get_tracer

from .metrics import STOCK_NOTIFICATION_FAILURES_TOTAL
from .repository import InventoryRepository, NotificationRepository
from .services import NotificationOutcome, NotificationService

_LOGGER = logging.getLogger(__name__)
_TRACER = get_tracer("notifications")


class NotificationDispatcher:
    """Evaluates the notification policy for an item after its write has committed.

    ``dispatch`` never raises: failures come back as a ``failed`` outcome and
    are logged and counted. Because it opens its own session, nothing it does
    can roll back the write that triggered it. ``schedule`` runs the same work
    as a detached task for callers that do not want to wait.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], *, default_user_id: int) -> None:
        self._session_factory = session_factory
        self._default_user_id = default_user_id
        self._pending: set[asyncio.Task[NotificationOutcome]] = set()

    async def dispatch(self, item_id: int, *, user_id: int | None = None) -> NotificationOutcome:
        with _TRACER.start_as_current_span("inventory.notification.dispatch") as span:
            span.set_attribute("inventory.item_id", item_id)
            try:
                outcome = await self._evaluate(item_id, user_id)
            except Exception as exc:
                STOCK_NOTIFICATION_FAILURES_TOTAL.labels(stage="dispatch").inc()
                _LOGGER.error("Stock notification for item %s failed", item_id, exc_info=exc)
                outcome = NotificationOutcome(item_id=item_id, status="failed", error=str(exc) or type(exc).__name__)
            span.set_attribute("inventory.notification.outcome", outcome.status)
        return outcome

    def schedule(self, item_id: int, *, user_id: int | None = None) -> asyncio.Task[NotificationOutcome]:
        task = asyncio.create_task(self.dispatch(item_id, user_id=user_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> list[NotificationOutcome]:
        """Wait for every scheduled dispatch (used on shutdown and in tests)."""

        if not self._pending:
            return []
        return list(await asyncio.gather(*self._pending))

    async def _evaluate(self, item_id: int, user_id: int | None) -> NotificationOutcome:
        async with lifespan_session(self._session_factory) as session:
            item = await InventoryRepository(session).get_item(item_id)
            if item is None:
                return NotificationOutcome(item_id=item_id, status="skipped")
            service = NotificationService(NotificationRepository(session), default_user_id=self._default_user_id)
            return await service.notify_for_item(item, user_id=user_id)
