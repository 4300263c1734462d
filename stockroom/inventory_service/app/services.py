"""Inventory domain services."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from stockroom.common.tracing import get_tracer

from .metrics import (
    CASCADE_DELETES_TOTAL,
    REPORTS_CREATED_TOTAL,
    STOCK_NOTIFICATION_FAILURES_TOTAL,
    STOCK_NOTIFICATIONS_CREATED_TOTAL,
    STOCK_NOTIFICATIONS_SUPPRESSED_TOTAL,
)
from .models import Category, Item, Notification, Report, Supplier
from .notification_policy import NotificationPolicy, StockSnapshot
from .reporting import ReportAggregator
from .repository import InventoryRepository, NotificationRepository, ReportRepository
from .schemas import (
    CategoryCreate,
    CategoryUpdate,
    ItemCreate,
    ItemUpdate,
    NotificationCreate,
    ReportCreate,
    SupplierCreate,
    SupplierUpdate,
)

_LOGGER = logging.getLogger(__name__)
_TRACER = get_tracer("inventory")


class ReferenceNotFound(ValueError):
    """Raised when an item names a category or supplier that does not exist."""


class EntityNotFound(LookupError):
    """Raised when the row an operation targets does not exist."""


class CascadeDeleteError(RuntimeError):
    """Raised when a cascading delete failed and was rolled back."""


OutcomeStatus = Literal["created", "suppressed", "not_needed", "skipped", "failed"]


@dataclass(frozen=True, slots=True)
class NotificationOutcome:
    item_id: int
    status: OutcomeStatus
    notification_id: int | None = None
    error: str | None = None


class InventoryService:
    """Item writes, including category/supplier reference checks."""

    def __init__(self, repository: InventoryRepository) -> None:
        self.repository = repository

    async def _resolve_category_id(self, category_id: int | None, name: str | None) -> int | None:
        if category_id is not None:
            category = await self.repository.get_category(category_id)
        elif name:
            category = await self.repository.find_category_by_name(name)
        else:
            return None
        if category is None:
            raise ReferenceNotFound("Valid category_id or category name is required")
        return category.id

    async def _resolve_supplier_id(self, supplier_id: int | None, name: str | None) -> int | None:
        if supplier_id is not None:
            supplier = await self.repository.get_supplier(supplier_id)
        elif name:
            supplier = await self.repository.find_supplier_by_name(name)
        else:
            return None
        if supplier is None:
            raise ReferenceNotFound("Valid supplier_id or supplier name is required")
        return supplier.id

    async def create_item(self, payload: ItemCreate) -> Item:
        category_id = await self._resolve_category_id(payload.category_id, payload.category)
        if category_id is None:
            raise ReferenceNotFound("Valid category_id or category name is required")
        supplier_id = await self._resolve_supplier_id(payload.supplier_id, payload.supplier)
        if supplier_id is None:
            raise ReferenceNotFound("Valid supplier_id or supplier name is required")

        return await self.repository.create_item(
            sku=payload.sku,
            name=payload.name,
            category_id=category_id,
            supplier_id=supplier_id,
            quantity=payload.quantity,
            min_quantity=payload.min_quantity,
            price=payload.price,
            last_updated=payload.last_updated or date.today(),
        )

    async def update_item(self, item: Item, payload: ItemUpdate) -> Item:
        updates: dict[str, Any] = payload.model_dump(
            exclude_none=True,
            exclude={"category_id", "category", "supplier_id", "supplier"},
        )
        category_id = await self._resolve_category_id(payload.category_id, payload.category)
        if category_id is not None:
            updates["category_id"] = category_id
        supplier_id = await self._resolve_supplier_id(payload.supplier_id, payload.supplier)
        if supplier_id is not None:
            updates["supplier_id"] = supplier_id
        updates.setdefault("last_updated", date.today())
        return await self.repository.update_item(item, updates)


class CatalogService:
    """Category and supplier maintenance, including the transactional cascade delete."""

    def __init__(self, repository: InventoryRepository) -> None:
        self.repository = repository

    async def create_category(self, payload: CategoryCreate) -> Category:
        return await self.repository.create_category(**payload.model_dump())

    async def update_category(self, category: Category, payload: CategoryUpdate) -> Category:
        updates = payload.model_dump(exclude_unset=True)
        if updates.get("name") is None:
            updates.pop("name", None)
        return await self.repository.update_category(category, updates)

    async def create_supplier(self, payload: SupplierCreate) -> Supplier:
        return await self.repository.create_supplier(**payload.model_dump())

    async def update_supplier(self, supplier: Supplier, payload: SupplierUpdate) -> Supplier:
        updates = payload.model_dump(exclude_unset=True)
        for required in ("name", "email", "status"):
            if updates.get(required) is None:
                updates.pop(required, None)
        return await self.repository.update_supplier(supplier, updates)

    async def delete_category(self, category_id: int) -> int:
        """Delete a category and every item filed under it; returns the number of items removed."""

        return await self._cascade_delete(
            "category",
            category_id,
            fetch=self.repository.get_category,
            delete_items=self.repository.delete_items_for_category,
            delete_row=self.repository.delete_category,
        )

    async def delete_supplier(self, supplier_id: int) -> int:
        """Delete a supplier and every item it provides; returns the number of items removed."""

        return await self._cascade_delete(
            "supplier",
            supplier_id,
            fetch=self.repository.get_supplier,
            delete_items=self.repository.delete_items_for_supplier,
            delete_row=self.repository.delete_supplier,
        )

    async def _cascade_delete(
        self,
        entity: str,
        entity_id: int,
        *,
        fetch: Callable[[int], Awaitable[object | None]],
        delete_items: Callable[[int], Awaitable[int]],
        delete_row: Callable[[int], Awaitable[int]],
    ) -> int:
        session = self.repository.session
        with _TRACER.start_as_current_span(f"inventory.{entity}.cascade_delete") as span:
            span.set_attribute(f"inventory.{entity}_id", entity_id)
            try:
                if await fetch(entity_id) is None:
                    raise EntityNotFound(f"{entity.capitalize()} not found")
                removed = await delete_items(entity_id)
                if await delete_row(entity_id) == 0:
                    raise EntityNotFound(f"{entity.capitalize()} not found")
                await session.commit()
            except EntityNotFound:
                await session.rollback()
                CASCADE_DELETES_TOTAL.labels(entity=entity, outcome="not_found").inc()
                raise
            except Exception as exc:
                await session.rollback()
                CASCADE_DELETES_TOTAL.labels(entity=entity, outcome="rolled_back").inc()
                _LOGGER.error("Cascade delete of %s %s rolled back", entity, entity_id, exc_info=exc)
                raise CascadeDeleteError(f"Failed to delete {entity}") from exc
            span.set_attribute("inventory.items_removed", removed)
        CASCADE_DELETES_TOTAL.labels(entity=entity, outcome="deleted").inc()
        _LOGGER.info("Deleted %s %s together with %d item(s)", entity, entity_id, removed)
        return removed


class NotificationService:
    """Applies the notification policy and manages notification rows."""

    def __init__(self, repository: NotificationRepository, *, default_user_id: int) -> None:
        self.repository = repository
        self.default_user_id = default_user_id
        self.policy = NotificationPolicy(repository)

    def resolve_user(self, user_id: int | None) -> int:
        return user_id if user_id is not None else self.default_user_id

    async def notify_for_item(self, item: StockSnapshot, *, user_id: int | None = None) -> NotificationOutcome:
        decision = await self.policy.evaluate(item)
        if not decision.should_create:
            if decision.reason == "duplicate":
                STOCK_NOTIFICATIONS_SUPPRESSED_TOTAL.inc()
                return NotificationOutcome(item_id=item.id, status="suppressed")
            if decision.reason == "lookup_failed":
                STOCK_NOTIFICATION_FAILURES_TOTAL.labels(stage="lookup").inc()
                return NotificationOutcome(item_id=item.id, status="failed", error="lookup_failed")
            return NotificationOutcome(item_id=item.id, status="not_needed")

        assert decision.type is not None and decision.title is not None and decision.message is not None
        notification = await self.repository.create_notification(
            user_id=self.resolve_user(user_id),
            notification_type=decision.type,
            title=decision.title,
            message=decision.message,
            item_id=item.id,
        )
        STOCK_NOTIFICATIONS_CREATED_TOTAL.labels(type=decision.type).inc()
        _LOGGER.info("Created %s notification %s for item %s", decision.type, notification.id, item.id)
        return NotificationOutcome(item_id=item.id, status="created", notification_id=notification.id)

    async def generate_stock_notifications(
        self,
        items: Iterable[StockSnapshot],
        *,
        user_id: int | None = None,
    ) -> int:
        """Backfill notifications for every qualifying item; returns how many were created."""

        created = 0
        for item in items:
            outcome = await self.notify_for_item(item, user_id=user_id)
            if outcome.status == "created":
                created += 1
        return created

    async def create_notification(self, payload: NotificationCreate) -> Notification:
        return await self.repository.create_notification(
            user_id=self.resolve_user(payload.user_id),
            notification_type=payload.type,
            title=payload.title,
            message=payload.message,
            item_id=payload.item_id,
        )


class ReportService:
    """Builds report snapshots from the current item table."""

    def __init__(
        self,
        inventory: InventoryRepository,
        reports: ReportRepository,
        aggregator: ReportAggregator | None = None,
    ) -> None:
        self.inventory = inventory
        self.reports = reports
        self.aggregator = aggregator or ReportAggregator()

    async def create_report(self, payload: ReportCreate) -> Report:
        items = await self.inventory.list_all_items()
        snapshot = self.aggregator.aggregate(
            items,
            payload.period,
            payload.start_date,
            payload.end_date,
            notes=payload.notes,
        )
        report = await self.reports.create_report(snapshot)
        REPORTS_CREATED_TOTAL.inc()
        _LOGGER.info(
            "Created report %s for %s (%s..%s): %d units across %d item(s)",
            report.id,
            snapshot.period,
            snapshot.start_date,
            snapshot.end_date,
            snapshot.total_items,
            len(items),
        )
        return report
