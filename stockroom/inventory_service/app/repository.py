"""Data access helpers for the inventory store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from .models import Category, Item, Notification, Report, Supplier
from .notification_policy import STOCK_NOTIFICATION_TYPES
from .reporting import ReportSnapshot
from .stock import stock_status_expression

ItemWithStatus = tuple[Item, str]


class InventoryRepository:
    """Persistence utilities for items, categories and suppliers."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # Items --------------------------------------------------------------------------------
    def _items_with_status(self) -> Select[tuple[Item, str]]:
        return select(Item, stock_status_expression().label("status")).order_by(Item.id)

    async def create_item(self, **fields: Any) -> Item:
        item = Item(**fields)
        self.session.add(item)
        await self.session.flush()
        return item

    async def get_item(self, item_id: int) -> Item | None:
        result = await self.session.execute(select(Item).where(Item.id == item_id))
        return result.scalar_one_or_none()

    async def get_item_with_status(self, item_id: int) -> ItemWithStatus | None:
        result = await self.session.execute(
            self._items_with_status()
            .where(Item.id == item_id)
            .execution_options(populate_existing=True)
        )
        row = result.one_or_none()
        return None if row is None else (row[0], row[1])

    async def list_items_with_status(
        self,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ItemWithStatus]:
        stmt = self._items_with_status()
        if limit is not None:
            stmt = stmt.offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def count_items(self) -> int:
        return (await self.session.execute(select(func.count(Item.id)))).scalar_one()

    async def list_all_items(self) -> list[Item]:
        result = await self.session.execute(select(Item).order_by(Item.id))
        return list(result.scalars())

    async def list_items_needing_notification(self) -> list[Item]:
        result = await self.session.execute(
            select(Item)
            .where(or_(Item.quantity == 0, Item.quantity < Item.min_quantity))
            .order_by(Item.id)
        )
        return list(result.scalars())

    async def update_item(self, item: Item, updates: dict[str, Any]) -> Item:
        for field, value in updates.items():
            setattr(item, field, value)
        await self.session.flush()
        return item

    async def delete_item(self, item: Item) -> None:
        await self.session.delete(item)
        await self.session.flush()

    async def delete_items_for_category(self, category_id: int) -> int:
        result = await self.session.execute(delete(Item).where(Item.category_id == category_id))
        return result.rowcount or 0

    async def delete_items_for_supplier(self, supplier_id: int) -> int:
        result = await self.session.execute(delete(Item).where(Item.supplier_id == supplier_id))
        return result.rowcount or 0

    # Categories ---------------------------------------------------------------------------
    async def create_category(self, **fields: Any) -> Category:
        category = Category(**fields)
        self.session.add(category)
        await self.session.flush()
        return category

    async def get_category(self, category_id: int) -> Category | None:
        return await self.session.get(Category, category_id)

    async def find_category_by_name(self, name: str) -> Category | None:
        result = await self.session.execute(select(Category).where(Category.name == name))
        return result.scalar_one_or_none()

    async def list_categories(self) -> list[Category]:
        result = await self.session.execute(select(Category).order_by(Category.name))
        return list(result.scalars())

    async def update_category(self, category: Category, updates: dict[str, Any]) -> Category:
        for field, value in updates.items():
            setattr(category, field, value)
        await self.session.flush()
        return category

    async def delete_category(self, category_id: int) -> int:
        result = await self.session.execute(delete(Category).where(Category.id == category_id))
        return result.rowcount or 0

    # Suppliers ----------------------------------------------------------------------------
    async def create_supplier(self, **fields: Any) -> Supplier:
        supplier = Supplier(**fields)
        self.session.add(supplier)
        await self.session.flush()
        return supplier

    async def get_supplier(self, supplier_id: int) -> Supplier | None:
        return await self.session.get(Supplier, supplier_id)

    async def find_supplier_by_name(self, name: str) -> Supplier | None:
        result = await self.session.execute(select(Supplier).where(Supplier.name == name))
        return result.scalar_one_or_none()

    async def list_suppliers(self) -> list[Supplier]:
        result = await self.session.execute(select(Supplier).order_by(Supplier.name))
        return list(result.scalars())

    async def update_supplier(self, supplier: Supplier, updates: dict[str, Any]) -> Supplier:
        for field, value in updates.items():
            setattr(supplier, field, value)
        await self.session.flush()
        return supplier

    async def delete_supplier(self, supplier_id: int) -> int:
        result = await self.session.execute(delete(Supplier).where(Supplier.id == supplier_id))
        return result.rowcount or 0


class NotificationRepository:
    """Database access helpers for notifications."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_open_stock_notification(self, item_id: int) -> Notification | None:
        result = await self.session.execute(
            select(Notification)
            .where(
                Notification.item_id == item_id,
                Notification.is_read.is_(False),
                Notification.type.in_(STOCK_NOTIFICATION_TYPES),
            )
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def create_notification(
        self,
        *,
        user_id: int,
        notification_type: str,
        title: str,
        message: str,
        item_id: int | None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            item_id=item_id,
            is_read=False,
        )
        self.session.add(notification)
        await self.session.flush()
        await self.session.refresh(notification, attribute_names=["created_at", "item"])
        return notification

    async def get_notification(self, notification_id: int) -> Notification | None:
        result = await self.session.execute(select(Notification).where(Notification.id == notification_id))
        return result.scalar_one_or_none()

    async def list_notifications(self, *, user_id: int, limit: int) -> list[Notification]:
        result = await self.session.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars())

    async def count_unread(self, user_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()

    async def mark_read(self, notification: Notification) -> Notification:
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            await self.session.flush()
        return notification

    async def mark_all_read(self, user_id: int) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def delete_notification(self, notification: Notification) -> None:
        await self.session.delete(notification)
        await self.session.flush()


class ReportRepository:
    """Persistence for immutable report snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_report(self, snapshot: ReportSnapshot) -> Report:
        report = Report(
            period=snapshot.period,
            start_date=snapshot.start_date,
            end_date=snapshot.end_date,
            total_items=snapshot.total_items,
            total_value=snapshot.total_value,
            low_stock_count=snapshot.low_stock_count,
            out_of_stock_count=snapshot.out_of_stock_count,
            notes=snapshot.notes,
        )
        self.session.add(report)
        await self.session.flush()
        await self.session.refresh(report, attribute_names=["created_at"])
        return report

    async def get_report(self, report_id: int) -> Report | None:
        return await self.session.get(Report, report_id)

    async def list_reports(self, *, limit: int | None = None, offset: int = 0) -> list[Report]:
        stmt = select(Report).order_by(Report.start_date.desc(), Report.id.desc())
        if limit is not None:
            stmt = stmt.offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def count_reports(self) -> int:
        return (await self.session.execute(select(func.count(Report.id)))).scalar_one()

    async def delete_report(self, report: Report) -> None:
        await self.session.delete(report)
        await self.session.flush()

    async def find_duplicate_report_ids(self) -> list[int]:
        """Ids of reports superseded by a newer row with the same period and dates."""

        newer = aliased(Report)
        superseded = (
            select(newer.id)
            .where(
                and_(
                    newer.period == Report.period,
                    newer.start_date == Report.start_date,
                    newer.end_date == Report.end_date,
                    newer.id > Report.id,
                )
            )
            .exists()
        )
        result = await self.session.execute(select(Report.id).where(superseded).order_by(Report.id))
        return list(result.scalars())

    async def delete_duplicate_reports(self) -> list[int]:
        report_ids = await self.find_duplicate_report_ids()
        if report_ids:
            await self.session.execute(delete(Report).where(Report.id.in_(report_ids)))
        return report_ids
