import logging
from types import SimpleNamespace
from typing import Any, cast

import pytest
from prometheus_client import REGISTRY

from stockroom.inventory_service.app.notification_policy import (
    LOW_STOCK,
    OUT_OF_STOCK,
    NotificationPolicy,
    needs_notification,
)
from stockroom.inventory_service.app.repository import NotificationRepository
from stockroom.inventory_service.app.services import NotificationService
from stockroom.inventory_service.app.stock import StockStatus, stock_status


def _item(**overrides: Any) -> SimpleNamespace:
    values = {"id": 1, "sku": "A1", "name": "Widget", "quantity": 0, "min_quantity": 5}
    values.update(overrides)
    return SimpleNamespace(**values)


class _Lookup:
    def __init__(self, existing: object | None = None) -> None:
        self.existing = existing
        self.calls: list[int] = []

    async def find_open_stock_notification(self, item_id: int) -> object | None:
        self.calls.append(item_id)
        return self.existing


class _BrokenLookup:
    async def find_open_stock_notification(self, item_id: int) -> object | None:
        raise RuntimeError(f"lookup failed for {item_id}")


class _MemoryNotificationRepository:
    """Stores created notifications in memory and answers the open-notification lookup."""

    def __init__(self) -> None:
        self.rows: list[SimpleNamespace] = []

    async def find_open_stock_notification(self, item_id: int) -> SimpleNamespace | None:
        matches = [
            row
            for row in self.rows
            if row.item_id == item_id and not row.is_read and row.type in (LOW_STOCK, OUT_OF_STOCK)
        ]
        return matches[-1] if matches else None

    async def create_notification(self, **kwargs: Any) -> SimpleNamespace:
        row = SimpleNamespace(
            id=len(self.rows) + 1,
            user_id=kwargs["user_id"],
            type=kwargs["notification_type"],
            title=kwargs["title"],
            message=kwargs["message"],
            item_id=kwargs["item_id"],
            is_read=False,
        )
        self.rows.append(row)
        return row


class _MetricTracker:
    def __init__(self, name: str, labels: dict[str, str] | None = None) -> None:
        self.name = name
        self.labels = labels or {}
        baseline = REGISTRY.get_sample_value(name, self.labels)
        self._baseline = baseline if baseline is not None else 0.0

    def delta(self) -> float:
        current = REGISTRY.get_sample_value(self.name, self.labels)
        value = current if current is not None else 0.0
        return value - self._baseline


@pytest.mark.asyncio
async def test_in_stock_item_is_noop_without_lookup() -> None:
    lookup = _Lookup()
    decision = await NotificationPolicy(lookup).evaluate(_item(quantity=6, min_quantity=5))

    assert not decision.should_create
    assert decision.reason == "not_needed"
    assert lookup.calls == []


@pytest.mark.asyncio
async def test_quantity_at_threshold_does_not_notify() -> None:
    # Shown as low stock, but only strictly-below-threshold items notify.
    item = _item(quantity=5, min_quantity=5)
    decision = await NotificationPolicy(_Lookup()).evaluate(item)

    assert stock_status(item.quantity, item.min_quantity) is StockStatus.LOW_STOCK
    assert not needs_notification(item.quantity, item.min_quantity)
    assert decision.reason == "not_needed"


@pytest.mark.asyncio
async def test_out_of_stock_item_creates_out_of_stock_notification() -> None:
    decision = await NotificationPolicy(_Lookup()).evaluate(_item(quantity=0))

    assert decision.should_create
    assert decision.type == OUT_OF_STOCK
    assert decision.title == "Widget is out of stock"
    assert decision.message == 'Item "Widget" (SKU: A1) is currently out of stock. Please reorder immediately.'


@pytest.mark.asyncio
async def test_low_stock_item_message_embeds_quantities() -> None:
    decision = await NotificationPolicy(_Lookup()).evaluate(_item(quantity=2, min_quantity=5))

    assert decision.type == LOW_STOCK
    assert decision.title == "Widget is running low"
    assert decision.message == (
        'Item "Widget" (SKU: A1) has only 2 units left (minimum: 5). Consider restocking soon.'
    )


@pytest.mark.asyncio
async def test_zero_threshold_still_flags_empty_item() -> None:
    decision = await NotificationPolicy(_Lookup()).evaluate(_item(quantity=0, min_quantity=0))

    assert decision.should_create
    assert decision.type == OUT_OF_STOCK


@pytest.mark.asyncio
async def test_open_notification_suppresses_duplicate() -> None:
    lookup = _Lookup(existing=SimpleNamespace(id=99))
    decision = await NotificationPolicy(lookup).evaluate(_item(quantity=1))

    assert decision.action == "noop"
    assert decision.reason == "duplicate"
    assert lookup.calls == [1]


@pytest.mark.asyncio
async def test_lookup_failure_is_logged_noop(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR):
        decision = await NotificationPolicy(_BrokenLookup()).evaluate(_item(id=7, quantity=0))

    assert decision.action == "noop"
    assert decision.reason == "lookup_failed"
    assert any("item 7" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_repeated_evaluation_creates_single_notification() -> None:
    repository = _MemoryNotificationRepository()
    service = NotificationService(cast(NotificationRepository, repository), default_user_id=1)
    created_tracker = _MetricTracker("inventory_stock_notifications_created_total", {"type": "out_of_stock"})
    suppressed_tracker = _MetricTracker("inventory_stock_notifications_suppressed_total")
    item = _item(quantity=0)

    outcomes = [await service.notify_for_item(item) for _ in range(5)]

    assert [outcome.status for outcome in outcomes] == ["created"] + ["suppressed"] * 4
    assert len(repository.rows) == 1
    assert repository.rows[0].user_id == 1
    assert created_tracker.delta() == 1
    assert suppressed_tracker.delta() == 4


@pytest.mark.asyncio
async def test_read_notification_allows_a_new_one() -> None:
    repository = _MemoryNotificationRepository()
    service = NotificationService(cast(NotificationRepository, repository), default_user_id=1)

    first = await service.notify_for_item(_item(quantity=0), user_id=3)
    repository.rows[0].is_read = True
    second = await service.notify_for_item(_item(quantity=2))

    assert first.status == "created"
    assert second.status == "created"
    assert [row.type for row in repository.rows] == [OUT_OF_STOCK, LOW_STOCK]
    assert [row.user_id for row in repository.rows] == [3, 1]


@pytest.mark.asyncio
async def test_generate_counts_only_new_notifications() -> None:
    repository = _MemoryNotificationRepository()
    service = NotificationService(cast(NotificationRepository, repository), default_user_id=1)
    items = [_item(id=1, quantity=0), _item(id=2, quantity=1), _item(id=3, quantity=9)]

    assert await service.generate_stock_notifications(items) == 2
    assert await service.generate_stock_notifications(items) == 0
    assert {row.item_id for row in repository.rows} == {1, 2}
