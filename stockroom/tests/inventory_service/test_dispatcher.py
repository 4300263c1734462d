import asyncio
import logging
from datetime import date
from decimal import Decimal

import pytest
from prometheus_client import REGISTRY

from stockroom.common import create_tables, dispose_engines, get_session_factory, lifespan_session
from stockroom.inventory_service.app.dispatcher import NotificationDispatcher
from stockroom.inventory_service.app.models import Base
from stockroom.inventory_service.app.reporting import ReportSnapshot
from stockroom.inventory_service.app.repository import (
    InventoryRepository,
    NotificationRepository,
    ReportRepository,
)


def _run(coro):
    return asyncio.run(coro)


def _failure_count(stage: str) -> float:
    value = REGISTRY.get_sample_value("inventory_stock_notification_failures_total", {"stage": stage})
    return value if value is not None else 0.0


def _unavailable_session_factory():
    raise RuntimeError("database offline")


async def _prepare(tmp_path):
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'dispatch.db'}"
    await create_tables(database_url, Base)
    return get_session_factory(database_url)


async def _create_item(session_factory, *, sku: str, quantity: int, min_quantity: int = 5) -> int:
    async with lifespan_session(session_factory) as session:
        repository = InventoryRepository(session)
        category = await repository.find_category_by_name("General") or await repository.create_category(
            name="General"
        )
        supplier = await repository.find_supplier_by_name("Acme") or await repository.create_supplier(
            name="Acme", email="sales@acme.test"
        )
        item = await repository.create_item(
            sku=sku,
            name=f"Item {sku}",
            category_id=category.id,
            supplier_id=supplier.id,
            quantity=quantity,
            min_quantity=min_quantity,
            price=Decimal("1.00"),
        )
        return item.id


@pytest.mark.asyncio
async def test_dispatch_failure_is_reported_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    dispatcher = NotificationDispatcher(_unavailable_session_factory, default_user_id=1)  # type: ignore[arg-type]
    before = _failure_count("dispatch")

    with caplog.at_level(logging.ERROR):
        outcome = await dispatcher.dispatch(12)

    assert outcome.status == "failed"
    assert outcome.item_id == 12
    assert outcome.error == "database offline"
    assert _failure_count("dispatch") - before == 1
    assert any("item 12" in record.getMessage() for record in caplog.records)


def test_dispatch_outcomes(tmp_path) -> None:
    async def body() -> None:
        session_factory = await _prepare(tmp_path)
        dispatcher = NotificationDispatcher(session_factory, default_user_id=4)
        empty_id = await _create_item(session_factory, sku="E-1", quantity=0)
        full_id = await _create_item(session_factory, sku="F-1", quantity=40)

        missing = await dispatcher.dispatch(999)
        assert missing.status == "skipped"

        created = await dispatcher.dispatch(empty_id)
        assert created.status == "created"
        assert created.notification_id is not None

        duplicate = await dispatcher.dispatch(empty_id)
        assert duplicate.status == "suppressed"

        not_needed = await dispatcher.dispatch(full_id)
        assert not_needed.status == "not_needed"

        async with lifespan_session(session_factory) as session:
            notifications = await NotificationRepository(session).list_notifications(user_id=4, limit=10)
        assert [(n.item_id, n.type) for n in notifications] == [(empty_id, "out_of_stock")]
        await dispose_engines()

    _run(body())


def test_scheduled_dispatches_are_drained(tmp_path) -> None:
    async def body() -> None:
        session_factory = await _prepare(tmp_path)
        dispatcher = NotificationDispatcher(session_factory, default_user_id=1)
        low_id = await _create_item(session_factory, sku="L-1", quantity=1)

        task = dispatcher.schedule(low_id, user_id=2)
        outcomes = await dispatcher.drain()

        assert task.done()
        assert [outcome.status for outcome in outcomes] == ["created"]
        assert await dispatcher.drain() == []

        async with lifespan_session(session_factory) as session:
            assert await NotificationRepository(session).count_unread(2) == 1
        await dispose_engines()

    _run(body())


def test_duplicate_reports_keep_newest_row(tmp_path) -> None:
    def snapshot(period: str, start: date, total: int) -> ReportSnapshot:
        return ReportSnapshot(
            period=period,
            start_date=start,
            end_date=start,
            total_items=total,
            total_value=Decimal("0.00"),
            low_stock_count=0,
            out_of_stock_count=0,
        )

    async def body() -> None:
        session_factory = await _prepare(tmp_path)
        async with lifespan_session(session_factory) as session:
            repository = ReportRepository(session)
            first = await repository.create_report(snapshot("daily", date(2024, 1, 1), 1))
            second = await repository.create_report(snapshot("daily", date(2024, 1, 1), 2))
            latest = await repository.create_report(snapshot("daily", date(2024, 1, 1), 3))
            other = await repository.create_report(snapshot("weekly", date(2024, 1, 1), 4))

        async with lifespan_session(session_factory) as session:
            assert await ReportRepository(session).find_duplicate_report_ids() == [first.id, second.id]

        async with lifespan_session(session_factory) as session:
            removed = await ReportRepository(session).delete_duplicate_reports()
        assert removed == [first.id, second.id]

        async with lifespan_session(session_factory) as session:
            remaining = await ReportRepository(session).list_reports()
        assert sorted(report.id for report in remaining) == sorted([latest.id, other.id])
        await dispose_engines()

    _run(body())
