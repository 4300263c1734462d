import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from stockroom.common import ServiceSettings, dispose_engines
from stockroom.inventory_service.app.main import create_app


def _run(coro):
    return asyncio.run(coro)


def _prepare_app(tmp_path, **overrides) -> FastAPI:
    settings = ServiceSettings(
        app_name="Inventory Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}",
        **overrides,
    )
    return create_app(settings)


async def _create_item(client: AsyncClient, sku: str, quantity: int, min_quantity: int = 5) -> int:
    categories = (await client.get("/categories")).json()
    if not categories:
        await client.post("/categories", json={"name": "General"})
        await client.post("/suppliers", json={"name": "Acme", "email": "sales@acme.test"})
    resp = await client.post(
        "/items",
        json={
            "sku": sku,
            "name": f"Item {sku}",
            "category": "General",
            "supplier": "Acme",
            "quantity": quantity,
            "minQuantity": min_quantity,
            "price": 4,
        },
    )
    assert resp.status_code == 201
    return resp.json()["id"]


def test_manual_notification_flow(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                create_resp = await client.post(
                    "/notifications",
                    json={"title": "Stock take", "message": "Count aisle 4 on Friday"},
                )
                assert create_resp.status_code == 201
                created = create_resp.json()
                assert created["type"] == "other"
                assert created["userId"] == 1
                assert created["itemId"] is None
                assert created["isRead"] is False
                assert created["readAt"] is None
                notification_id = created["id"]

                other_user = await client.post(
                    "/notifications",
                    json={"userId": 2, "title": "Hello", "message": "For user two"},
                )
                assert other_user.json()["userId"] == 2

                assert (await client.get("/notifications/unread-count")).json() == {"count": 1}

                read_resp = await client.put(f"/notifications/{notification_id}/read")
                assert read_resp.status_code == 200
                assert read_resp.json()["isRead"] is True
                assert read_resp.json()["readAt"] is not None

                assert (await client.get("/notifications/unread-count")).json() == {"count": 0}
                assert (await client.get("/notifications/unread-count", params={"userId": 2})).json() == {"count": 1}

                delete_resp = await client.delete(f"/notifications/{notification_id}")
                assert delete_resp.status_code == 204
                assert (await client.get("/notifications")).json() == []
                assert (await client.delete(f"/notifications/{notification_id}")).status_code == 404
                assert (await client.put(f"/notifications/{notification_id}/read")).status_code == 404

    _run(body())
    _run(dispose_engines())


def test_manual_notification_validation(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                missing_title = await client.post("/notifications", json={"message": "no title"})
                assert missing_title.status_code == 400
                assert "error" in missing_title.json()

                bad_type = await client.post(
                    "/notifications",
                    json={"title": "t", "message": "m", "type": "urgent"},
                )
                assert bad_type.status_code == 400

                dangling = await client.post(
                    "/notifications",
                    json={"title": "t", "message": "m", "itemId": 404},
                )
                assert dangling.status_code == 400
                assert dangling.json() == {"error": "Referenced item does not exist"}

                bad_user = await client.get("/notifications", params={"userId": 0})
                assert bad_user.status_code == 400

    _run(body())
    _run(dispose_engines())


def test_mark_all_read_then_generate(tmp_path) -> None:
    app = _prepare_app(tmp_path)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await _create_item(client, "E-1", quantity=0)
                await _create_item(client, "L-1", quantity=2)
                await _create_item(client, "F-1", quantity=50)
                assert (await client.get("/notifications/unread-count")).json() == {"count": 2}

                mark = await client.put("/notifications/mark-all-read")
                assert mark.status_code == 200
                assert mark.json() == {"message": "All notifications marked as read", "updated": 2}
                assert (await client.get("/notifications/unread-count")).json() == {"count": 0}

                generate = await client.post("/notifications/generate")
                assert generate.json() == {"message": "Generated 2 new notifications", "created": 2}

                again = await client.post("/notifications/generate")
                assert again.json()["created"] == 0

                notifications = (await client.get("/notifications")).json()
                assert len(notifications) == 4
                assert sorted(n["itemSku"] for n in notifications if not n["isRead"]) == ["E-1", "L-1"]

    _run(body())
    _run(dispose_engines())


def test_generate_for_explicit_user(tmp_path) -> None:
    app = _prepare_app(tmp_path, default_user_id=3)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await _create_item(client, "E-1", quantity=0)
                default_user = (await client.get("/notifications")).json()
                assert [n["userId"] for n in default_user] == [3]

                # An open alert for the item exists, whoever it was addressed to.
                generated = await client.post("/notifications/generate", params={"userId": 9})
                assert generated.json()["created"] == 0

    _run(body())
    _run(dispose_engines())


def test_list_is_newest_first_and_limited(tmp_path) -> None:
    app = _prepare_app(tmp_path, notification_list_limit=3)

    async def body() -> None:
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                for index in range(5):
                    resp = await client.post("/notifications", json={"title": f"n{index}", "message": "m"})
                    assert resp.status_code == 201

                titles = [n["title"] for n in (await client.get("/notifications")).json()]
                assert titles == ["n4", "n3", "n2"]

    _run(body())
    _run(dispose_engines())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
