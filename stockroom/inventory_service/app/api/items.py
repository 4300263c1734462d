"""Item HTTP endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError

from stockroom.common import ServiceSettings

from ..dependencies import get_dispatcher, get_inventory_service, get_service_settings
from ..dispatcher import NotificationDispatcher
from ..repository import ItemWithStatus
from ..schemas import ItemCreate, ItemPage, ItemResponse, ItemUpdate
from ..services import InventoryService, ReferenceNotFound

router = APIRouter(prefix="/items", tags=["items"])


def _serialize_item(row: ItemWithStatus) -> dict[str, object]:
    item, item_status = row
    return {
        "id": item.id,
        "sku": item.sku,
        "name": item.name,
        "categoryId": item.category_id,
        "category": item.category.name,
        "supplierId": item.supplier_id,
        "supplier": item.supplier.name,
        "quantity": item.quantity,
        "minQuantity": item.min_quantity,
        "price": float(item.price),
        "status": item_status,
        "lastUpdated": item.last_updated,
    }


async def _load_item(service: InventoryService, item_id: int) -> ItemResponse:
    row = await service.repository.get_item_with_status(item_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return ItemResponse.model_validate(_serialize_item(row))


@router.get("", response_model=ItemPage | list[ItemResponse])
async def list_items(
    page: int | None = Query(default=None, ge=1),
    per_page: int | None = Query(default=None, alias="perPage", ge=1, le=500),
    service: InventoryService = Depends(get_inventory_service),
    settings: ServiceSettings = Depends(get_service_settings),
) -> ItemPage | list[ItemResponse]:
    repository = service.repository
    if page is None:
        rows = await repository.list_items_with_status()
        return [ItemResponse.model_validate(_serialize_item(row)) for row in rows]

    size = per_page or settings.default_per_page
    total = await repository.count_items()
    rows = await repository.list_items_with_status(limit=size, offset=(page - 1) * size)
    data = [ItemResponse.model_validate(_serialize_item(row)) for row in rows]
    return ItemPage(data=data, total=total, page=page, perPage=size)


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: int, service: InventoryService = Depends(get_inventory_service)) -> ItemResponse:
    return await _load_item(service, item_id)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: ItemCreate,
    user_id: int | None = Query(default=None, alias="userId", ge=1),
    service: InventoryService = Depends(get_inventory_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ItemResponse:
    session = service.repository.session
    try:
        item = await service.create_item(payload)
        await session.commit()
    except ReferenceNotFound as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="SKU already exists") from exc

    await dispatcher.dispatch(item.id, user_id=user_id)
    return await _load_item(service, item.id)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: int,
    payload: ItemUpdate,
    user_id: int | None = Query(default=None, alias="userId", ge=1),
    service: InventoryService = Depends(get_inventory_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ItemResponse:
    session = service.repository.session
    item = await service.repository.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    try:
        await service.update_item(item, payload)
        await session.commit()
    except ReferenceNotFound as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="SKU already exists") from exc

    await dispatcher.dispatch(item_id, user_id=user_id)
    return await _load_item(service, item_id)


@router.delete("/{item_id}")
async def delete_item(item_id: int, service: InventoryService = Depends(get_inventory_service)) -> Response:
    item = await service.repository.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    await service.repository.delete_item(item)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
