"""Category HTTP endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError

from ..dependencies import get_catalog_service
from ..schemas import CategoryCreate, CategoryResponse, CategoryUpdate
from ..services import CascadeDeleteError, CatalogService, EntityNotFound

router = APIRouter(prefix="/categories", tags=["categories"])


def _serialize_category(category) -> dict[str, object]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "color": category.color,
        "icon": category.icon,
        "createdDate": category.created_date,
    }


@router.get("", response_model=list[CategoryResponse])
async def list_categories(service: CatalogService = Depends(get_catalog_service)) -> list[CategoryResponse]:
    categories = await service.repository.list_categories()
    return [CategoryResponse.model_validate(_serialize_category(category)) for category in categories]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, service: CatalogService = Depends(get_catalog_service)) -> CategoryResponse:
    category = await service.repository.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return CategoryResponse.model_validate(_serialize_category(category))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> CategoryResponse:
    try:
        category = await service.create_category(payload)
    except IntegrityError as exc:
        await service.repository.session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category name already exists") from exc
    return CategoryResponse.model_validate(_serialize_category(category))


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> CategoryResponse:
    category = await service.repository.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    try:
        updated = await service.update_category(category, payload)
    except IntegrityError as exc:
        await service.repository.session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category name already exists") from exc
    return CategoryResponse.model_validate(_serialize_category(updated))


@router.delete("/{category_id}")
async def delete_category(category_id: int, service: CatalogService = Depends(get_catalog_service)) -> Response:
    try:
        await service.delete_category(category_id)
    except EntityNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CascadeDeleteError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
