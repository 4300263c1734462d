"""Supplier HTTP endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError

from ..dependencies import get_catalog_service
from ..schemas import SupplierCreate, SupplierResponse, SupplierUpdate
from ..services import CascadeDeleteError, CatalogService, EntityNotFound

router = APIRouter(prefix="/suppliers", tags=["suppliers"])

_CONFLICT = "Supplier name or email already exists"


def _serialize_supplier(supplier) -> dict[str, object]:
    return {
        "id": supplier.id,
        "name": supplier.name,
        "email": supplier.email,
        "phone": supplier.phone,
        "location": supplier.location,
        "description": supplier.description,
        "status": supplier.status,
        "createdDate": supplier.created_date,
    }


@router.get("", response_model=list[SupplierResponse])
async def list_suppliers(service: CatalogService = Depends(get_catalog_service)) -> list[SupplierResponse]:
    suppliers = await service.repository.list_suppliers()
    return [SupplierResponse.model_validate(_serialize_supplier(supplier)) for supplier in suppliers]


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(supplier_id: int, service: CatalogService = Depends(get_catalog_service)) -> SupplierResponse:
    supplier = await service.repository.get_supplier(supplier_id)
    if supplier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return SupplierResponse.model_validate(_serialize_supplier(supplier))


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    payload: SupplierCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> SupplierResponse:
    try:
        supplier = await service.create_supplier(payload)
    except IntegrityError as exc:
        await service.repository.session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_CONFLICT) from exc
    return SupplierResponse.model_validate(_serialize_supplier(supplier))


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> SupplierResponse:
    supplier = await service.repository.get_supplier(supplier_id)
    if supplier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    try:
        updated = await service.update_supplier(supplier, payload)
    except IntegrityError as exc:
        await service.repository.session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_CONFLICT) from exc
    return SupplierResponse.model_validate(_serialize_supplier(updated))


@router.delete("/{supplier_id}")
async def delete_supplier(supplier_id: int, service: CatalogService = Depends(get_catalog_service)) -> Response:
    try:
        await service.delete_supplier(supplier_id)
    except EntityNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CascadeDeleteError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
