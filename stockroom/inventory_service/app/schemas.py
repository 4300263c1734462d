"""Pydantic schemas for the inventory API."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt, field_validator, model_validator

from .stock import StockStatus

NotificationType = Literal["low_stock", "out_of_stock", "other"]


def _strip_required(value: str, field: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        msg = f"{field} must be non-empty"
        raise ValueError(msg)
    return cleaned


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


# Items ------------------------------------------------------------------------------------
class ItemCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    category_id: PositiveInt | None = Field(default=None, alias="categoryId")
    category: str | None = None
    supplier_id: PositiveInt | None = Field(default=None, alias="supplierId")
    supplier: str | None = None
    quantity: NonNegativeInt = 0
    min_quantity: NonNegativeInt = Field(default=0, alias="minQuantity")
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    last_updated: date | None = Field(default=None, alias="lastUpdated")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("sku", "name")
    @classmethod
    def _strip_text(cls, value: str, info) -> str:
        return _strip_required(value, info.field_name)

    @field_validator("category", "supplier")
    @classmethod
    def _strip_reference(cls, value: str | None) -> str | None:
        return _strip_optional(value)


class ItemUpdate(BaseModel):
    sku: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    category_id: PositiveInt | None = Field(default=None, alias="categoryId")
    category: str | None = None
    supplier_id: PositiveInt | None = Field(default=None, alias="supplierId")
    supplier: str | None = None
    quantity: NonNegativeInt | None = None
    min_quantity: NonNegativeInt | None = Field(default=None, alias="minQuantity")
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    last_updated: date | None = Field(default=None, alias="lastUpdated")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("sku", "name", "category", "supplier")
    @classmethod
    def _strip_text(cls, value: str | None) -> str | None:
        return _strip_optional(value)

    @model_validator(mode="after")
    def _require_changes(self) -> ItemUpdate:
        if not self.model_dump(exclude_none=True):
            msg = "No fields to update"
            raise ValueError(msg)
        return self


class ItemResponse(BaseModel):
    id: PositiveInt
    sku: str
    name: str
    category_id: int = Field(alias="categoryId")
    category: str
    supplier_id: int = Field(alias="supplierId")
    supplier: str
    quantity: int
    min_quantity: int = Field(alias="minQuantity")
    price: float
    status: StockStatus
    last_updated: date = Field(alias="lastUpdated")

    model_config = ConfigDict(populate_by_name=True)


class ItemPage(BaseModel):
    data: list[ItemResponse]
    total: int
    page: int
    per_page: int = Field(alias="perPage")

    model_config = ConfigDict(populate_by_name=True)


# Categories -------------------------------------------------------------------------------
class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: str | None = None
    color: str | None = Field(default=None, max_length=32)
    icon: str | None = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return _strip_required(value, "name")


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = None
    color: str | None = Field(default=None, max_length=32)
    icon: str | None = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str | None) -> str | None:
        return _strip_optional(value)

    @model_validator(mode="after")
    def _require_changes(self) -> CategoryUpdate:
        if not self.model_fields_set:
            msg = "No fields to update"
            raise ValueError(msg)
        return self


class CategoryResponse(BaseModel):
    id: PositiveInt
    name: str
    description: str | None
    color: str | None
    icon: str | None
    created_date: date = Field(alias="createdDate")

    model_config = ConfigDict(populate_by_name=True)


# Suppliers --------------------------------------------------------------------------------
class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str | None = Field(default=None, max_length=64)
    location: str | None = Field(default=None, max_length=255)
    description: str | None = None
    status: str = Field(default="active", max_length=32)

    @field_validator("name", "email")
    @classmethod
    def _strip_text(cls, value: str, info) -> str:
        return _strip_required(value, info.field_name)


class SupplierUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    email: str | None = Field(default=None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str | None = Field(default=None, max_length=64)
    location: str | None = Field(default=None, max_length=255)
    description: str | None = None
    status: str | None = Field(default=None, max_length=32)

    @field_validator("name", "email")
    @classmethod
    def _strip_text(cls, value: str | None) -> str | None:
        return _strip_optional(value)

    @model_validator(mode="after")
    def _require_changes(self) -> SupplierUpdate:
        if not self.model_fields_set:
            msg = "No fields to update"
            raise ValueError(msg)
        return self


class SupplierResponse(BaseModel):
    id: PositiveInt
    name: str
    email: str
    phone: str | None
    location: str | None
    description: str | None
    status: str
    created_date: date = Field(alias="createdDate")

    model_config = ConfigDict(populate_by_name=True)


# Notifications ----------------------------------------------------------------------------
class NotificationCreate(BaseModel):
    user_id: PositiveInt | None = Field(default=None, alias="userId")
    type: NotificationType = "other"
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    item_id: PositiveInt | None = Field(default=None, alias="itemId")

    model_config = ConfigDict(populate_by_name=True)


class NotificationResponse(BaseModel):
    id: PositiveInt
    user_id: int = Field(alias="userId")
    type: NotificationType
    title: str
    message: str
    item_id: int | None = Field(alias="itemId")
    item_name: str | None = Field(alias="itemName")
    item_sku: str | None = Field(alias="itemSku")
    is_read: bool = Field(alias="isRead")
    created_at: datetime = Field(alias="createdAt")
    read_at: datetime | None = Field(alias="readAt")

    model_config = ConfigDict(populate_by_name=True)


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    message: str
    updated: int


class GenerateNotificationsResponse(BaseModel):
    message: str
    created: int


# Reports ----------------------------------------------------------------------------------
class ReportCreate(BaseModel):
    period: str = Field(min_length=1, max_length=64)
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    notes: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("period")
    @classmethod
    def _strip_period(cls, value: str) -> str:
        return _strip_required(value, "period")


class ReportResponse(BaseModel):
    id: PositiveInt
    period: str
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    total_items: int = Field(alias="totalItems")
    total_value: float = Field(alias="totalValue")
    low_stock_count: int = Field(alias="lowStockCount")
    out_of_stock_count: int = Field(alias="outOfStockCount")
    notes: str | None
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class ReportPage(BaseModel):
    data: list[ReportResponse]
    total: int
    page: int
    per_page: int = Field(alias="perPage")

    model_config = ConfigDict(populate_by_name=True)
