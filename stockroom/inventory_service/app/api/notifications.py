"""HTTP routes for stock and manual notifications."""

from __future__ import annotations

from datetime import timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError

from stockroom.common import ServiceSettings

from ..dependencies import get_notification_service, get_repository, get_service_settings
from ..repository import InventoryRepository
from ..schemas import (
    GenerateNotificationsResponse,
    MarkAllReadResponse,
    NotificationCreate,
    NotificationResponse,
    UnreadCountResponse,
)
from ..services import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _serialize_datetime(value):
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _serialize_notification(notification) -> dict[str, object]:
    item = notification.item
    return {
        "id": notification.id,
        "userId": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "itemId": notification.item_id,
        "itemName": item.name if item is not None else None,
        "itemSku": item.sku if item is not None else None,
        "isRead": notification.is_read,
        "createdAt": _serialize_datetime(notification.created_at),
        "readAt": _serialize_datetime(notification.read_at),
    }


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    user_id: int | None = Query(default=None, alias="userId", ge=1),
    service: NotificationService = Depends(get_notification_service),
    settings: ServiceSettings = Depends(get_service_settings),
) -> list[NotificationResponse]:
    notifications = await service.repository.list_notifications(
        user_id=service.resolve_user(user_id),
        limit=settings.notification_list_limit,
    )
    return [NotificationResponse.model_validate(_serialize_notification(n)) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_id: int | None = Query(default=None, alias="userId", ge=1),
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCountResponse:
    count = await service.repository.count_unread(service.resolve_user(user_id))
    return UnreadCountResponse(count=count)


@router.put("/mark-all-read", response_model=MarkAllReadResponse)
async def mark_all_read(
    user_id: int | None = Query(default=None, alias="userId", ge=1),
    service: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    updated = await service.repository.mark_all_read(service.resolve_user(user_id))
    return MarkAllReadResponse(message="All notifications marked as read", updated=updated)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    notification = await service.repository.get_notification(notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    updated = await service.repository.mark_read(notification)
    return NotificationResponse.model_validate(_serialize_notification(updated))


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    try:
        notification = await service.create_notification(payload)
    except IntegrityError as exc:
        await service.repository.session.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Referenced item does not exist") from exc
    return NotificationResponse.model_validate(_serialize_notification(notification))


@router.post("/generate", response_model=GenerateNotificationsResponse)
async def generate_stock_notifications(
    user_id: int | None = Query(default=None, alias="userId", ge=1),
    service: NotificationService = Depends(get_notification_service),
    inventory: InventoryRepository = Depends(get_repository),
) -> GenerateNotificationsResponse:
    items = await inventory.list_items_needing_notification()
    created = await service.generate_stock_notifications(items, user_id=user_id)
    return GenerateNotificationsResponse(message=f"Generated {created} new notifications", created=created)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
) -> Response:
    notification = await service.repository.get_notification(notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    await service.repository.delete_notification(notification)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
