"""Decide whether an item's stock level warrants a new notification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Literal, Protocol

LOW_STOCK: Final = "low_stock"
OUT_OF_STOCK: Final = "out_of_stock"
OTHER: Final = "other"
NOTIFICATION_TYPES: Final = (LOW_STOCK, OUT_OF_STOCK, OTHER)
STOCK_NOTIFICATION_TYPES: Final = (LOW_STOCK, OUT_OF_STOCK)

_LOGGER = logging.getLogger(__name__)


class StockSnapshot(Protocol):
    id: int
    sku: str
    name: str
    quantity: int
    min_quantity: int


class OpenNotificationLookup(Protocol):
    async def find_open_stock_notification(self, item_id: int) -> object | None: ...


DecisionReason = Literal["qualifies", "not_needed", "duplicate", "lookup_failed"]


@dataclass(frozen=True, slots=True)
class NotificationDecision:
    action: Literal["create", "noop"]
    reason: DecisionReason
    item_id: int
    type: str | None = None
    title: str | None = None
    message: str | None = None

    @property
    def should_create(self) -> bool:
        return self.action == "create"

    @classmethod
    def noop(cls, item_id: int, reason: DecisionReason) -> NotificationDecision:
        return cls(action="noop", reason=reason, item_id=item_id)


def needs_notification(quantity: int, min_quantity: int) -> bool:
    """Return True when stock is empty or strictly below the threshold.

    An item sitting exactly at ``min_quantity`` is reported as low stock by
    ``stock_status`` but does not qualify here.
    """

    return quantity == 0 or quantity < min_quantity


def render_stock_notification(item: StockSnapshot) -> tuple[str, str, str]:
    """Return ``(type, title, message)`` for an item that needs attention."""

    if item.quantity == 0:
        return (
            OUT_OF_STOCK,
            f"{item.name} is out of stock",
            f'Item "{item.name}" (SKU: {item.sku}) is currently out of stock. Please reorder immediately.',
        )
    return (
        LOW_STOCK,
        f"{item.name} is running low",
        f'Item "{item.name}" (SKU: {item.sku}) has only {item.quantity} units left '
        f"(minimum: {item.min_quantity}). Consider restocking soon.",
    )


class NotificationPolicy:
    """Turns an item snapshot into a create/no-op decision, suppressing duplicates."""

    def __init__(self, lookup: OpenNotificationLookup) -> None:
        self.lookup = lookup

    async def evaluate(self, item: StockSnapshot) -> NotificationDecision:
        if not needs_notification(item.quantity, item.min_quantity):
            return NotificationDecision.noop(item.id, "not_needed")

        try:
            existing = await self.lookup.find_open_stock_notification(item.id)
        except Exception:
            _LOGGER.exception("Open notification lookup failed for item %s", item.id)
            return NotificationDecision.noop(item.id, "lookup_failed")

        if existing is not None:
            return NotificationDecision.noop(item.id, "duplicate")

        notification_type, title, message = render_stock_notification(item)
        return NotificationDecision(
            action="create",
            reason="qualifies",
            item_id=item.id,
            type=notification_type,
            title=title,
            message=message,
        )
