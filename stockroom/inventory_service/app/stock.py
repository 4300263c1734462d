"""Stock status derivation shared by listing queries and in-process callers."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import ColumnElement, case, literal

from .models import Item


class StockStatus(str, Enum):
    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"


def stock_status(quantity: int, min_quantity: int) -> StockStatus:
    """Classify an item from its on-hand quantity and reorder threshold.

    Zero and negative quantities are both out of stock. Anything above zero
    up to and including ``min_quantity`` is low stock.
    """

    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= min_quantity:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def stock_status_expression(
    quantity: ColumnElement[int] | None = None,
    min_quantity: ColumnElement[int] | None = None,
) -> ColumnElement[str]:
    """SQL ``CASE`` equivalent of :func:`stock_status`; defaults to the ``items`` columns."""

    quantity_col = Item.quantity if quantity is None else quantity
    min_quantity_col = Item.min_quantity if min_quantity is None else min_quantity
    return case(
        (quantity_col <= 0, literal(StockStatus.OUT_OF_STOCK.value)),
        (quantity_col <= min_quantity_col, literal(StockStatus.LOW_STOCK.value)),
        else_=literal(StockStatus.IN_STOCK.value),
    )
