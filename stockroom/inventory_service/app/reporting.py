"""Snapshot aggregation for inventory reports."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from .stock import StockStatus, stock_status


class StockLine(Protocol):
    quantity: int
    min_quantity: int
    price: Decimal | float | int


@dataclass(frozen=True, slots=True)
class ReportSnapshot:
    period: str
    start_date: date
    end_date: date
    total_items: int
    total_value: Decimal
    low_stock_count: int
    out_of_stock_count: int
    notes: str | None = None


class ReportAggregator:
    """Sums the current item set into a report labelled with a period.

    The dates are labels only: every item contributes regardless of when it
    last changed, so two reports taken at the same moment for different
    periods carry identical figures.
    """

    def aggregate(
        self,
        items: Iterable[StockLine],
        period: str,
        start_date: date,
        end_date: date,
        notes: str | None = None,
    ) -> ReportSnapshot:
        if not period or not period.strip():
            raise ValueError("period is required")
        if start_date is None or end_date is None:
            raise ValueError("startDate and endDate are required")

        total_items = 0
        total_value = Decimal("0")
        low_stock = 0
        out_of_stock = 0
        for item in items:
            total_items += item.quantity
            total_value += item.quantity * Decimal(str(item.price))
            status = stock_status(item.quantity, item.min_quantity)
            if status is StockStatus.OUT_OF_STOCK:
                out_of_stock += 1
            elif status is StockStatus.LOW_STOCK:
                low_stock += 1

        return ReportSnapshot(
            period=period.strip(),
            start_date=start_date,
            end_date=end_date,
            total_items=total_items,
            total_value=total_value.quantize(Decimal("0.01")),
            low_stock_count=low_stock,
            out_of_stock_count=out_of_stock,
            notes=notes,
        )
