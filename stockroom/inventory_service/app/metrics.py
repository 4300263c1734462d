"""Prometheus metrics for the inventory API."""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter

# Stock notifications ----------------------------------------------------------------------
STOCK_NOTIFICATIONS_CREATED_TOTAL: Final = Counter(
    "inventory_stock_notifications_created_total",
    "Stock notifications created by the notification policy.",
    labelnames=("type",),
)

STOCK_NOTIFICATIONS_SUPPRESSED_TOTAL: Final = Counter(
    "inventory_stock_notifications_suppressed_total",
    "Stock notifications skipped because an unread one already exists for the item.",
)

STOCK_NOTIFICATION_FAILURES_TOTAL: Final = Counter(
    "inventory_stock_notification_failures_total",
    "Notification side effects that failed without affecting the item write.",
    labelnames=("stage",),
)

# Reports ----------------------------------------------------------------------------------
REPORTS_CREATED_TOTAL: Final = Counter(
    "inventory_reports_created_total",
    "Inventory snapshot reports persisted.",
)

# Cascade deletes --------------------------------------------------------------------------
CASCADE_DELETES_TOTAL: Final = Counter(
    "inventory_cascade_deletes_total",
    "Category/supplier deletes including the items removed with them.",
    labelnames=("entity", "outcome"),
)