"""Stock alerts for spare parts and laboratory reagents."""

from typing import Iterable, List, Optional

from cmms.models import InventoryItem, InventoryKind, StockAlertSummary


def is_low_stock(item: InventoryItem) -> bool:
    """An item needs restocking once its stock is at or below the minimum."""
    return item.current_stock <= item.min_stock


def low_stock(items: Iterable[InventoryItem]) -> List[InventoryItem]:
    """Items to reorder, the largest shortfall first."""
    alerts = [item for item in items if is_low_stock(item)]
    alerts.sort(key=lambda item: item.current_stock - item.min_stock)
    return alerts


def stock_alert_summary(
    items: Iterable[InventoryItem],
    kind: Optional[InventoryKind] = None
) -> StockAlertSummary:
    items = [item for item in items if kind is None or item.kind == kind]
    alerts = low_stock(items)
    return StockAlertSummary(total_items=len(items), in_alert=len(alerts), items=alerts)
