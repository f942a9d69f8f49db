import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set

from pydantic import ValidationError

from cmms.database import get_db
from cmms.models import (
    Asset, BreakdownEvent, Contract, ContractStatus, InventoryItem, InventoryKind, InvoiceStatus, WorkOrder
)
from cmms.services.fmd_metrics_service import load_breakdown_events
from cmms.services.invoicing_service import has_active_contract_for_site

logger = logging.getLogger(__name__)

# --- Row Helpers ---

def _work_order_from_row(row) -> Optional[WorkOrder]:
    data = dict(row)
    data['parts_replaced'] = bool(data.get('parts_replaced'))
    try:
        return WorkOrder.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed work order {data.get('id')}: {e.error_count()} error(s)")
        return None


def _contract_from_row(row) -> Optional[Contract]:
    data = dict(row)
    try:
        return Contract.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed contract {data.get('id')}: {e.error_count()} error(s)")
        return None

# -----------------------

def get_breakdown_events(
    period_days: int,
    asset_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> List[BreakdownEvent]:
    """
    Breakdown events that started within the last period_days, newest first.

    Timestamps are stored as ISO 8601 UTC text, so the window bound is
    compared as a string. A naive `now` is taken as UTC.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    start_date = (now - timedelta(days=period_days)).strftime('%Y-%m-%dT%H:%M:%S')

    query = """
        SELECT id, asset_id, breakdown_start, breakdown_end, repair_start, repair_end, is_planned_stop
        FROM breakdown_events
        WHERE breakdown_start >= ?
    """
    params: list = [start_date]
    if asset_id:
        query += " AND asset_id = ?"
        params.append(asset_id)
    query += " ORDER BY breakdown_start DESC"

    db = get_db()
    rows = db.execute(query, params).fetchall()
    return load_breakdown_events(rows)


def get_asset(asset_id: str) -> Optional[Asset]:
    db = get_db()
    row = db.execute(
        "SELECT id, name, category, location, status FROM assets WHERE id = ?",
        (asset_id,)
    ).fetchone()
    if not row:
        return None
    return Asset.model_validate(dict(row))


def get_work_orders() -> List[WorkOrder]:
    db = get_db()
    rows = db.execute("""
        SELECT id, asset_id, title, status, maintenance_type, priority, parts_replaced, invoice_status, due_date
        FROM work_orders
        ORDER BY due_date ASC
    """).fetchall()
    work_orders = [_work_order_from_row(row) for row in rows]
    return [wo for wo in work_orders if wo is not None]


def get_work_order(work_order_id: str) -> Optional[WorkOrder]:
    db = get_db()
    row = db.execute("""
        SELECT id, asset_id, title, status, maintenance_type, priority, parts_replaced, invoice_status, due_date
        FROM work_orders
        WHERE id = ?
    """, (work_order_id,)).fetchone()
    if not row:
        return None
    return _work_order_from_row(row)


def get_contracts() -> List[Contract]:
    db = get_db()
    rows = db.execute("""
        SELECT id, name, provider, clinic, status, start_date, end_date, annual_cost
        FROM contracts
        ORDER BY end_date ASC
    """).fetchall()
    contracts = [_contract_from_row(row) for row in rows]
    return [c for c in contracts if c is not None]


def get_active_contract_sites() -> Set[str]:
    """Clinic names having at least one Active contract."""
    db = get_db()
    rows = db.execute(
        "SELECT DISTINCT clinic FROM contracts WHERE status = ?",
        (ContractStatus.ACTIVE.value,)
    ).fetchall()
    return {row["clinic"] for row in rows}


def has_active_contract_for_work_order(work_order: WorkOrder) -> bool:
    """Resolve work order -> asset -> site -> active contract."""
    if not work_order.asset_id:
        return False
    asset = get_asset(work_order.asset_id)
    if asset is None:
        return False
    return has_active_contract_for_site(asset.location, get_active_contract_sites())


def update_invoice_status(work_order_id: str, status: InvoiceStatus) -> None:
    db = get_db()
    db.execute(
        "UPDATE work_orders SET invoice_status = ? WHERE id = ?",
        (status.value, work_order_id)
    )
    db.commit()
    logger.info(f"Invoice status of work order {work_order_id} set to {status.value}")


def get_inventory_items(kind: Optional[InventoryKind] = None) -> List[InventoryItem]:
    query = """
        SELECT id, kind, name, reference, current_stock, min_stock, unit, location, supplier, purchase_cost
        FROM inventory_items
    """
    params: list = []
    if kind is not None:
        query += " WHERE kind = ?"
        params.append(kind.value)
    query += " ORDER BY name ASC"

    db = get_db()
    rows = db.execute(query, params).fetchall()
    items = []
    for row in rows:
        try:
            items.append(InventoryItem.model_validate(dict(row)))
        except ValidationError as e:
            logger.warning(f"Skipping malformed inventory item {row['id']}: {e.error_count()} error(s)")
    return items
