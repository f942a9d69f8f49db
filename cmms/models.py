from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class WorkOrderStatus(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class MaintenanceType(str, Enum):
    PREVENTIVE = "Preventive"
    CORRECTIVE = "Corrective"
    PALLIATIVE = "Palliative"
    AMELIORATIVE = "Ameliorative"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class InvoiceStatus(str, Enum):
    """Invoice state of a completed work order. ``None`` means not invoiced yet."""
    DEPOSITED = "Deposited"
    PAID = "Paid"


class ContractStatus(str, Enum):
    ACTIVE = "Active"
    EXPIRING_SOON = "ExpiringSoon"
    EXPIRED = "Expired"


class InventoryKind(str, Enum):
    PART = "part"
    REAGENT = "reagent"


# --- Records (read-only snapshots fetched per computation) ---

class Asset(BaseModel):
    id: str
    name: str
    category: Optional[str] = None
    location: Optional[str] = None  # Site / clinic name
    status: Optional[str] = None


class BreakdownEvent(BaseModel):
    """One failure episode of an asset."""
    id: str
    asset_id: str
    breakdown_start: datetime
    breakdown_end: Optional[datetime] = None
    repair_start: Optional[datetime] = None
    repair_end: Optional[datetime] = None
    is_planned_stop: bool = False

    @field_validator('breakdown_start', 'breakdown_end', 'repair_start', 'repair_end')
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored timestamps without an offset are UTC
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class WorkOrder(BaseModel):
    id: str
    asset_id: Optional[str] = None
    title: str = ""
    status: WorkOrderStatus = WorkOrderStatus.OPEN
    maintenance_type: MaintenanceType = MaintenanceType.CORRECTIVE
    priority: Priority = Priority.MEDIUM
    parts_replaced: bool = False
    invoice_status: Optional[InvoiceStatus] = None
    due_date: Optional[date] = None


class Contract(BaseModel):
    id: str
    name: str = ""
    provider: Optional[str] = None
    clinic: str
    status: ContractStatus
    start_date: date
    end_date: date
    annual_cost: Optional[float] = None


class InventoryItem(BaseModel):
    """Spare part or laboratory reagent held in stock."""
    id: str
    kind: InventoryKind = InventoryKind.PART
    name: str
    reference: Optional[str] = None
    current_stock: int = 0
    min_stock: int = 0
    unit: Optional[str] = None
    location: Optional[str] = None
    supplier: Optional[str] = None
    purchase_cost: Optional[float] = None


# --- Computation results ---

class FMDMetrics(BaseModel):
    """Reliability metrics over an analysis window. Hours and percent, two decimals."""
    mttr: Decimal
    mtbf: Decimal
    availability: Decimal
    total_breakdowns: int


class PlanningStats(BaseModel):
    total: int = 0
    urgent: int = 0
    warning: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)


class StockAlertSummary(BaseModel):
    total_items: int = 0
    in_alert: int = 0
    items: List[InventoryItem] = Field(default_factory=list)
