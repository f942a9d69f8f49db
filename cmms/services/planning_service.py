"""
Planning alerts and work order statistics.

A due date in the past is Urgent, one within the warning window (3 days by
default) is a Warning. Finished work orders (Completed or Cancelled) are
never overdue and raise no alert.
"""

from collections import defaultdict
from datetime import date
from enum import Enum
from typing import Dict, Iterable

from cmms.models import PlanningStats, WorkOrder, WorkOrderStatus

DEFAULT_WARNING_DAYS = 3

CLOSED_STATUSES = {WorkOrderStatus.COMPLETED, WorkOrderStatus.CANCELLED}


class AlertStatus(str, Enum):
    URGENT = "Urgent"
    WARNING = "Warning"
    NORMAL = "Normal"


def alert_status(due: date, today: date, warning_days: int = DEFAULT_WARNING_DAYS) -> AlertStatus:
    days_difference = (due - today).days
    if days_difference < 0:
        return AlertStatus.URGENT
    if days_difference <= warning_days:
        return AlertStatus.WARNING
    return AlertStatus.NORMAL


def is_overdue(work_order: WorkOrder, today: date) -> bool:
    if work_order.status in CLOSED_STATUSES or work_order.due_date is None:
        return False
    return work_order.due_date < today


def summarize_work_orders(
    work_orders: Iterable[WorkOrder],
    today: date,
    warning_days: int = DEFAULT_WARNING_DAYS
) -> PlanningStats:
    """Counts for the planning dashboard."""
    stats = PlanningStats()
    by_type: Dict[str, int] = defaultdict(int)

    for wo in work_orders:
        stats.total += 1
        by_type[wo.maintenance_type.value] += 1

        if wo.status in CLOSED_STATUSES or wo.due_date is None:
            continue

        status = alert_status(wo.due_date, today, warning_days)
        if status == AlertStatus.URGENT:
            stats.urgent += 1
        elif status == AlertStatus.WARNING:
            stats.warning += 1

    stats.by_type = dict(by_type)
    return stats
