"""
Invoicing rules for completed work orders.

Work not covered by an active maintenance contract is always billable.
Work covered by a contract is billable only when replacement parts were
consumed: labor is covered, parts are not.
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Set

from cmms.models import Contract, ContractStatus, InvoiceStatus, WorkOrder, WorkOrderStatus

logger = logging.getLogger(__name__)


class InvoicingAction(str, Enum):
    """Which invoicing control applies to a work order."""
    NOT_APPLICABLE = "not_applicable"    # Work order not completed yet
    COVERED_BY_CONTRACT = "covered_by_contract"
    DEPOSIT = "deposit"                  # Invoice must be raised
    MARK_PAID = "mark_paid"              # Invoice deposited, awaiting payment
    SETTLED = "settled"


_NEXT_INVOICE_STATUS = {
    None: InvoiceStatus.DEPOSITED,
    InvoiceStatus.DEPOSITED: InvoiceStatus.PAID,
}


def needs_invoicing(work_order: WorkOrder, has_active_contract_for_site: bool) -> bool:
    """
    Decide whether an invoice must be raised for a work order.

    Only meaningful once the work order is Completed; the status is not
    checked here.
    """
    return not has_active_contract_for_site or work_order.parts_replaced


def active_contract_sites(contracts: Iterable[Contract]) -> Set[str]:
    """Sites (clinic names) having at least one contract with status Active."""
    return {c.clinic for c in contracts if c.status == ContractStatus.ACTIVE}


def has_active_contract_for_site(site: Optional[str], active_sites: Set[str]) -> bool:
    if not site:
        return False
    return site in active_sites


def invoicing_action(work_order: WorkOrder, has_active_contract_for_site: bool) -> InvoicingAction:
    if work_order.status != WorkOrderStatus.COMPLETED:
        return InvoicingAction.NOT_APPLICABLE
    if not needs_invoicing(work_order, has_active_contract_for_site):
        return InvoicingAction.COVERED_BY_CONTRACT
    if work_order.invoice_status is None:
        return InvoicingAction.DEPOSIT
    if work_order.invoice_status == InvoiceStatus.DEPOSITED:
        return InvoicingAction.MARK_PAID
    return InvoicingAction.SETTLED


def next_invoice_status(work_order: WorkOrder) -> InvoiceStatus:
    """
    Next invoice state for a completed work order (None -> Deposited -> Paid).

    Raises ValueError if the work order is not completed or already paid.
    """
    if work_order.status != WorkOrderStatus.COMPLETED:
        raise ValueError(f"Work order {work_order.id} is not completed (status: {work_order.status.value})")

    next_status = _NEXT_INVOICE_STATUS.get(work_order.invoice_status)
    if next_status is None:
        raise ValueError(f"Work order {work_order.id} is already paid")

    logger.info(
        f"Work order {work_order.id} invoice status: "
        f"{work_order.invoice_status.value if work_order.invoice_status else 'None'} -> {next_status.value}"
    )
    return next_status
