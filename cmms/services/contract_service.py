"""Contract expiry windows."""

from datetime import date
from typing import Iterable, List

from cmms.models import Contract, ContractStatus

DEFAULT_EXPIRY_WARNING_DAYS = 30


def days_until_expiry(contract: Contract, today: date) -> int:
    """Whole days left before the contract end date (negative once expired)."""
    return (contract.end_date - today).days


def effective_status(
    contract: Contract,
    today: date,
    warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS
) -> ContractStatus:
    """
    Status derived from the end date, never less severe than the stored one.
    """
    days_left = days_until_expiry(contract, today)
    if days_left < 0 or contract.status == ContractStatus.EXPIRED:
        return ContractStatus.EXPIRED
    if days_left <= warning_days or contract.status == ContractStatus.EXPIRING_SOON:
        return ContractStatus.EXPIRING_SOON
    return ContractStatus.ACTIVE


def contracts_expiring_within(
    contracts: Iterable[Contract],
    today: date,
    warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS
) -> List[Contract]:
    """Contracts about to expire, soonest first."""
    expiring = [
        c for c in contracts
        if effective_status(c, today, warning_days) == ContractStatus.EXPIRING_SOON
    ]
    expiring.sort(key=lambda c: c.end_date)
    return expiring
