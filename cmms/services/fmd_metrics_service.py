"""
FMD (Fiabilité, Maintenabilité, Disponibilité) Metrics Service

Aggregates breakdown events into the three reliability indicators shown on
the performance dashboard:
- MTTR (Mean Time To Repair): average technical repair time per failure
- MTBF (Mean Time Between Failures): average uptime per failure over the window
- Availability: MTBF / (MTBF + MTTR)

The events are supplied by the caller, already restricted to the analysis
window (and optionally to one asset). Nothing here touches the database.
"""

import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List

from pydantic import ValidationError

from cmms.models import BreakdownEvent, FMDMetrics

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24
TWO_PLACES = Decimal('0.01')
_MICROSECONDS_PER_HOUR = Decimal(3600 * 1_000_000)


def _hours(delta: timedelta) -> Decimal:
    """Exact conversion of a timedelta to hours."""
    return Decimal(delta // timedelta(microseconds=1)) / _MICROSECONDS_PER_HOUR


def _round2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def empty_metrics() -> FMDMetrics:
    """
    Metrics for an asset without any completed breakdown.

    Availability is reported as 100% here. This is an optimistic default,
    not a measured value.
    """
    return FMDMetrics(
        mttr=_round2(Decimal(0)),
        mtbf=_round2(Decimal(0)),
        availability=_round2(Decimal(100)),
        total_breakdowns=0,
    )


def is_completed_breakdown(event: BreakdownEvent) -> bool:
    """A real (unplanned) breakdown whose downtime and repair are both closed."""
    return (
        not event.is_planned_stop
        and event.breakdown_start is not None
        and event.breakdown_end is not None
        and event.repair_start is not None
        and event.repair_end is not None
    )


def load_breakdown_events(rows: Iterable[Dict[str, Any]]) -> List[BreakdownEvent]:
    """
    Convert raw storage rows into BreakdownEvent records.

    Rows that cannot be parsed are left out of the result, the same way
    incomplete breakdowns are left out of the aggregation.
    """
    events = []
    for row in rows:
        try:
            events.append(BreakdownEvent.model_validate(dict(row)))
        except ValidationError as e:
            logger.warning(f"Skipping malformed breakdown event {dict(row).get('id')}: {e.error_count()} error(s)")
    return events


def compute_metrics(events: Iterable[BreakdownEvent], period_days: int) -> FMDMetrics:
    """
    Compute MTTR, MTBF and availability for the given breakdown events.

    MTTR = Σ(repair_end - repair_start) / n
    MTBF = max(0, period_days * 24h - Σ(breakdown_end - breakdown_start)) / n
    Availability = MTBF / (MTBF + MTTR) * 100, or 100 when both are 0

    Raises ValueError if period_days is not a positive integer.
    """
    if isinstance(period_days, bool) or not isinstance(period_days, int) or period_days <= 0:
        raise ValueError(f"period_days must be a positive integer, got {period_days!r}")

    completed = [e for e in events if is_completed_breakdown(e)]
    count = len(completed)
    if count == 0:
        return empty_metrics()

    total_repair_hours = sum((_hours(e.repair_end - e.repair_start) for e in completed), Decimal(0))
    total_downtime_hours = sum((_hours(e.breakdown_end - e.breakdown_start) for e in completed), Decimal(0))

    analysis_window_hours = Decimal(period_days * HOURS_PER_DAY)
    total_uptime_hours = analysis_window_hours - total_downtime_hours

    if total_uptime_hours < 0:
        # Overlapping breakdown intervals are not merged, so this can happen.
        logger.warning(
            f"Logged downtime ({total_downtime_hours:.2f}h) exceeds the "
            f"{period_days}-day analysis window; MTBF floored to 0"
        )

    mttr = total_repair_hours / count
    mtbf = total_uptime_hours / count if total_uptime_hours > 0 else Decimal(0)

    if mtbf + mttr == 0:
        availability = Decimal(100)
    else:
        availability = mtbf / (mtbf + mttr) * 100

    return FMDMetrics(
        mttr=_round2(mttr),
        mtbf=_round2(mtbf),
        availability=_round2(availability),
        total_breakdowns=count,
    )
