"""
Bike Workflow Pure Functions (``workshop_modules.bikes.helpers``).

Responsibility
--------------
Stateless derivations over bikes and work registrations: warranty
detection and its per-mechanic / per-repair-type statistics, mechanic
points, customer pricing for sales bikes, business-hour arithmetic and the
"needs a call" flag shown on the front-of-house table grid.

Architecture
------------
Layer: **Modules** -- pure helper functions.  No I/O, no session, no clock:
callers pass ``now`` explicitly.

Invariants
----------
- A registration is a warranty case iff the nearest earlier completed
  registration for the same bike and repair type was completed at most
  ``WARRANTY_WINDOW_DAYS`` days before it.  Only that nearest predecessor
  is compared; older ones never count.
- Warranty cases are derived on demand and never stored.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from workshop_modules.bikes.models import (
    WARRANTY_WINDOW_DAYS,
    CompletedRepair,
    MechanicScore,
    MechanicWarrantyStats,
    RepairTypeCount,
    WarrantyCase,
    WorkflowStatus,
)

_DAY = timedelta(days=1)


# =============================================================================
# Warranty
# =============================================================================


def detect_warranty_cases(
    repairs: Iterable[CompletedRepair],
    since: datetime | None = None,
    window_days: int = WARRANTY_WINDOW_DAYS,
) -> list[WarrantyCase]:
    """
    Find repeat repairs inside the warranty window.

    ``repairs`` must contain the full completed history of the bikes of
    interest (including completions before ``since``); ``since`` only limits
    which later registrations are reported.

    Postconditions:
        - Results are ordered by ``completed_at`` descending (newest first).
        - ``days_since_previous`` is the number of whole days elapsed.
    """
    window = timedelta(days=window_days)
    history: dict[tuple[UUID, UUID], list[CompletedRepair]] = defaultdict(list)
    for repair in repairs:
        history[(repair.bike_id, repair.repair_type_id)].append(repair)

    cases: list[WarrantyCase] = []
    for chain in history.values():
        if len(chain) < 2:
            continue
        chain.sort(key=lambda r: (r.completed_at, str(r.registration_id)))
        for i, current in enumerate(chain):
            # Same-instant completions are not earlier than each other.
            nearest = next(
                (r for r in reversed(chain[:i]) if r.completed_at < current.completed_at),
                None,
            )
            if (
                nearest is not None
                and (since is None or current.completed_at >= since)
                and current.completed_at - nearest.completed_at <= window
            ):
                elapsed = current.completed_at - nearest.completed_at
                cases.append(
                    WarrantyCase(
                        registration_id=current.registration_id,
                        bike_id=current.bike_id,
                        repair_type_id=current.repair_type_id,
                        completed_at=current.completed_at,
                        previous_registration_id=nearest.registration_id,
                        previous_completed_at=nearest.completed_at,
                        days_since_previous=elapsed // _DAY,
                        mechanic_id=current.mechanic_id,
                        previous_mechanic_id=nearest.mechanic_id,
                        repair_type_name=current.repair_type_name,
                        frame_number=current.frame_number,
                    )
                )

    cases.sort(key=lambda c: c.completed_at, reverse=True)
    return cases


def warranty_stats_by_mechanic(cases: Iterable[WarrantyCase]) -> list[MechanicWarrantyStats]:
    """
    Count warranty cases per mechanic who performed the repeat repair.

    Cases without a mechanic are skipped.  Sorted by total, descending; each
    mechanic's repair types are sorted by count, descending.
    """
    per_mechanic: dict[UUID, Counter] = defaultdict(Counter)
    for case in cases:
        if case.mechanic_id is None:
            continue
        per_mechanic[case.mechanic_id][case.repair_type_name] += 1

    stats = [
        MechanicWarrantyStats(
            mechanic_id=mechanic_id,
            total_cases=sum(counts.values()),
            repair_types=tuple(
                RepairTypeCount(name, n)
                for name, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
            ),
        )
        for mechanic_id, counts in per_mechanic.items()
    ]
    stats.sort(key=lambda s: (-s.total_cases, str(s.mechanic_id)))
    return stats


def warranty_stats_by_repair_type(cases: Iterable[WarrantyCase]) -> list[RepairTypeCount]:
    counts = Counter(case.repair_type_name for case in cases)
    return [
        RepairTypeCount(name, n)
        for name, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


# =============================================================================
# Scoring and pricing
# =============================================================================


def mechanic_scores(repairs: Iterable[CompletedRepair]) -> list[MechanicScore]:
    """Completed repairs and summed points per mechanic, highest points first."""
    counts: Counter = Counter()
    points: dict[UUID, Decimal] = defaultdict(lambda: Decimal("0"))
    for repair in repairs:
        if repair.mechanic_id is None:
            continue
        counts[repair.mechanic_id] += 1
        points[repair.mechanic_id] += repair.points

    scores = [MechanicScore(m, counts[m], points[m]) for m in counts]
    scores.sort(key=lambda s: (-s.points, -s.repair_count, str(s.mechanic_id)))
    return scores


def customer_price(price: Decimal, is_sales_bike: bool) -> Decimal:
    """Price shown to the customer; repairs on sales bikes are not charged."""
    return Decimal("0") if is_sales_bike else price


# =============================================================================
# Business hours / call attention
# =============================================================================


def business_hours_between(
    start: datetime,
    end: datetime,
    zone: tzinfo,
    opening_hour: int = 9,
    closing_hour: int = 17,
) -> int:
    """
    Count hourly steps from ``start`` to ``end`` that fall on a weekday
    between opening and closing time (shop local time).

    Each step starting at ``start + k hours`` (``k >= 0``) and before ``end``
    counts once when its local hour is in ``[opening_hour, closing_hour)``.
    """
    if end <= start:
        return 0
    hours = 0
    current = start
    step = timedelta(hours=1)
    while current < end:
        local = current.astimezone(zone)
        if local.weekday() < 5 and opening_hour <= local.hour < closing_hour:
            hours += 1
        current += step
    return hours


def needs_call_attention(
    status: WorkflowStatus,
    last_call_at: datetime | None,
    now: datetime,
    zone: tzinfo,
    opening_hour: int = 9,
    closing_hour: int = 17,
    threshold_hours: int = 3,
) -> bool:
    """
    Whether a bike waiting for customer approval should be called now.

    Only evaluated during opening hours.  A bike never called needs a call;
    otherwise it needs one once more than ``threshold_hours`` business hours
    passed since the last call.
    """
    if status != WorkflowStatus.AWAITING_APPROVAL:
        return False
    local_hour = now.astimezone(zone).hour
    if local_hour < opening_hour or local_hour >= closing_hour:
        return False
    if last_call_at is None:
        return True
    elapsed = business_hours_between(last_call_at, now, zone, opening_hour, closing_hour)
    return elapsed > threshold_hours
