"""
Cabin charter overview: totals across the cabins of one charter.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from app.schemas.booking import CabinAllocationRecord
from app.services.currency import ZERO, d


@dataclass
class CabinCharterSummary:
    total_cabins: int
    booked_cabins: int
    held_cabins: int
    available_cabins: int
    total_guests: int
    total_price: Decimal
    total_revenue_thb: Decimal
    total_commission: Decimal
    total_commission_received: Decimal
    paid_cabins: int


def summarize_cabins(allocations: Iterable[CabinAllocationRecord]) -> CabinCharterSummary:
    """
    Aggregate the cabins of a charter.

    Revenue uses each cabin's THB total when known and falls back to its price
    in the cabin currency otherwise. Commission totals are THB.
    """
    allocations = list(allocations)

    def count(status: str) -> int:
        return sum(1 for a in allocations if a.status == status)

    return CabinCharterSummary(
        total_cabins=len(allocations),
        booked_cabins=count("booked"),
        held_cabins=count("held"),
        available_cabins=count("available"),
        total_guests=sum(a.number_of_guests or 0 for a in allocations),
        total_price=sum((d(a.price) for a in allocations), ZERO),
        total_revenue_thb=sum(
            (a.thb_total_price if a.thb_total_price is not None else d(a.price) for a in allocations),
            ZERO,
        ),
        total_commission=sum((d(a.total_commission.value) for a in allocations), ZERO),
        total_commission_received=sum((d(a.commission_received.value) for a in allocations), ZERO),
        paid_cabins=sum(1 for a in allocations if a.payment_status == "paid"),
    )
