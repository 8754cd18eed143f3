"""
Cabin allocation endpoints - per-cabin finances of a cabin charter.
"""

import logging
from dataclasses import asdict
from decimal import Decimal
from typing import List

from fastapi import APIRouter, HTTPException, status
from pydantic import Field

from app.api.bookings import FieldEdit, PaymentSummaryResponse, run_edits
from app.api.deps import Ledger, Store
from app.schemas.booking import CabinAllocationRecord, CamelModel, PaymentRecord
from app.services.booking_editor import apply_payments, recalculate
from app.services.cabin_overview import summarize_cabins
from app.services.pricing_engine import PricingEngine

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================================
# Schemas
# ============================================================================

class CabinEditRequest(CamelModel):
    record: CabinAllocationRecord
    edits: List[FieldEdit] = Field(..., min_length=1)


class CabinCharterSummaryResponse(CamelModel):
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


class CabinPaymentsResponse(CamelModel):
    allocation_id: str
    payments: List[PaymentRecord]
    summary: PaymentSummaryResponse


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/edit", response_model=CabinAllocationRecord)
async def edit_cabin_allocation(data: CabinEditRequest):
    """Apply one or more form edits to a cabin allocation."""
    return run_edits(data.record, data.edits)


@router.post("/overview", response_model=CabinCharterSummaryResponse)
async def cabin_overview(allocations: List[CabinAllocationRecord]):
    """Totals across the cabins of one charter."""
    return CabinCharterSummaryResponse(**asdict(summarize_cabins(allocations)))


@router.post("", response_model=CabinAllocationRecord, status_code=status.HTTP_201_CREATED)
async def save_cabin_allocation(record: CabinAllocationRecord, store: Store):
    """Recalculate and store a cabin allocation."""
    if not record.booking_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="bookingId is required"
        )
    return await store.save_cabin_allocation(recalculate(record))


@router.get("/{allocation_id}/payments", response_model=CabinPaymentsResponse)
async def get_cabin_payments(allocation_id: str, ledger: Ledger, store: Store):
    payments = await ledger.get_for(allocation_id)
    allocation = await store.get_cabin_allocation(allocation_id)
    price = allocation.price if allocation else None
    summary = PricingEngine.payment_summary(payments, price)
    return CabinPaymentsResponse(
        allocation_id=allocation_id,
        payments=payments,
        summary=PaymentSummaryResponse(**asdict(summary)),
    )


@router.post("/{allocation_id}/payments", response_model=CabinPaymentsResponse)
async def replace_cabin_payments(
    allocation_id: str,
    payments: List[PaymentRecord],
    ledger: Ledger,
    store: Store,
):
    """
    Replace the payment ledger of a cabin and re-infer its payment status.
    The stored allocation is updated with the new status.
    """
    payments = await ledger.replace_for(allocation_id, payments)

    allocation = await store.get_cabin_allocation(allocation_id)
    price = allocation.price if allocation else None
    if allocation:
        allocation = apply_payments(allocation, payments)
        await store.save_cabin_allocation(allocation)
        logger.info(f"Cabin {allocation_id} payment status: {allocation.payment_status}")

    summary = PricingEngine.payment_summary(payments, price)
    return CabinPaymentsResponse(
        allocation_id=allocation_id,
        payments=payments,
        summary=PaymentSummaryResponse(**asdict(summary)),
    )
