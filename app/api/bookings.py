"""
Booking finance endpoints.
Applies form edits, recalculates totals and commission, infers payment status
and stores booking records.
"""

import logging
from dataclasses import asdict
from decimal import Decimal
from typing import Any, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from app.api.deps import Store
from app.schemas.booking import (
    BookingRecord,
    BookingSourceType,
    CabinAllocationRecord,
    CamelModel,
    CharterType,
    PaymentRecord,
    PaymentStatus,
)
from app.services.booking_editor import BookingEditError, apply_edits, initialize_record, recalculate
from app.services.commission_engine import CommissionEngine, get_default_commission_rate
from app.services.pricing_engine import PricingEngine

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================================
# Schemas
# ============================================================================

class FieldEdit(BaseModel):
    field: str
    value: Any = None


class BookingEditRequest(CamelModel):
    record: BookingRecord
    edits: List[FieldEdit] = Field(..., min_length=1)


class PaymentStatusRequest(CamelModel):
    price: Optional[Decimal] = None
    payments: List[PaymentRecord] = Field(default_factory=list)


class PaymentSummaryResponse(CamelModel):
    total_paid: Decimal
    remaining: Decimal
    paid_count: int
    status: PaymentStatus


class ThbBreakdownResponse(CamelModel):
    charter_fee: Optional[Decimal] = None
    extra_charges: Optional[Decimal] = None
    admin_fee: Optional[Decimal] = None
    total: Optional[Decimal] = None


class ProfitSummaryResponse(CamelModel):
    guest_paid: Optional[Decimal] = None
    cost: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    currency: str
    can_compare: bool


class CommissionBaseResponse(CamelModel):
    charter_base: Decimal
    extras_base: Decimal
    total: Decimal


class BookingFinanceResponse(CamelModel):
    """Finance panel figures for a booking."""
    thb_breakdown: ThbBreakdownResponse
    commission_base: CommissionBaseResponse
    profit: Optional[ProfitSummaryResponse] = None


class DefaultCommissionRateResponse(CamelModel):
    rate: Decimal


def run_edits(record, edits: List[FieldEdit]):
    """Apply edits, turning domain errors into 422 responses."""
    try:
        return apply_edits(record, [(edit.field, edit.value) for edit in edits])
    except BookingEditError as e:
        logger.info(f"Rejected edit on {record.LEVEL} {record.id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )


# ============================================================================
# Calculation endpoints
# ============================================================================

@router.post("/edit", response_model=BookingRecord)
async def edit_booking(data: BookingEditRequest):
    """
    Apply one or more form edits to a booking.
    Every dependent figure is recomputed before the record is returned.
    """
    return run_edits(data.record, data.edits)


@router.post("/recalculate", response_model=BookingRecord)
async def recalculate_booking(
    record: BookingRecord,
    apply_default_rate: bool = Query(False, alias="applyDefaultRate"),
):
    """
    Recompute totals and commission. Overridden figures are kept.
    With applyDefaultRate the default commission rate policy runs as well
    (used when a booking is first opened).
    """
    if apply_default_rate:
        return initialize_record(record)
    return recalculate(record)


@router.post("/payment-status", response_model=PaymentSummaryResponse)
async def payment_status(data: PaymentStatusRequest):
    """Total paid, remaining and suggested payment status."""
    summary = PricingEngine.payment_summary(data.payments, data.price)
    return PaymentSummaryResponse(**asdict(summary))


@router.post("/profit", response_model=BookingFinanceResponse)
async def booking_finance(record: BookingRecord):
    """THB breakdown, commission base and, for external boats, charter profit."""
    base = CommissionEngine.compute_commission_base(record)
    profit = None
    if record.is_external_boat:
        profit = ProfitSummaryResponse(**asdict(PricingEngine.charter_profit(record)))
    return BookingFinanceResponse(
        thb_breakdown=ThbBreakdownResponse(**asdict(PricingEngine.thb_breakdown(record))),
        commission_base=CommissionBaseResponse(**asdict(base)),
        profit=profit,
    )


@router.get("/default-commission-rate", response_model=DefaultCommissionRateResponse)
async def default_commission_rate(
    source_type: BookingSourceType = Query("direct", alias="sourceType"),
    charter_type: Optional[CharterType] = Query(None, alias="charterType"),
    level: str = Query("booking", pattern="^(booking|cabin)$"),
):
    return DefaultCommissionRateResponse(
        rate=get_default_commission_rate(source_type, charter_type, level)
    )


# ============================================================================
# Storage endpoints
# ============================================================================

@router.get("/lookups/{category}", response_model=List[str])
async def get_lookups(category: str, store: Store):
    """Pick-list labels, e.g. suggested extra service names."""
    return await store.load_extras_lookups(category)


@router.post("", response_model=BookingRecord, status_code=status.HTTP_201_CREATED)
async def save_booking(record: BookingRecord, store: Store):
    """Recalculate and store a booking."""
    return await store.save_booking(recalculate(record))


@router.get("/{booking_id}", response_model=BookingRecord)
async def get_booking(booking_id: str, store: Store):
    record = await store.get_booking(booking_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found"
        )
    return record


@router.get("/{booking_id}/cabin-allocations", response_model=List[CabinAllocationRecord])
async def list_cabin_allocations(booking_id: str, store: Store):
    return await store.list_cabin_allocations(booking_id)
