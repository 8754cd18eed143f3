"""
Booking store: persists booking and cabin finance records.

Records are pydantic value objects; rows are SQLAlchemy models. Overridable
figures are stored as value + `_overridden` flag and rebuilt into
DerivedAmount on load.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingLookup, CabinAllocation
from app.schemas.booking import (
    BookingRecord,
    CabinAllocationRecord,
    ChargeableRecord,
    DerivedAmount,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ChargeableRecord)

# Plain finance columns copied as-is between record and row
FINANCE_COLUMNS = (
    "currency",
    "charter_fee",
    "admin_fee",
    "fx_rate",
    "fx_rate_source",
    "thb_total_price",
    "commission_rate",
    "commission_rate_default",
    "commission_deduction",
    "commission_note",
    "booking_source_type",
    "agent_name",
    "agency_commission_rate",
    "agency_commission_thb",
    "payment_status",
)

# DerivedAmount fields stored as value + flag
DERIVED_COLUMNS = (
    ("total_commission", "total_commission_overridden"),
    ("commission_received", "commission_received_overridden"),
    ("agency_commission_amount", "agency_commission_overridden"),
)

BOOKING_COLUMNS = (
    "booking_number",
    "charter_type",
    "date_from",
    "project_id",
    "external_boat_name",
    "charter_cost",
    "charter_cost_currency",
    "extra_charges",
)

CABIN_COLUMNS = (
    "booking_id",
    "cabin_label",
    "cabin_number",
    "status",
    "guest_names",
    "number_of_guests",
    "sort_order",
)


def _finance_to_row(record: ChargeableRecord, row: Any) -> None:
    for column in FINANCE_COLUMNS:
        setattr(row, column, getattr(record, column))
    for field, flag in DERIVED_COLUMNS:
        derived: DerivedAmount = getattr(record, field)
        setattr(row, field, derived.value)
        setattr(row, flag, derived.is_overridden)
    row.extra_items = [item.model_dump(mode="json") for item in record.extra_items]


def _finance_from_row(row: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {column: getattr(row, column) for column in FINANCE_COLUMNS}
    for field, flag in DERIVED_COLUMNS:
        kind = "overridden" if getattr(row, flag) else "computed"
        data[field] = DerivedAmount(kind=kind, value=getattr(row, field))
    data["extra_items"] = row.extra_items or []
    return data


def booking_to_record(row: Booking) -> BookingRecord:
    data = _finance_from_row(row)
    data.update({column: getattr(row, column) for column in BOOKING_COLUMNS})
    data["price"] = row.total_price
    return BookingRecord.model_validate({"id": row.id, **data})


def cabin_to_record(row: CabinAllocation) -> CabinAllocationRecord:
    data = _finance_from_row(row)
    data.update({column: getattr(row, column) for column in CABIN_COLUMNS})
    data["price"] = row.price
    return CabinAllocationRecord.model_validate({"id": row.id, **data})


class BookingStore:
    """SQLAlchemy-backed persistence for booking and cabin finance records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_or_create(self, model: Type[Any], record_id: Optional[str]) -> Any:
        row = await self.db.get(model, record_id) if record_id else None
        if row is None:
            row = model()
            if record_id:
                row.id = record_id
            self.db.add(row)
        return row

    async def save_booking(self, record: BookingRecord) -> BookingRecord:
        """Insert or update a booking; returns the record with its id."""
        row = await self._get_or_create(Booking, record.id)
        _finance_to_row(record, row)
        for column in BOOKING_COLUMNS:
            setattr(row, column, getattr(record, column))
        row.total_price = record.price
        await self.db.flush()

        logger.info("Booking saved: id=%s total=%s %s", row.id, row.total_price, row.currency)
        return record.model_copy(update={"id": row.id})

    async def save_cabin_allocation(self, record: CabinAllocationRecord) -> CabinAllocationRecord:
        """Insert or update a cabin allocation; returns the record with its id."""
        if not record.booking_id:
            raise ValueError("Cabin allocation requires a booking_id")
        row = await self._get_or_create(CabinAllocation, record.id)
        _finance_to_row(record, row)
        for column in CABIN_COLUMNS:
            setattr(row, column, getattr(record, column))
        row.price = record.price
        await self.db.flush()

        logger.info("Cabin allocation saved: id=%s booking=%s price=%s", row.id, row.booking_id, row.price)
        return record.model_copy(update={"id": row.id})

    async def get_booking(self, booking_id: str) -> Optional[BookingRecord]:
        row = await self.db.get(Booking, booking_id)
        return booking_to_record(row) if row else None

    async def get_cabin_allocation(self, allocation_id: str) -> Optional[CabinAllocationRecord]:
        row = await self.db.get(CabinAllocation, allocation_id)
        return cabin_to_record(row) if row else None

    async def list_cabin_allocations(self, booking_id: str) -> List[CabinAllocationRecord]:
        result = await self.db.execute(
            select(CabinAllocation)
            .where(CabinAllocation.booking_id == booking_id)
            .order_by(CabinAllocation.sort_order, CabinAllocation.cabin_number)
        )
        return [cabin_to_record(row) for row in result.scalars().all()]

    async def load_extras_lookups(self, category: str = "extras") -> List[str]:
        """Active pick-list labels for a category, e.g. extra service names."""
        result = await self.db.execute(
            select(BookingLookup.label)
            .where(BookingLookup.category == category, BookingLookup.is_active.is_(True))
            .order_by(BookingLookup.sort_order, BookingLookup.label)
        )
        return [label for label in result.scalars().all()]
