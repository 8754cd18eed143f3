"""
Booking, CabinAllocation and BookingPayment models - charter bookings and their finances.
A cabin charter booking is sold per cabin; each cabin carries its own finance fields.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import JSON, Boolean, Date, DECIMAL, Integer, String, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import EntityBase

# JSONB on PostgreSQL, plain JSON elsewhere (tests run on SQLite)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class FinanceColumnsMixin:
    """
    Finance fields shared by bookings and cabin allocations.
    Overridable commission figures store their value plus an `_overridden` flag.
    """

    currency: Mapped[str] = mapped_column(String(3), default="THB")
    charter_fee: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    admin_fee: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)

    # FX - THB per 1 unit of currency
    fx_rate: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(14, 6), nullable=True)
    fx_rate_source: Mapped[Optional[str]] = mapped_column(
        SQLEnum("api", "manual", name="fx_rate_source_enum"),
        nullable=True,
    )
    thb_total_price: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)

    # Booking owner commission (THB)
    commission_rate: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(5, 2), nullable=True)
    commission_rate_default: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(5, 2), nullable=True)
    total_commission: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    total_commission_overridden: Mapped[bool] = mapped_column(Boolean, default=False)
    commission_deduction: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    commission_received: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    commission_received_overridden: Mapped[bool] = mapped_column(Boolean, default=False)
    commission_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    extra_items: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)

    # Source
    booking_source_type: Mapped[str] = mapped_column(
        SQLEnum("direct", "agency", name="booking_source_type_enum"),
        default="direct",
    )
    agent_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Agency commission (agency-sourced only)
    agency_commission_rate: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(5, 2), nullable=True)
    agency_commission_amount: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    agency_commission_overridden: Mapped[bool] = mapped_column(Boolean, default=False)
    agency_commission_thb: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)

    payment_status: Mapped[str] = mapped_column(
        SQLEnum("unpaid", "partial", "paid", name="payment_status_enum"),
        default="unpaid",
    )


class Booking(EntityBase, FinanceColumnsMixin):
    """
    A charter booking. For cabin charters the finances live on the cabins.
    """

    __tablename__ = "bookings"

    booking_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    charter_type: Mapped[Optional[str]] = mapped_column(
        SQLEnum(
            "day_charter",
            "overnight_charter",
            "cabin_charter",
            "bareboat_charter",
            name="charter_type_enum"
        ),
        nullable=True,
    )
    date_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Boat - own fleet (project_id) or chartered in from an external owner
    project_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    external_boat_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    charter_cost: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    charter_cost_currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)

    extra_charges: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    total_price: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)

    # Relationships
    cabin_allocations: Mapped[List["CabinAllocation"]] = relationship(
        "CabinAllocation",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="CabinAllocation.sort_order",
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, number='{self.booking_number}', total={self.total_price} {self.currency})>"


class CabinAllocation(EntityBase, FinanceColumnsMixin):
    """
    One cabin of a cabin charter, sold to its own guests.
    """

    __tablename__ = "cabin_allocations"

    booking_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    cabin_label: Mapped[str] = mapped_column(String(100), default="")
    cabin_number: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(
        SQLEnum("available", "held", "booked", name="cabin_allocation_status_enum"),
        default="available",
    )
    guest_names: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    number_of_guests: Mapped[int] = mapped_column(Integer, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    price: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)

    # Relationships
    booking: Mapped["Booking"] = relationship("Booking", back_populates="cabin_allocations")

    def __repr__(self) -> str:
        return f"<CabinAllocation(id={self.id}, cabin='{self.cabin_label}', status='{self.status}')>"


class BookingPayment(EntityBase):
    """
    A deposit or balance payment, owned by either a booking or a cabin allocation.
    """

    __tablename__ = "booking_payments"

    booking_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    cabin_allocation_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("cabin_allocations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    payment_type: Mapped[str] = mapped_column(
        SQLEnum("deposit", "balance", name="booking_payment_type_enum"),
        default="deposit",
    )
    amount: Mapped[Optional[Decimal]] = mapped_column(DECIMAL(12, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="THB")
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    paid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_account_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # Accounting sync
    receipt_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    synced_to_receipt: Mapped[bool] = mapped_column(Boolean, default=False)
    needs_accounting_action: Mapped[bool] = mapped_column(Boolean, default=False)

    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<BookingPayment(id={self.id}, type='{self.payment_type}', amount={self.amount} {self.currency})>"


class BookingLookup(EntityBase):
    """
    A user-managed pick list entry (extra service names, payment methods...).
    """

    __tablename__ = "booking_lookups"

    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<BookingLookup(category='{self.category}', label='{self.label}')>"
