"""
Booking finance value objects.

BookingRecord (booking level) and CabinAllocationRecord (one cabin of a cabin
charter) share the same finance shape. They travel as camelCase JSON to and
from the booking form and are transformed field by field by the pricing and
commission engines, which always return a new record.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import ClassVar, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.services.currency import check_currency, parse_amount, parse_fee, parse_percent, parse_rate


PaymentStatus = Literal["unpaid", "partial", "paid"]
BookingSourceType = Literal["direct", "agency"]
CharterType = Literal["day_charter", "overnight_charter", "cabin_charter", "bareboat_charter"]
FxRateSource = Literal["api", "manual"]
ExtraItemType = Literal["internal", "external"]
DerivedKind = Literal["computed", "overridden"]
CabinAllocationStatus = Literal["available", "held", "booked"]
PaymentType = Literal["deposit", "balance"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class DerivedAmount(CamelModel):
    """
    A derived value that the user may override.

    Recalculation only replaces `computed` values. An `overridden` value is
    kept until the user clears it or edits the input that owns it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    kind: DerivedKind = "computed"
    value: Optional[Decimal] = None

    @field_validator("value", mode="before")
    @classmethod
    def parse_value(cls, v):
        return parse_amount(v)

    @classmethod
    def computed(cls, value: Optional[Decimal]) -> "DerivedAmount":
        return cls(kind="computed", value=value)

    @classmethod
    def overridden(cls, value: Optional[Decimal]) -> "DerivedAmount":
        return cls(kind="overridden", value=value)

    @property
    def is_overridden(self) -> bool:
        return self.kind == "overridden"


class ExtraItem(CamelModel):
    """An extra service sold with the charter (massage, diving, transfer...)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    type: ExtraItemType = "internal"
    selling_price: Optional[Decimal] = None
    cost: Optional[Decimal] = None  # external items only
    currency: Optional[str] = None  # None = booking currency
    fx_rate: Optional[Decimal] = None
    commissionable: bool = True
    project_id: Optional[str] = None

    @field_validator("selling_price", "cost", mode="before")
    @classmethod
    def parse_amounts(cls, v):
        return parse_fee(v)

    @field_validator("fx_rate", mode="before")
    @classmethod
    def parse_fx_rate(cls, v):
        return parse_rate(v)

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v):
        v = _blank_to_none(v)
        return v.upper() if isinstance(v, str) else v


class PaymentRecord(CamelModel):
    """A deposit or balance entry in the payment ledger of a booking or cabin."""

    id: Optional[str] = None
    payment_type: PaymentType = "deposit"
    amount: Optional[Decimal] = None
    currency: str = "THB"
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    payment_method: Optional[str] = None
    bank_account_id: Optional[str] = None
    receipt_id: Optional[str] = None
    synced_to_receipt: bool = False
    needs_accounting_action: bool = False
    note: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount_field(cls, v):
        return parse_amount(v)

    @field_validator("due_date", "paid_date", "payment_method", "receipt_id", "bank_account_id", mode="before")
    @classmethod
    def blank_fields(cls, v):
        return _blank_to_none(v)


class ChargeableRecord(CamelModel):
    """Finance fields shared by bookings and cabin allocations."""

    LEVEL: ClassVar[str] = "booking"

    id: Optional[str] = None

    # Fees, in `currency`
    currency: str = "THB"
    charter_fee: Optional[Decimal] = None
    admin_fee: Optional[Decimal] = None
    extra_charges: Optional[Decimal] = None

    # FX: THB per 1 unit of `currency`
    fx_rate: Optional[Decimal] = None
    fx_rate_source: Optional[FxRateSource] = None

    # Derived totals
    price: Optional[Decimal] = None
    thb_total_price: Optional[Decimal] = None

    # Booking owner commission (THB)
    commission_rate: Optional[Decimal] = None
    commission_rate_default: Optional[Decimal] = None
    total_commission: DerivedAmount = Field(default_factory=DerivedAmount)
    commission_deduction: Optional[Decimal] = None
    commission_received: DerivedAmount = Field(default_factory=DerivedAmount)
    commission_note: Optional[str] = None

    extra_items: List[ExtraItem] = Field(default_factory=list)

    # Source
    booking_source_type: BookingSourceType = "direct"
    charter_type: Optional[CharterType] = None
    agent_name: Optional[str] = None

    # Agency commission (agency-sourced only), amount in `currency`
    agency_commission_rate: Optional[Decimal] = None
    agency_commission_amount: DerivedAmount = Field(default_factory=DerivedAmount)
    agency_commission_thb: Optional[Decimal] = None

    payment_status: PaymentStatus = "unpaid"

    @field_validator("charter_fee", "admin_fee", "extra_charges", mode="before")
    @classmethod
    def parse_fees(cls, v):
        return parse_fee(v)

    @field_validator(
        "price", "thb_total_price", "commission_deduction", "agency_commission_thb",
        mode="before",
    )
    @classmethod
    def parse_amounts(cls, v):
        return parse_amount(v)

    @field_validator("commission_rate", "commission_rate_default", "agency_commission_rate", mode="before")
    @classmethod
    def parse_percents(cls, v):
        return parse_percent(v)

    @field_validator("fx_rate", mode="before")
    @classmethod
    def parse_fx_rate(cls, v):
        return parse_rate(v)

    @field_validator("fx_rate_source", "charter_type", mode="before")
    @classmethod
    def blank_fields(cls, v):
        return _blank_to_none(v)

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v):
        return check_currency(v)

    @property
    def is_agency(self) -> bool:
        return self.booking_source_type == "agency"

    @property
    def is_external_boat(self) -> bool:
        return False


class BookingRecord(ChargeableRecord):
    """Booking-level finance record. `price` is the booking total price."""

    LEVEL: ClassVar[str] = "booking"

    price: Optional[Decimal] = Field(default=None, alias="totalPrice")

    booking_number: Optional[str] = None
    date_from: Optional[date] = None

    # Boat: external boats are chartered in from a boat owner at `charter_cost`
    project_id: Optional[str] = None
    external_boat_name: Optional[str] = None
    charter_cost: Optional[Decimal] = None
    charter_cost_currency: Optional[str] = None

    @field_validator("charter_cost", mode="before")
    @classmethod
    def parse_charter_cost(cls, v):
        return parse_fee(v)

    @field_validator("charter_cost_currency", mode="before")
    @classmethod
    def upper_cost_currency(cls, v):
        v = _blank_to_none(v)
        return v.upper() if isinstance(v, str) else v

    @field_validator("date_from", mode="before")
    @classmethod
    def blank_date(cls, v):
        return _blank_to_none(v)

    @property
    def is_external_boat(self) -> bool:
        return bool(self.external_boat_name) and not self.project_id


class CabinAllocationRecord(ChargeableRecord):
    """Per-cabin finance record inside a cabin charter booking."""

    LEVEL: ClassVar[str] = "cabin"

    booking_id: Optional[str] = None
    cabin_label: str = ""
    cabin_number: int = 0
    status: CabinAllocationStatus = "available"
    guest_names: Optional[str] = None
    number_of_guests: int = 0
    sort_order: int = 0
