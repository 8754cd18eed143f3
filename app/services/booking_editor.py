"""
Booking editor: applies one form edit to a booking or cabin record.

Every edit is a single synchronous transform: the new input is set, then the
pricing and commission engines recompute every dependent field before the
record is returned. Two dependent fields are never updated in separate passes.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from pydantic import ValidationError

from app.schemas.booking import ChargeableRecord, ExtraItem, PaymentRecord
from app.services.commission_engine import CommissionEngine
from app.services.currency import THB, ZERO, parse_fee, parse_rate
from app.services.extras import (
    extras_total_in_booking_currency,
    new_extra_item,
    replace_item,
    update_extra_item,
)
from app.services.pricing_engine import PricingEngine

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ChargeableRecord)


class BookingEditError(Exception):
    """Raised when an edit cannot be applied to a record."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UnknownEditFieldError(BookingEditError):
    """Raised for a field the record does not have."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Unknown field: {field}")


# Fields the engines own; the form never writes them directly
DERIVED_FIELDS = {
    "price",
    "thb_total_price",
    "agency_commission_thb",
    "commission_rate_default",
}

FEE_FIELDS = {"charter_fee", "admin_fee", "extra_charges", "charter_cost", "charter_cost_currency"}


def _resolve_field(record: ChargeableRecord, field: str) -> str:
    """Accept either the python name or the camelCase alias."""
    fields = type(record).model_fields
    if field in fields:
        return field
    for name, info in fields.items():
        if info.alias == field:
            return name
    raise UnknownEditFieldError(field)


def _set_validated(record: R, **values: Any) -> R:
    """Set fields through model validation so enums and currencies are checked."""
    data = record.model_dump()
    data.update(values)
    try:
        return type(record).model_validate(data)
    except ValidationError as e:
        raise BookingEditError(str(e)) from e


def _derive_extra_charges(record: R) -> R:
    """Booking level: extra charges follow the extras list at the current rate."""
    if record.LEVEL != "booking" or not record.extra_items:
        return record
    return record.model_copy(update={
        "extra_charges": extras_total_in_booking_currency(
            record.extra_items, record.currency, record.fx_rate
        ),
    })


def recalculate(record: R) -> R:
    """Full recompute: extras and totals first, then everything built on them."""
    record = _derive_extra_charges(record)
    record = PricingEngine.recompute_totals(record)
    return CommissionEngine.recalculate_commission(record)


def initialize_record(record: R) -> R:
    """Prepare a new or freshly loaded record: totals, default rate, commission."""
    record = recalculate(record)
    return CommissionEngine.apply_default_commission_rate(record)


# ============================================================================
# Field handlers
# ============================================================================

def _edit_fee(record: R, field: str, value: Any) -> R:
    if field == "charter_cost_currency":
        record = _set_validated(record, charter_cost_currency=value)
    else:
        record = record.model_copy(update={field: parse_fee(value)})
    return recalculate(record)


def _edit_currency(record: R, value: Any) -> R:
    record = _set_validated(record, currency=value)
    if record.currency == THB:
        record = record.model_copy(update={"fx_rate": None, "fx_rate_source": None})
    return recalculate(record)


def apply_fx_rate(record: R, rate: Any, source: str = "manual") -> R:
    """Set the FX rate (fetched or typed in) and recompute everything built on it."""
    rate = parse_rate(rate)
    record = record.model_copy(update={
        "fx_rate": rate,
        "fx_rate_source": source if rate is not None else None,
    })
    return recalculate(record)


def _edit_extra_items(record: R, value: Any) -> R:
    try:
        items = [ExtraItem.model_validate(item) for item in (value or [])]
    except ValidationError as e:
        raise BookingEditError(str(e)) from e
    update = {"extra_items": items}
    if record.LEVEL == "booking" and not items:
        update["extra_charges"] = ZERO
    return recalculate(record.model_copy(update=update))


def _edit_source(record: R, field: str, value: Any) -> R:
    record = _set_validated(record, **{field: value})
    record = CommissionEngine.recalculate_commission(record)
    return CommissionEngine.apply_default_commission_rate(record)


COMMISSION_HANDLERS: Dict[str, Callable[[ChargeableRecord, Any], ChargeableRecord]] = {
    "commission_rate": CommissionEngine.apply_commission_rate,
    "total_commission": CommissionEngine.apply_total_commission_override,
    "commission_deduction": CommissionEngine.apply_deduction,
    "commission_received": CommissionEngine.apply_commission_received_override,
    "agency_commission_rate": CommissionEngine.apply_agency_commission_rate,
    "agency_commission_amount": CommissionEngine.apply_agency_commission_amount,
}


def apply_edit(record: R, field: str, value: Any) -> R:
    """
    Apply one user edit and return the fully recomputed record.

    Raises:
        UnknownEditFieldError: field does not exist on the record
        BookingEditError: derived field, or value rejected by validation
    """
    name = _resolve_field(record, field)
    if name in DERIVED_FIELDS:
        raise BookingEditError(f"{field} is calculated and cannot be edited")

    logger.debug("Applying edit %s=%r to %s %s", name, value, record.LEVEL, record.id)

    if name in FEE_FIELDS:
        return _edit_fee(record, name, value)
    if name == "currency":
        return _edit_currency(record, value)
    if name == "fx_rate":
        return apply_fx_rate(record, value, source="manual")
    if name in COMMISSION_HANDLERS:
        return COMMISSION_HANDLERS[name](record, value)
    if name == "extra_items":
        return _edit_extra_items(record, value)
    if name in ("booking_source_type", "charter_type"):
        return _edit_source(record, name, value)

    # Plain data (notes, guest names, fx_rate_source...), nothing depends on it
    return _set_validated(record, **{name: value})


def apply_edits(record: R, edits: Iterable[tuple]) -> R:
    """Apply several (field, value) edits in order."""
    for field, value in edits:
        record = apply_edit(record, field, value)
    return record


# ============================================================================
# Extras and payments
# ============================================================================

def add_extra_item(record: R) -> R:
    item = new_extra_item(record.currency, record.fx_rate)
    return _edit_extra_items(record, [*record.extra_items, item])


def edit_extra_item(record: R, index: int, field: str, value: Any) -> R:
    items: List[ExtraItem] = record.extra_items
    if not 0 <= index < len(items):
        raise BookingEditError(f"No extra item at position {index}")
    try:
        updated = update_extra_item(items[index], field, value, record.currency, record.fx_rate)
    except ValidationError as e:
        raise BookingEditError(str(e)) from e
    return _edit_extra_items(record, replace_item(items, index, updated))


def remove_extra_item(record: R, index: int) -> R:
    items = [item for i, item in enumerate(record.extra_items) if i != index]
    return _edit_extra_items(record, items)


def apply_payments(record: R, payments: Optional[Iterable[PaymentRecord]]) -> R:
    """Re-infer payment status after the payment ledger changed."""
    status = PricingEngine.classify_payment_status(payments or [], record.price)
    return record.model_copy(update={"payment_status": status})
