"""
Extras ledger: ancillary services sold with a booking or a cabin.

Each extra carries its own selling price, optional cost (external suppliers
only), currency and FX rate. Commission is paid on the profit of the
commissionable extras, normalized to THB.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from app.schemas.booking import ExtraItem
from app.services.currency import THB, ZERO, d, has_rate, round2

logger = logging.getLogger(__name__)


def item_currency(item: ExtraItem, booking_currency: str) -> str:
    return item.currency or booking_currency


def extra_item_profit(item: ExtraItem) -> Decimal:
    """Selling price minus cost. Internal items have no cost."""
    cost = d(item.cost) if item.type == "external" else ZERO
    return d(item.selling_price) - cost


def extra_item_profit_thb(
    item: ExtraItem,
    booking_currency: str,
    booking_fx_rate: Optional[Decimal],
) -> Decimal:
    """
    Profit of one extra in THB.

    Rate priority:
    1. Item in THB → no conversion
    2. Item has its own FX rate
    3. Item in the booking currency and the booking has an FX rate
    4. Otherwise the profit is taken unconverted
    """
    profit = extra_item_profit(item)
    currency = item_currency(item, booking_currency)

    if currency == THB:
        return profit
    if has_rate(item.fx_rate):
        return profit * item.fx_rate
    if currency == booking_currency and has_rate(booking_fx_rate):
        return profit * booking_fx_rate

    logger.debug("No FX rate for extra %r in %s, profit taken unconverted", item.name, currency)
    return profit


def commissionable_extras_base(
    items: Iterable[ExtraItem],
    booking_currency: str,
    booking_fx_rate: Optional[Decimal],
) -> Decimal:
    """THB profit of all extras that are not excluded from commission."""
    return sum(
        (
            extra_item_profit_thb(item, booking_currency, booking_fx_rate)
            for item in items
            if item.commissionable is not False
        ),
        ZERO,
    )


def extras_total_in_booking_currency(
    items: Iterable[ExtraItem],
    booking_currency: str,
    booking_fx_rate: Optional[Decimal],
) -> Decimal:
    """
    Sum of selling prices expressed in the booking currency.

    Foreign items go item → THB → booking currency. Without a booking rate a
    foreign selling price is added as is.
    """
    total = ZERO
    for item in items:
        selling = d(item.selling_price)
        currency = item_currency(item, booking_currency)
        if currency == booking_currency:
            total += selling
            continue
        item_thb = selling * (item.fx_rate if has_rate(item.fx_rate) else Decimal("1"))
        if booking_currency == THB:
            total += item_thb
        elif has_rate(booking_fx_rate):
            total += item_thb / booking_fx_rate
        else:
            total += selling
    return round2(total)


def new_extra_item(booking_currency: str, booking_fx_rate: Optional[Decimal]) -> ExtraItem:
    """Blank internal, commissionable extra in the booking currency."""
    return ExtraItem(
        name="",
        type="internal",
        selling_price=ZERO,
        currency=booking_currency,
        fx_rate=Decimal("1") if booking_currency == THB else booking_fx_rate,
        commissionable=True,
    )


def update_extra_item(
    item: ExtraItem,
    field: str,
    value: Any,
    booking_currency: str,
    booking_fx_rate: Optional[Decimal],
) -> ExtraItem:
    """
    Set one field of an extra, applying the editor rules:
    switching to internal clears the cost, and changing the currency resets
    the item FX rate (THB → 1, booking currency → booking rate, else unset).
    """
    data = item.model_dump()
    data[field] = value
    updated = ExtraItem.model_validate(data)

    if field == "type" and updated.type == "internal":
        updated = updated.model_copy(update={"cost": None})

    if field == "currency":
        if updated.currency == THB:
            fx_rate = Decimal("1")
        elif updated.currency == booking_currency:
            fx_rate = booking_fx_rate
        else:
            fx_rate = None
        updated = updated.model_copy(update={"fx_rate": fx_rate})

    return updated


def replace_item(items: List[ExtraItem], index: int, item: ExtraItem) -> List[ExtraItem]:
    return [item if i == index else existing for i, existing in enumerate(items)]
