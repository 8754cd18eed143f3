"""
Pricing Engine - charter fee totals, THB equivalents and payment status.

Rules:
- Cabin allocations: price = charter fee + admin fee
- Bookings: total price = charter fee + extra charges
- THB total = price × FX rate (THB per 1 unit), or price when already THB;
  left unset when a foreign price has no rate
- Payment status is inferred from paid ledger entries against the price

All functions are pure: records come in, new records go out.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, TypeVar

from app.schemas.booking import BookingRecord, ChargeableRecord, PaymentRecord, PaymentStatus
from app.services.currency import THB, ZERO, d, has_rate, normalize_to_thb, round2

R = TypeVar("R", bound=ChargeableRecord)


@dataclass
class PaymentSummary:
    """Paid/remaining figures shown under the payment ledger."""
    total_paid: Decimal
    remaining: Decimal
    paid_count: int
    status: PaymentStatus


@dataclass
class ThbBreakdown:
    """THB equivalent of each fee. None when no rate is available."""
    charter_fee: Optional[Decimal]
    extra_charges: Optional[Decimal]
    admin_fee: Optional[Decimal]
    total: Optional[Decimal]


@dataclass
class ProfitSummary:
    """
    Guest paid vs boat-owner cost for an external boat.

    When the two sides cannot be brought to the same currency, can_compare is
    False and profit is None.
    """
    guest_paid: Optional[Decimal]
    cost: Optional[Decimal]
    profit: Optional[Decimal]
    currency: str
    can_compare: bool


class PricingEngine:
    """Keeps price and THB total consistent and classifies payments."""

    @staticmethod
    def compute_price(record: ChargeableRecord) -> Decimal:
        """Sum of the fee fields that make up the price at this level."""
        if record.LEVEL == "cabin":
            return d(record.charter_fee) + d(record.admin_fee)
        return d(record.charter_fee) + d(record.extra_charges)

    @staticmethod
    def convert_to_thb(
        amount: Optional[Decimal],
        currency: str,
        fx_rate: Optional[Decimal],
    ) -> Optional[Decimal]:
        """
        Convert an amount to THB.

        Returns the amount unchanged for THB, amount × fx_rate for a positive
        rate, and None otherwise so callers never display a guessed value.
        """
        return normalize_to_thb(amount, currency, fx_rate)

    @classmethod
    def compute_thb_total(cls, record: ChargeableRecord, price: Decimal) -> Optional[Decimal]:
        thb = cls.convert_to_thb(price, record.currency, record.fx_rate)
        return round2(thb) if thb is not None else None

    @classmethod
    def recompute_totals(cls, record: R) -> R:
        """Recompute price and THB total price. Idempotent."""
        price = cls.compute_price(record)
        return record.model_copy(update={
            "price": price,
            "thb_total_price": cls.compute_thb_total(record, price),
        })

    @staticmethod
    def total_paid(payments: Iterable[PaymentRecord]) -> Decimal:
        """Sum of entries that have a paid date and a positive amount."""
        return sum(
            (p.amount for p in payments if p.paid_date and p.amount is not None and p.amount > 0),
            ZERO,
        )

    @classmethod
    def classify_payment_status(
        cls,
        payments: Iterable[PaymentRecord],
        price: Optional[Decimal],
    ) -> PaymentStatus:
        """
        unpaid  → nothing paid
        paid    → paid >= price, only when price > 0
        partial → anything else

        A zero-price record with stray payments is partial, never paid.
        """
        paid = cls.total_paid(payments)
        price = d(price)
        if paid <= 0:
            return "unpaid"
        if price > 0 and paid >= price:
            return "paid"
        return "partial"

    @classmethod
    def payment_summary(
        cls,
        payments: Iterable[PaymentRecord],
        price: Optional[Decimal],
    ) -> PaymentSummary:
        payments = list(payments)
        paid = cls.total_paid(payments)
        remaining = max(d(price) - paid, ZERO)
        return PaymentSummary(
            total_paid=paid,
            remaining=remaining,
            paid_count=sum(1 for p in payments if p.paid_date and p.amount and p.amount > 0),
            status=cls.classify_payment_status(payments, price),
        )

    @classmethod
    def thb_breakdown(cls, record: ChargeableRecord) -> ThbBreakdown:
        """THB equivalents of charter fee, extra charges, admin fee and their sum."""
        def to_thb(amount: Optional[Decimal]) -> Optional[Decimal]:
            thb = cls.convert_to_thb(d(amount), record.currency, record.fx_rate)
            return round2(thb) if thb is not None else None

        total = d(record.charter_fee) + d(record.extra_charges) + d(record.admin_fee)
        return ThbBreakdown(
            charter_fee=to_thb(record.charter_fee),
            extra_charges=to_thb(record.extra_charges),
            admin_fee=to_thb(record.admin_fee),
            total=to_thb(total),
        )

    @staticmethod
    def charter_profit(record: BookingRecord) -> ProfitSummary:
        """
        Profit of an external-boat charter: (charter fee + extra charges) - charter cost.

        Same currency on both sides → computed in that currency.
        Different currencies → both sides normalized to THB; a cost in a
        foreign currency has no rate of its own, so it cannot be compared.
        """
        guest_paid = d(record.charter_fee) + d(record.extra_charges)
        cost = d(record.charter_cost)
        booking_currency = record.currency
        cost_currency = record.charter_cost_currency or booking_currency

        if booking_currency == cost_currency:
            return ProfitSummary(
                guest_paid=guest_paid,
                cost=cost,
                profit=guest_paid - cost,
                currency=booking_currency,
                can_compare=True,
            )

        can_compare = True
        if booking_currency == THB:
            guest_paid_thb = guest_paid
        elif has_rate(record.fx_rate):
            guest_paid_thb = round2(guest_paid * record.fx_rate)
        else:
            guest_paid_thb = None
            can_compare = False

        if cost_currency == THB:
            cost_thb = cost
        else:
            cost_thb = None
            can_compare = False

        return ProfitSummary(
            guest_paid=guest_paid_thb,
            cost=cost_thb,
            profit=guest_paid_thb - cost_thb if can_compare else None,
            currency=THB,
            can_compare=can_compare,
        )
