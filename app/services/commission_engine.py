"""
Commission Engine - booking owner and agency commissions.

All commission figures are in THB:

    charter base  = charter fee (THB) - agency commission (THB, agency source only)
                    external boats: (charter fee - charter cost) in THB
    extras base   = Σ (selling price - cost) of commissionable extras, in THB
    total         = round2((charter base + extras base) × rate / 100)
    received      = round2(total - deduction)

Every public operation takes the current record and one user input and
returns a record where every dependent field has been recomputed in the same
transform. Derived values the user has overridden are never replaced by a
passive recalculation.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, TypeVar

from app.schemas.booking import (
    BookingSourceType,
    ChargeableRecord,
    CharterType,
    DerivedAmount,
)
from app.services.currency import (
    HUNDRED,
    THB,
    ZERO,
    d,
    has_rate,
    normalize_to_thb,
    parse_amount,
    parse_percent,
    round2,
)
from app.services.extras import commissionable_extras_base

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ChargeableRecord)

DEFAULT_RATE_DIRECT = Decimal("2")
DEFAULT_RATE_AGENCY = Decimal("1")
DEFAULT_RATE_BAREBOAT = Decimal("4")


@dataclass
class CommissionBase:
    """THB figures the commission rate is applied to."""
    charter_base: Decimal
    extras_base: Decimal
    total: Decimal


def get_default_commission_rate(
    source_type: Optional[BookingSourceType],
    charter_type: Optional[CharterType] = None,
    level: str = "booking",
) -> Decimal:
    """
    Default booking owner commission rate (%).

    Bareboat charter (booking level) → 4
    Agency source                    → 1
    Direct                           → 2
    """
    if level == "booking" and charter_type == "bareboat_charter":
        return DEFAULT_RATE_BAREBOAT
    if source_type == "agency":
        return DEFAULT_RATE_AGENCY
    return DEFAULT_RATE_DIRECT


class CommissionEngine:
    """Derives commission fields from the THB commission base."""

    # ================================================================
    # Base
    # ================================================================

    @staticmethod
    def _charter_base(record: ChargeableRecord) -> Decimal:
        currency = record.currency
        fx_rate = record.fx_rate

        if not record.is_external_boat:
            base = normalize_to_thb(record.charter_fee, currency, fx_rate) or ZERO
        else:
            cost_currency = record.charter_cost_currency or currency
            if cost_currency == currency:
                profit = d(record.charter_fee) - d(record.charter_cost)
                base = normalize_to_thb(profit, currency, fx_rate) or ZERO
            else:
                fee_thb = normalize_to_thb(record.charter_fee, currency, fx_rate) or ZERO
                # A foreign-currency cost has no rate of its own
                cost_thb = d(record.charter_cost) if cost_currency == THB else ZERO
                base = fee_thb - cost_thb

        if record.is_agency:
            base -= d(record.agency_commission_thb)
        return round2(base)

    @classmethod
    def compute_commission_base(cls, record: ChargeableRecord) -> CommissionBase:
        charter_base = cls._charter_base(record)
        extras_base = commissionable_extras_base(
            record.extra_items, record.currency, record.fx_rate
        )
        return CommissionBase(
            charter_base=charter_base,
            extras_base=extras_base,
            total=charter_base + extras_base,
        )

    @classmethod
    def auto_total_commission(cls, record: ChargeableRecord) -> Decimal:
        """Total commission as derived from base and rate, ignoring overrides."""
        base = cls.compute_commission_base(record)
        return round2(base.total * d(record.commission_rate) / HUNDRED)

    @staticmethod
    def _received(total: Optional[Decimal], deduction: Optional[Decimal]) -> Decimal:
        return round2(d(total) - d(deduction))

    # ================================================================
    # Booking owner commission
    # ================================================================

    @classmethod
    def apply_commission_rate(cls, record: R, rate: Any) -> R:
        """Set the rate and re-derive total and received from it."""
        rate = parse_percent(rate)
        updated = record.model_copy(update={"commission_rate": rate})
        total = cls.auto_total_commission(updated)
        return updated.model_copy(update={
            "total_commission": DerivedAmount.computed(total),
            "commission_received": DerivedAmount.computed(
                cls._received(total, record.commission_deduction)
            ),
        })

    @classmethod
    def apply_total_commission_override(cls, record: R, total: Any) -> R:
        """
        Set the total commission by hand. Clearing the field (None or empty)
        returns it to the rate-derived value.
        """
        total = parse_amount(total)
        if total is None:
            derived = DerivedAmount.computed(cls.auto_total_commission(record))
        else:
            derived = DerivedAmount.overridden(total)
        return record.model_copy(update={
            "total_commission": derived,
            "commission_received": DerivedAmount.computed(
                cls._received(derived.value, record.commission_deduction)
            ),
        })

    @classmethod
    def apply_deduction(cls, record: R, deduction: Any) -> R:
        deduction = parse_amount(deduction)
        total = record.total_commission.value
        if total is None:
            total = cls.auto_total_commission(record)
        return record.model_copy(update={
            "commission_deduction": deduction,
            "commission_received": DerivedAmount.computed(cls._received(total, deduction)),
        })

    @classmethod
    def apply_commission_received_override(cls, record: R, received: Any) -> R:
        """Set commission received by hand; clearing it re-derives total - deduction."""
        received = parse_amount(received)
        if received is not None:
            return record.model_copy(update={
                "commission_received": DerivedAmount.overridden(received),
            })
        total = record.total_commission.value
        if total is None:
            total = cls.auto_total_commission(record)
        return record.model_copy(update={
            "commission_received": DerivedAmount.computed(
                cls._received(total, record.commission_deduction)
            ),
        })

    @classmethod
    def clear_total_commission_override(cls, record: R) -> R:
        return cls.apply_total_commission_override(record, None)

    @classmethod
    def clear_commission_received_override(cls, record: R) -> R:
        return cls.apply_commission_received_override(record, None)

    # ================================================================
    # Agency commission
    # ================================================================

    @staticmethod
    def _agency_thb(amount: Optional[Decimal], currency: str, fx_rate: Optional[Decimal]) -> Optional[Decimal]:
        if not amount:
            return None
        if currency == THB:
            return amount
        if has_rate(fx_rate):
            return round2(amount * fx_rate)
        return None

    @classmethod
    def refresh_agency_commission(cls, record: R) -> R:
        """
        Re-derive the agency commission amount from rate × charter fee (unless
        overridden) and its THB equivalent from the current FX rate.
        """
        amount = record.agency_commission_amount
        if not amount.is_overridden:
            rate = record.agency_commission_rate
            value = round2(d(record.charter_fee) * rate / HUNDRED) if rate else None
            amount = DerivedAmount.computed(value)
        return record.model_copy(update={
            "agency_commission_amount": amount,
            "agency_commission_thb": cls._agency_thb(amount.value, record.currency, record.fx_rate),
        })

    @classmethod
    def apply_agency_commission_rate(cls, record: R, rate: Any) -> R:
        """
        Set the agency rate, derive amount and THB amount, then recompute the
        owner commission against the reduced charter base, all in one pass.
        """
        rate = parse_percent(rate)
        updated = record.model_copy(update={
            "agency_commission_rate": rate,
            "agency_commission_amount": DerivedAmount.computed(None),
        })
        return cls.recalculate_commission(updated)

    @classmethod
    def apply_agency_commission_amount(cls, record: R, amount: Any) -> R:
        """
        Set the agency amount directly. The rate is left as entered and is
        informational only. Clearing the amount falls back to rate × fee.
        """
        amount = parse_amount(amount)
        derived = DerivedAmount.computed(None) if amount is None else DerivedAmount.overridden(amount)
        updated = record.model_copy(update={"agency_commission_amount": derived})
        return cls.recalculate_commission(updated)

    # ================================================================
    # Recalculation
    # ================================================================

    @classmethod
    def recalculate_commission(cls, record: R) -> R:
        """
        Recompute everything that depends on the commission base after an
        input changed (fee, FX rate, extras, agency commission).
        Overridden totals are kept.
        """
        record = cls.refresh_agency_commission(record)

        total = record.total_commission
        if not total.is_overridden:
            total = DerivedAmount.computed(cls.auto_total_commission(record))

        received = record.commission_received
        if not received.is_overridden:
            received = DerivedAmount.computed(cls._received(total.value, record.commission_deduction))

        logger.debug(
            "Commission recalculated for %s %s: total=%s received=%s",
            record.LEVEL, record.id, total.value, received.value,
        )
        return record.model_copy(update={
            "total_commission": total,
            "commission_received": received,
        })

    # ================================================================
    # Default rate
    # ================================================================

    @classmethod
    def apply_default_commission_rate(cls, record: R) -> R:
        """
        Apply the default rate for the current source and charter type.

        The default is applied when no rate is set, or when the current rate
        still equals the previously applied default. Otherwise the user's rate
        stays. The new default is remembered either way.
        """
        new_default = get_default_commission_rate(
            record.booking_source_type, record.charter_type, record.LEVEL
        )
        previous_default = record.commission_rate_default

        if record.commission_rate is None or (
            previous_default is not None and record.commission_rate == previous_default
        ):
            record = cls.apply_commission_rate(record, new_default)

        return record.model_copy(update={"commission_rate_default": new_default})
