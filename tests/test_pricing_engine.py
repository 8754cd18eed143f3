"""
Unit tests for price totals, THB conversion and payment status
"""
from datetime import date
from decimal import Decimal

from app.schemas.booking import BookingRecord, CabinAllocationRecord, PaymentRecord
from app.services.pricing_engine import PricingEngine


class TestRecomputeTotals:
    """Price and THB total derivation"""

    def test_cabin_price_is_charter_plus_admin_fee(self, usd_cabin):
        """Cabin price = charter fee + admin fee, THB total at 35"""
        result = PricingEngine.recompute_totals(usd_cabin)

        assert result.price == Decimal("1050")
        assert result.thb_total_price == Decimal("36750.00")

    def test_booking_price_is_charter_plus_extra_charges(self, usd_booking):
        """Booking total ignores the admin fee"""
        result = PricingEngine.recompute_totals(usd_booking)

        assert result.price == Decimal("1200")
        assert result.thb_total_price == Decimal("42000.00")

    def test_thb_total_equals_price_for_thb(self, thb_agency_cabin):
        result = PricingEngine.recompute_totals(thb_agency_cabin)

        assert result.price == Decimal("10000")
        assert result.thb_total_price == result.price

    def test_thb_total_unset_without_rate(self, usd_cabin):
        """A foreign price with no FX rate has no THB total, never a guess"""
        record = usd_cabin.model_copy(update={"fx_rate": None})
        result = PricingEngine.recompute_totals(record)

        assert result.price == Decimal("1050")
        assert result.thb_total_price is None

    def test_missing_fees_count_as_zero(self):
        record = CabinAllocationRecord(currency="THB", admin_fee=Decimal("300"))
        result = PricingEngine.recompute_totals(record)

        assert result.price == Decimal("300")

    def test_thb_total_rounded_half_up(self):
        record = CabinAllocationRecord(
            currency="EUR",
            charter_fee=Decimal("10.01"),
            fx_rate=Decimal("38.125"),
        )
        result = PricingEngine.recompute_totals(record)

        # 10.01 × 38.125 = 381.63125
        assert result.thb_total_price == Decimal("381.63")

    def test_recompute_is_idempotent(self, usd_booking):
        once = PricingEngine.recompute_totals(usd_booking)
        twice = PricingEngine.recompute_totals(once)

        assert once == twice

    def test_input_record_not_mutated(self, usd_cabin):
        PricingEngine.recompute_totals(usd_cabin)

        assert usd_cabin.price is None


class TestConvertToThb:
    """FX normalization"""

    def test_thb_passes_through(self):
        assert PricingEngine.convert_to_thb(Decimal("500"), "THB", None) == Decimal("500")

    def test_foreign_amount_multiplied_by_rate(self):
        assert PricingEngine.convert_to_thb(Decimal("10"), "USD", Decimal("35.5")) == Decimal("355.0")

    def test_missing_rate_returns_none(self):
        assert PricingEngine.convert_to_thb(Decimal("10"), "USD", None) is None

    def test_zero_rate_returns_none(self):
        assert PricingEngine.convert_to_thb(Decimal("10"), "USD", Decimal("0")) is None


class TestPaymentStatus:
    """Payment status inference from the ledger"""

    def test_no_payments_is_unpaid(self):
        assert PricingEngine.classify_payment_status([], Decimal("1000")) == "unpaid"

    def test_unpaid_entries_do_not_count(self, balance_due):
        """Entries without a paid date are scheduled, not paid"""
        assert PricingEngine.classify_payment_status([balance_due], Decimal("1050")) == "unpaid"

    def test_partial_payment(self, deposit_paid, balance_due):
        status = PricingEngine.classify_payment_status([deposit_paid, balance_due], Decimal("1050"))
        assert status == "partial"

    def test_fully_paid(self, deposit_paid, balance_due):
        balance_paid = balance_due.model_copy(update={"paid_date": date(2026, 2, 25)})
        status = PricingEngine.classify_payment_status([deposit_paid, balance_paid], Decimal("1050"))
        assert status == "paid"

    def test_overpaid_is_paid(self, deposit_paid):
        assert PricingEngine.classify_payment_status([deposit_paid], Decimal("300")) == "paid"

    def test_zero_price_with_payment_is_partial(self, deposit_paid):
        """Paid requires a positive price"""
        assert PricingEngine.classify_payment_status([deposit_paid], Decimal("0")) == "partial"
        assert PricingEngine.classify_payment_status([deposit_paid], None) == "partial"

    def test_zero_and_negative_amounts_ignored(self):
        payments = [
            PaymentRecord(amount=Decimal("0"), paid_date=date(2026, 1, 1)),
            PaymentRecord(amount=Decimal("-50"), paid_date=date(2026, 1, 1)),
        ]
        assert PricingEngine.classify_payment_status(payments, Decimal("100")) == "unpaid"

    def test_payment_summary(self, deposit_paid, balance_due):
        summary = PricingEngine.payment_summary([deposit_paid, balance_due], Decimal("1050"))

        assert summary.total_paid == Decimal("400")
        assert summary.remaining == Decimal("650")
        assert summary.paid_count == 1
        assert summary.status == "partial"

    def test_payment_summary_never_negative_remaining(self, deposit_paid):
        summary = PricingEngine.payment_summary([deposit_paid], Decimal("300"))

        assert summary.remaining == Decimal("0")
        assert summary.status == "paid"


class TestThbBreakdown:
    """Per-fee THB equivalents on the finance panel"""

    def test_breakdown_with_rate(self, usd_booking):
        breakdown = PricingEngine.thb_breakdown(usd_booking)

        assert breakdown.charter_fee == Decimal("35000.00")
        assert breakdown.extra_charges == Decimal("7000.00")
        assert breakdown.admin_fee == Decimal("1750.00")
        assert breakdown.total == Decimal("43750.00")

    def test_breakdown_without_rate(self, usd_booking):
        breakdown = PricingEngine.thb_breakdown(usd_booking.model_copy(update={"fx_rate": None}))

        assert breakdown.charter_fee is None
        assert breakdown.total is None

    def test_breakdown_thb_amounts_unchanged(self):
        record = BookingRecord(currency="THB", charter_fee=Decimal("20000"), extra_charges=Decimal("1500"))
        breakdown = PricingEngine.thb_breakdown(record)

        assert breakdown.charter_fee == Decimal("20000")
        assert breakdown.admin_fee == Decimal("0")
        assert breakdown.total == Decimal("21500")


class TestCharterProfit:
    """External boat: guest paid vs boat owner cost"""

    def test_same_currency_profit(self, external_boat_booking):
        profit = PricingEngine.charter_profit(external_boat_booking)

        assert profit.can_compare is True
        assert profit.currency == "USD"
        assert profit.guest_paid == Decimal("1100")
        assert profit.cost == Decimal("600")
        assert profit.profit == Decimal("500")

    def test_thb_cost_against_foreign_booking(self, external_boat_booking):
        record = external_boat_booking.model_copy(update={
            "charter_cost": Decimal("20000"),
            "charter_cost_currency": "THB",
        })
        profit = PricingEngine.charter_profit(record)

        assert profit.currency == "THB"
        assert profit.guest_paid == Decimal("38500.00")
        assert profit.profit == Decimal("18500.00")

    def test_foreign_cost_cannot_be_compared(self, external_boat_booking):
        record = external_boat_booking.model_copy(update={"charter_cost_currency": "EUR"})
        profit = PricingEngine.charter_profit(record)

        assert profit.can_compare is False
        assert profit.profit is None

    def test_missing_cost_currency_uses_booking_currency(self, external_boat_booking):
        record = external_boat_booking.model_copy(update={"charter_cost_currency": None})
        profit = PricingEngine.charter_profit(record)

        assert profit.currency == "USD"
        assert profit.profit == Decimal("500")
