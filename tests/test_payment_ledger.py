"""
Tests for the payment ledgers and the booking store
"""
from datetime import date
from decimal import Decimal

import pytest

from app.models import BookingLookup
from app.schemas.booking import BookingRecord, CabinAllocationRecord, DerivedAmount, ExtraItem, PaymentRecord
from app.services.booking_editor import apply_edit, initialize_record
from app.services.booking_store import BookingStore
from app.services.payment_ledger import DatabasePaymentLedger, InMemoryPaymentLedger
from app.services.pricing_engine import PricingEngine


class TestInMemoryPaymentLedger:
    """Dict-backed ledger"""

    async def test_unknown_owner_has_no_payments(self):
        assert await InMemoryPaymentLedger().get_for("cabin-1") == []

    async def test_replace_and_add(self, deposit_paid, balance_due):
        ledger = InMemoryPaymentLedger()

        await ledger.replace_for("cabin-1", [deposit_paid])
        payments = await ledger.add("cabin-1", balance_due)

        assert [p.id for p in payments] == ["pay-1", "pay-2"]
        assert await ledger.get_for("cabin-2") == []

    async def test_returned_list_is_a_copy(self, deposit_paid):
        ledger = InMemoryPaymentLedger({"cabin-1": [deposit_paid]})

        payments = await ledger.get_for("cabin-1")
        payments.clear()

        assert len(await ledger.get_for("cabin-1")) == 1

    async def test_status_from_ledger(self, usd_cabin, deposit_paid):
        ledger = InMemoryPaymentLedger({"cabin-1": [deposit_paid]})
        record = initialize_record(usd_cabin)

        status = PricingEngine.classify_payment_status(await ledger.get_for(record.id), record.price)

        assert status == "partial"


@pytest.mark.integration
class TestDatabasePaymentLedger:
    """booking_payments table on SQLite"""

    async def test_replace_and_read_back(self, db_session, deposit_paid, balance_due):
        ledger = DatabasePaymentLedger(db_session, owner="cabin")

        await ledger.replace_for("cabin-1", [deposit_paid, balance_due])
        payments = await ledger.get_for("cabin-1")

        assert [p.id for p in payments] == ["pay-1", "pay-2"]
        assert payments[0].amount == Decimal("400")
        assert payments[0].paid_date == date(2026, 2, 1)
        assert payments[1].paid_date is None
        assert payments[1].payment_type == "balance"

    async def test_add_keeps_existing_entries(self, db_session, deposit_paid, balance_due):
        ledger = DatabasePaymentLedger(db_session)

        await ledger.replace_for("cabin-1", [deposit_paid])
        await ledger.get_for("cabin-1")
        payments = await ledger.add("cabin-1", balance_due)

        assert [p.id for p in payments] == ["pay-1", "pay-2"]
        assert len(await ledger.get_for("cabin-1")) == 2

    async def test_new_payments_get_ids(self, db_session):
        ledger = DatabasePaymentLedger(db_session)

        payments = await ledger.replace_for("cabin-1", [PaymentRecord(amount=Decimal("100"))])

        assert payments[0].id

    async def test_owners_are_separate(self, db_session, deposit_paid, balance_due):
        cabin_ledger = DatabasePaymentLedger(db_session, owner="cabin")
        booking_ledger = DatabasePaymentLedger(db_session, owner="booking")

        await cabin_ledger.replace_for("cabin-1", [deposit_paid])
        await booking_ledger.replace_for("booking-1", [balance_due])

        assert [p.id for p in await cabin_ledger.get_for("cabin-1")] == ["pay-1"]
        assert [p.id for p in await booking_ledger.get_for("booking-1")] == ["pay-2"]
        assert await booking_ledger.get_for("cabin-1") == []

    def test_invalid_owner(self):
        with pytest.raises(ValueError):
            DatabasePaymentLedger(None, owner="invoice")


@pytest.mark.integration
class TestBookingStore:
    """Records saved and loaded through the ORM models"""

    async def test_booking_round_trip(self, db_session, usd_booking):
        store = BookingStore(db_session)
        record = initialize_record(usd_booking)
        record = apply_edit(record, "totalCommission", "900")

        saved = await store.save_booking(record)
        loaded = await store.get_booking(saved.id)

        assert loaded.price == Decimal("1200")
        assert loaded.thb_total_price == Decimal("42000.00")
        assert loaded.total_commission == DerivedAmount.overridden(Decimal("900"))
        assert loaded.commission_received == DerivedAmount.computed(Decimal("900.00"))
        assert loaded.date_from == date(2026, 3, 1)
        assert loaded.charter_type == "day_charter"

    async def test_new_booking_gets_id(self, db_session):
        store = BookingStore(db_session)

        saved = await store.save_booking(BookingRecord(currency="THB", charter_fee=Decimal("5000")))

        assert saved.id
        assert await store.get_booking(saved.id) is not None

    async def test_update_existing_booking(self, db_session, usd_booking):
        store = BookingStore(db_session)
        saved = await store.save_booking(initialize_record(usd_booking))

        await store.save_booking(apply_edit(saved, "charterFee", "1500"))
        loaded = await store.get_booking(saved.id)

        assert loaded.charter_fee == Decimal("1500")
        assert loaded.price == Decimal("1700")

    async def test_missing_booking(self, db_session):
        assert await BookingStore(db_session).get_booking("nope") is None

    async def test_cabin_allocation_round_trip(self, db_session, thb_agency_cabin):
        store = BookingStore(db_session)
        item = ExtraItem(name="Massage", selling_price=Decimal("1200"), currency="THB")
        record = apply_edit(thb_agency_cabin, "agencyCommissionRate", "10")
        record = apply_edit(record, "extraItems", [item.model_dump()])

        await store.save_cabin_allocation(record)
        loaded = await store.get_cabin_allocation("cabin-2")

        assert loaded.booking_source_type == "agency"
        assert loaded.agency_commission_amount == DerivedAmount.computed(Decimal("1000.00"))
        assert loaded.agency_commission_thb == Decimal("1000.00")
        assert loaded.extra_items[0].name == "Massage"
        assert loaded.extra_items[0].selling_price == Decimal("1200")
        assert loaded.total_commission.value == record.total_commission.value

    async def test_cabin_allocation_requires_booking(self, db_session):
        with pytest.raises(ValueError):
            await BookingStore(db_session).save_cabin_allocation(CabinAllocationRecord(id="cabin-9"))

    async def test_list_cabin_allocations_in_order(self, db_session, usd_cabin, thb_agency_cabin):
        store = BookingStore(db_session)
        await store.save_cabin_allocation(thb_agency_cabin.model_copy(update={"sort_order": 2}))
        await store.save_cabin_allocation(usd_cabin.model_copy(update={"sort_order": 1}))

        cabins = await store.list_cabin_allocations("booking-1")

        assert [c.id for c in cabins] == ["cabin-1", "cabin-2"]

    async def test_extras_lookups(self, db_session):
        db_session.add_all([
            BookingLookup(category="extras", label="Thai massage", sort_order=2),
            BookingLookup(category="extras", label="Diving trip", sort_order=1),
            BookingLookup(category="extras", label="Old service", sort_order=3, is_active=False),
            BookingLookup(category="payment_method", label="Bank transfer", sort_order=1),
        ])
        await db_session.flush()

        labels = await BookingStore(db_session).load_extras_lookups("extras")

        assert labels == ["Diving trip", "Thai massage"]
