"""
Pytest configuration for the charter bookings tests
"""
import os

# The engine is created at import time; point it at SQLite before app modules load
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.models import Base
from app.schemas.booking import BookingRecord, CabinAllocationRecord, ExtraItem, PaymentRecord


@pytest.fixture
def usd_cabin():
    """USD cabin at 35 THB/USD, direct source, 2% commission"""
    return CabinAllocationRecord(
        id="cabin-1",
        booking_id="booking-1",
        cabin_label="Cabin 1",
        cabin_number=1,
        currency="USD",
        charter_fee=Decimal("1000"),
        admin_fee=Decimal("50"),
        fx_rate=Decimal("35"),
        fx_rate_source="api",
        commission_rate=Decimal("2"),
    )


@pytest.fixture
def thb_agency_cabin():
    """THB cabin sold through an agency, 1% commission"""
    return CabinAllocationRecord(
        id="cabin-2",
        booking_id="booking-1",
        cabin_label="Cabin 2",
        cabin_number=2,
        currency="THB",
        charter_fee=Decimal("10000"),
        booking_source_type="agency",
        agent_name="Phuket Sailing Co",
        commission_rate=Decimal("1"),
    )


@pytest.fixture
def usd_booking():
    """Day charter booking in USD at 35 THB/USD"""
    return BookingRecord(
        id="booking-1",
        booking_number="B-2026-0042",
        charter_type="day_charter",
        date_from=date(2026, 3, 1),
        currency="USD",
        charter_fee=Decimal("1000"),
        extra_charges=Decimal("200"),
        admin_fee=Decimal("50"),
        fx_rate=Decimal("35"),
        commission_rate=Decimal("2"),
    )


@pytest.fixture
def external_boat_booking():
    """Boat chartered in from an external owner"""
    return BookingRecord(
        id="booking-2",
        currency="USD",
        charter_fee=Decimal("1000"),
        extra_charges=Decimal("100"),
        fx_rate=Decimal("35"),
        external_boat_name="Sea Breeze",
        charter_cost=Decimal("600"),
        charter_cost_currency="USD",
        commission_rate=Decimal("4"),
    )


@pytest.fixture
def sample_extras():
    """Mixed extras: THB internal, USD external, non-commissionable THB"""
    return [
        ExtraItem(name="Thai massage", type="internal", selling_price=Decimal("1000"), currency="THB"),
        ExtraItem(
            name="Diving trip",
            type="external",
            selling_price=Decimal("100"),
            cost=Decimal("60"),
            currency="USD",
            fx_rate=Decimal("35"),
        ),
        ExtraItem(
            name="Park fee",
            type="internal",
            selling_price=Decimal("500"),
            currency="THB",
            commissionable=False,
        ),
    ]


@pytest.fixture
def deposit_paid():
    return PaymentRecord(
        id="pay-1",
        payment_type="deposit",
        amount=Decimal("400"),
        currency="USD",
        due_date=date(2026, 2, 1),
        paid_date=date(2026, 2, 1),
    )


@pytest.fixture
def balance_due():
    return PaymentRecord(
        id="pay-2",
        payment_type="balance",
        amount=Decimal("650"),
        currency="USD",
        due_date=date(2026, 2, 25),
    )


@pytest.fixture
async def db_session():
    """Async session on a fresh in-memory SQLite database"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()
