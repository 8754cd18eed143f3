"""
FastAPI dependencies for database access and the booking collaborators.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.services.booking_store import BookingStore
from app.services.exchange_rate_service import ExchangeRateService, get_exchange_rate_service
from app.services.payment_ledger import DatabasePaymentLedger, PaymentLedger


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_payment_ledger(db: DbSession) -> PaymentLedger:
    """Ledger of cabin allocation payments."""
    return DatabasePaymentLedger(db, owner="cabin")


async def get_booking_store(db: DbSession) -> BookingStore:
    return BookingStore(db)


Ledger = Annotated[PaymentLedger, Depends(get_payment_ledger)]
Store = Annotated[BookingStore, Depends(get_booking_store)]
RateService = Annotated[ExchangeRateService, Depends(get_exchange_rate_service)]
