"""
Payment ledger: deposits and balances recorded against a booking or a cabin.

The pricing engine only needs `get_for(owner_id)`. Two implementations:
- InMemoryPaymentLedger: a dict, used in tests and previews
- DatabasePaymentLedger: the booking_payments table
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import BookingPayment
from app.schemas.booking import PaymentRecord

logger = logging.getLogger(__name__)


class PaymentLedger(ABC):
    """Repository of payments keyed by owner id (booking or cabin allocation)."""

    @abstractmethod
    async def get_for(self, owner_id: str) -> List[PaymentRecord]:
        """Payments recorded for an owner, in entry order."""

    @abstractmethod
    async def replace_for(self, owner_id: str, payments: Iterable[PaymentRecord]) -> List[PaymentRecord]:
        """Replace all payments of an owner with the given list."""

    async def add(self, owner_id: str, payment: PaymentRecord) -> List[PaymentRecord]:
        payments = await self.get_for(owner_id)
        return await self.replace_for(owner_id, [*payments, payment])


class InMemoryPaymentLedger(PaymentLedger):

    def __init__(self, payments: Dict[str, List[PaymentRecord]] | None = None):
        self._payments: Dict[str, List[PaymentRecord]] = {
            owner_id: list(items) for owner_id, items in (payments or {}).items()
        }

    async def get_for(self, owner_id: str) -> List[PaymentRecord]:
        return list(self._payments.get(owner_id, []))

    async def replace_for(self, owner_id: str, payments: Iterable[PaymentRecord]) -> List[PaymentRecord]:
        self._payments[owner_id] = list(payments)
        return list(self._payments[owner_id])


class DatabasePaymentLedger(PaymentLedger):
    """
    Ledger backed by the booking_payments table.

    `owner` selects the owner column: "cabin" → cabin_allocation_id,
    "booking" → booking_id.
    """

    def __init__(self, db: AsyncSession, owner: str = "cabin"):
        if owner not in ("cabin", "booking"):
            raise ValueError(f"Invalid payment owner: {owner}")
        self.db = db
        self.owner = owner

    @property
    def _owner_column(self):
        return BookingPayment.cabin_allocation_id if self.owner == "cabin" else BookingPayment.booking_id

    @staticmethod
    def _to_record(row: BookingPayment) -> PaymentRecord:
        return PaymentRecord(
            id=row.id,
            payment_type=row.payment_type,
            amount=row.amount,
            currency=row.currency,
            due_date=row.due_date,
            paid_date=row.paid_date,
            payment_method=row.payment_method,
            bank_account_id=row.bank_account_id,
            receipt_id=row.receipt_id,
            synced_to_receipt=bool(row.synced_to_receipt),
            needs_accounting_action=bool(row.needs_accounting_action),
            note=row.note,
        )

    async def get_for(self, owner_id: str) -> List[PaymentRecord]:
        result = await self.db.execute(
            select(BookingPayment)
            .where(self._owner_column == owner_id)
            .order_by(BookingPayment.sort_order)
        )
        return [self._to_record(row) for row in result.scalars().all()]

    async def replace_for(self, owner_id: str, payments: Iterable[PaymentRecord]) -> List[PaymentRecord]:
        result = await self.db.execute(select(BookingPayment).where(self._owner_column == owner_id))
        for row in result.scalars().all():
            await self.db.delete(row)
        # Flush deletes first so kept payment ids can be inserted again
        await self.db.flush()

        owner_field = "cabin_allocation_id" if self.owner == "cabin" else "booking_id"
        rows = []
        for index, payment in enumerate(payments):
            data = payment.model_dump(exclude={"id"})
            row = BookingPayment(**data, sort_order=index, **{owner_field: owner_id})
            if payment.id:
                row.id = payment.id
            self.db.add(row)
            rows.append(row)
        await self.db.flush()

        logger.info("Payments replaced for %s %s: %d entries", self.owner, owner_id, len(rows))
        return [self._to_record(row) for row in rows]
