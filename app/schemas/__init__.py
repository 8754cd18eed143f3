"""
Pydantic value objects exchanged with the booking form.
"""

from app.schemas.booking import (
    BookingRecord,
    CabinAllocationRecord,
    ChargeableRecord,
    DerivedAmount,
    ExtraItem,
    PaymentRecord,
)

__all__ = [
    "BookingRecord",
    "CabinAllocationRecord",
    "ChargeableRecord",
    "DerivedAmount",
    "ExtraItem",
    "PaymentRecord",
]
