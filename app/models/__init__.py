"""
SQLAlchemy models for the charter bookings API.
"""

from app.models.base import Base, EntityBase, TimestampMixin
from app.models.booking import Booking, BookingLookup, BookingPayment, CabinAllocation

__all__ = [
    "Base",
    "EntityBase",
    "TimestampMixin",
    "Booking",
    "CabinAllocation",
    "BookingPayment",
    "BookingLookup",
]
