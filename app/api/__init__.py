"""
API routes package.
"""

from app.api import (
    bookings,
    cabin_allocations,
    exchange_rates,
)

__all__ = [
    "bookings",
    "cabin_allocations",
    "exchange_rates",
]
