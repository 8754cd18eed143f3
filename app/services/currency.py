"""
Currency helpers shared by the pricing and commission engines.

All commission and profit figures are reported in THB. Amounts in another
currency are normalized with an FX rate expressed as THB per 1 unit of that
currency. When no usable rate exists, conversion returns None instead of
guessing.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional

from app.config import get_settings

THB = "THB"

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

# Largest amount the DECIMAL(12, 2) money columns hold
MAX_AMOUNT = Decimal("9999999999.99")


class UnsupportedCurrencyError(ValueError):
    """Raised for a currency code outside the configured currency set."""

    def __init__(self, currency: Any):
        self.currency = currency
        supported = ", ".join(get_settings().supported_currencies)
        self.message = f"Unsupported currency {currency}; expected one of {supported}"
        super().__init__(self.message)


def check_currency(currency: Any) -> str:
    """Normalize a currency code (blank → THB) and check it is supported."""
    code = currency.strip().upper() if isinstance(currency, str) else currency
    if not code:
        return THB
    if code not in get_settings().supported_currencies:
        raise UnsupportedCurrencyError(currency)
    return code


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a user-entered numeric value.

    Empty strings, non-numeric strings, NaN, infinities and amounts beyond
    MAX_AMOUNT become None. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            return None
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not parsed.is_finite() or abs(parsed) > MAX_AMOUNT:
        return None
    return parsed


def parse_rate(value: Any) -> Optional[Decimal]:
    """Parse an FX rate; zero and negative rates count as unset."""
    rate = parse_amount(value)
    if rate is None or rate <= 0:
        return None
    return rate


def parse_fee(value: Any) -> Optional[Decimal]:
    """Parse a fee or price; negative amounts count as unset."""
    amount = parse_amount(value)
    if amount is None or amount < 0:
        return None
    return amount


def parse_percent(value: Any) -> Optional[Decimal]:
    """Parse a percentage; anything outside 0-100 counts as unset."""
    percent = parse_amount(value)
    if percent is None or not ZERO <= percent <= HUNDRED:
        return None
    return percent


def d(value: Optional[Decimal]) -> Decimal:
    """None-safe amount: absent values count as 0."""
    return value if value is not None else ZERO


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places, whatever the magnitude."""
    value = Decimal(value)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def has_rate(fx_rate: Optional[Decimal]) -> bool:
    return fx_rate is not None and fx_rate > 0


def normalize_to_thb(
    amount: Optional[Decimal],
    currency: Optional[str],
    fx_rate: Optional[Decimal],
) -> Optional[Decimal]:
    """
    Convert an amount to THB.

    THB amounts pass through, other currencies are multiplied by a positive
    fx_rate, anything else returns None. The result is not rounded.
    """
    if (currency or THB) == THB:
        return d(amount)
    if has_rate(fx_rate):
        return d(amount) * fx_rate
    return None
