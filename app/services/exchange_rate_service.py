"""
Exchange rate provider: THB per 1 unit of a foreign currency on a date.

Usage:
    service = ExchangeRateService()
    result = await service.get_exchange_rate("USD", date(2026, 3, 1))
    result.rate    # Decimal("35.42")
    result.source  # "api" or "manual"

Rates come from exchangerate.host, with frankfurter.app as fallback, and are
cached per (currency, date) for the life of the service. A manual rate set
by the user replaces the cached one.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Dict, Optional, Tuple

import httpx

from app.config import get_settings
from app.services.currency import THB, UnsupportedCurrencyError, check_currency, parse_rate

logger = logging.getLogger(__name__)


class ExchangeRateError(Exception):
    """Raised when no rate can be obtained for a currency/date."""

    def __init__(self, currency: str, rate_date: Optional[date], message: str):
        self.currency = currency
        self.rate_date = rate_date
        self.message = message
        super().__init__(self.message)


@dataclass
class ExchangeRateResult:
    rate: Decimal
    source: str  # "api" | "manual"
    rate_date: date
    provider: Optional[str] = None


class ExchangeRateService:
    """Async client for the public exchange rate APIs, with an in-memory cache."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        fallback_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.api_url = (api_url or settings.exchange_rate_api_url).rstrip("/")
        self.fallback_url = (fallback_url or settings.exchange_rate_fallback_url).rstrip("/")
        self.timeout = timeout or settings.exchange_rate_timeout
        self._transport = transport
        self._cache: Dict[Tuple[str, date], ExchangeRateResult] = {}

    @staticmethod
    def _check_currency(currency: str) -> str:
        if not currency:
            raise UnsupportedCurrencyError(currency)
        return check_currency(currency)

    def get_cached(self, currency: str, rate_date: date) -> Optional[ExchangeRateResult]:
        return self._cache.get((currency.upper(), rate_date))

    def set_manual_rate(self, currency: str, rate_date: date, rate) -> ExchangeRateResult:
        """Store a user-entered rate; it wins over any fetched rate for that date."""
        code = self._check_currency(currency)
        parsed = parse_rate(rate)
        if parsed is None:
            raise ExchangeRateError(code, rate_date, "Exchange rate must be a positive number")
        result = ExchangeRateResult(rate=parsed, source="manual", rate_date=rate_date)
        if code != THB:
            self._cache[(code, rate_date)] = result
        logger.info(f"Manual rate set: 1 {code} = {parsed} THB on {rate_date}")
        return result

    async def get_exchange_rate(self, currency: str, rate_date: Optional[date] = None) -> ExchangeRateResult:
        """
        Get the THB rate for a currency on a date (today by default).

        Raises:
            UnsupportedCurrencyError: currency outside the configured set
            ExchangeRateError: both providers failed
        """
        rate_date = rate_date or date.today()
        code = self._check_currency(currency)

        if code == THB:
            return ExchangeRateResult(rate=Decimal("1"), source="manual", rate_date=rate_date)

        cached = self.get_cached(code, rate_date)
        if cached is not None:
            return cached

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            rate = await self._fetch_exchangerate_host(client, code, rate_date)
            provider = "exchangerate.host"
            if rate is None:
                rate = await self._fetch_frankfurter(client, code, rate_date)
                provider = "frankfurter"

        if rate is None:
            raise ExchangeRateError(code, rate_date, f"Failed to fetch exchange rate for {code} on {rate_date}")

        result = ExchangeRateResult(rate=rate, source="api", rate_date=rate_date, provider=provider)
        self._cache[(code, rate_date)] = result
        return result

    async def _get_json(self, client: httpx.AsyncClient, url: str, params: dict) -> Optional[dict]:
        try:
            response = await client.get(url, params=params, headers={"Accept": "application/json"})
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Exchange rate request failed ({url}): {e}")
            return None

    async def _fetch_exchangerate_host(self, client: httpx.AsyncClient, currency: str, rate_date: date) -> Optional[Decimal]:
        # https://api.exchangerate.host/2024-01-15?base=USD&symbols=THB
        data = await self._get_json(
            client,
            f"{self.api_url}/{rate_date.isoformat()}",
            {"base": currency, "symbols": THB},
        )
        if not data or not data.get("success"):
            return None
        return parse_rate((data.get("rates") or {}).get(THB))

    async def _fetch_frankfurter(self, client: httpx.AsyncClient, currency: str, rate_date: date) -> Optional[Decimal]:
        # https://api.frankfurter.app/2024-01-15?from=USD&to=THB
        data = await self._get_json(
            client,
            f"{self.fallback_url}/{rate_date.isoformat()}",
            {"from": currency, "to": THB},
        )
        if not data:
            return None
        return parse_rate((data.get("rates") or {}).get(THB))


@lru_cache()
def get_exchange_rate_service() -> ExchangeRateService:
    """Process-wide service so the cache is shared between requests."""
    return ExchangeRateService()
