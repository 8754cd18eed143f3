"""
Tests for the exchange rate provider, with the HTTP APIs mocked out
"""
from datetime import date
from decimal import Decimal

import httpx
import pytest

from app.services.currency import UnsupportedCurrencyError
from app.services.exchange_rate_service import ExchangeRateError, ExchangeRateService

RATE_DATE = date(2026, 3, 1)


def make_service(handler, calls=None):
    """Service whose HTTP traffic goes to `handler`; requested URLs are appended to `calls`"""
    def recording_handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url)
        return handler(request)

    return ExchangeRateService(
        api_url="https://primary.test",
        fallback_url="https://fallback.test",
        transport=httpx.MockTransport(recording_handler),
    )


def primary_ok(request: httpx.Request) -> httpx.Response:
    if request.url.host == "primary.test":
        return httpx.Response(200, json={"success": True, "rates": {"THB": 35.42}})
    return httpx.Response(500)


class TestFetchRate:
    """Primary provider, fallback and failure"""

    async def test_primary_provider(self):
        calls = []
        service = make_service(primary_ok, calls)

        result = await service.get_exchange_rate("usd", RATE_DATE)

        assert result.rate == Decimal("35.42")
        assert result.source == "api"
        assert result.provider == "exchangerate.host"
        assert result.rate_date == RATE_DATE
        assert len(calls) == 1
        assert calls[0].path == "/2026-03-01"
        assert calls[0].params["base"] == "USD"
        assert calls[0].params["symbols"] == "THB"

    async def test_fallback_on_primary_error(self):
        def handler(request):
            if request.url.host == "primary.test":
                return httpx.Response(503)
            return httpx.Response(200, json={"amount": 1.0, "base": "EUR", "rates": {"THB": 38.9}})

        calls = []
        service = make_service(handler, calls)

        result = await service.get_exchange_rate("EUR", RATE_DATE)

        assert result.rate == Decimal("38.9")
        assert result.provider == "frankfurter"
        assert calls[1].params["from"] == "EUR"
        assert calls[1].params["to"] == "THB"

    async def test_fallback_when_primary_reports_failure(self):
        def handler(request):
            if request.url.host == "primary.test":
                return httpx.Response(200, json={"success": False})
            return httpx.Response(200, json={"rates": {"THB": 44.1}})

        result = await make_service(handler).get_exchange_rate("GBP", RATE_DATE)

        assert result.rate == Decimal("44.1")

    async def test_network_error_falls_back(self):
        def handler(request):
            if request.url.host == "primary.test":
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"rates": {"THB": 22.5}})

        result = await make_service(handler).get_exchange_rate("AUD", RATE_DATE)

        assert result.rate == Decimal("22.5")

    async def test_both_providers_fail(self):
        service = make_service(lambda request: httpx.Response(500))

        with pytest.raises(ExchangeRateError) as exc_info:
            await service.get_exchange_rate("USD", RATE_DATE)

        assert exc_info.value.currency == "USD"
        assert exc_info.value.rate_date == RATE_DATE

    async def test_invalid_payload_is_a_failure(self):
        service = make_service(lambda request: httpx.Response(200, json={"success": True, "rates": {"THB": 0}}))

        with pytest.raises(ExchangeRateError):
            await service.get_exchange_rate("USD", RATE_DATE)


class TestRateShortcuts:
    """THB, cache, manual override and validation"""

    async def test_thb_is_one_without_request(self):
        calls = []
        service = make_service(primary_ok, calls)

        result = await service.get_exchange_rate("THB", RATE_DATE)

        assert result.rate == Decimal("1")
        assert calls == []

    async def test_rates_cached_per_currency_and_date(self):
        calls = []
        service = make_service(primary_ok, calls)

        await service.get_exchange_rate("USD", RATE_DATE)
        await service.get_exchange_rate("USD", RATE_DATE)
        await service.get_exchange_rate("USD", date(2026, 3, 2))

        assert len(calls) == 2

    async def test_manual_rate_replaces_fetched_rate(self):
        calls = []
        service = make_service(primary_ok, calls)

        await service.get_exchange_rate("USD", RATE_DATE)
        service.set_manual_rate("USD", RATE_DATE, "36")
        result = await service.get_exchange_rate("USD", RATE_DATE)

        assert result.rate == Decimal("36")
        assert result.source == "manual"
        assert len(calls) == 1

    def test_manual_rate_must_be_positive(self):
        service = make_service(primary_ok)

        with pytest.raises(ExchangeRateError):
            service.set_manual_rate("USD", RATE_DATE, "0")

    async def test_unsupported_currency(self):
        calls = []
        service = make_service(primary_ok, calls)

        with pytest.raises(UnsupportedCurrencyError):
            await service.get_exchange_rate("XYZ", RATE_DATE)
        with pytest.raises(UnsupportedCurrencyError):
            await service.get_exchange_rate("", RATE_DATE)
        assert calls == []
