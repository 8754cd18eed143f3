"""
Exchange Rate API endpoints.
Rates are quoted as THB per 1 unit of the requested currency.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, HTTPException, status, Query
from pydantic import BaseModel, Field

from app.api.deps import RateService
from app.services.currency import UnsupportedCurrencyError
from app.services.exchange_rate_service import ExchangeRateError, ExchangeRateResult

router = APIRouter()


# Schemas
class ExchangeRateResponse(BaseModel):
    """Exchange rate response."""
    currency: str
    rate: Decimal
    source: str
    rate_date: date = Field(..., serialization_alias="date")
    provider: Optional[str] = None


class SetManualRateRequest(BaseModel):
    """Request to set a manual exchange rate."""
    currency: str = Field(..., min_length=3, max_length=3, description="Currency code (e.g., USD)")
    rate: Decimal = Field(..., gt=0, description="THB per 1 unit of currency")
    rate_date: Optional[date] = Field(None, alias="date")


def _to_response(currency: str, result: ExchangeRateResult) -> ExchangeRateResponse:
    return ExchangeRateResponse(
        currency=currency.upper(),
        rate=result.rate,
        source=result.source,
        rate_date=result.rate_date,
        provider=result.provider,
    )


# Endpoints
@router.get("/{currency}", response_model=ExchangeRateResponse)
async def get_exchange_rate(
    currency: str,
    service: RateService,
    rate_date: Optional[date] = Query(None, alias="date"),
):
    """
    Get the THB rate for a currency on a date (today by default).
    THB always returns 1.
    """
    try:
        result = await service.get_exchange_rate(currency, rate_date)
    except UnsupportedCurrencyError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )
    except ExchangeRateError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=e.message,
        )
    return _to_response(currency, result)


@router.post("/manual", response_model=ExchangeRateResponse)
async def set_manual_rate(data: SetManualRateRequest, service: RateService):
    """Record a rate typed in by the user; it replaces the fetched rate for that date."""
    try:
        result = service.set_manual_rate(data.currency, data.rate_date or date.today(), data.rate)
    except (UnsupportedCurrencyError, ExchangeRateError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )
    return _to_response(data.currency, result)
