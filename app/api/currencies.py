"""
Currency endpoints: supported currencies, the daily rate table and
presentation-only conversion.
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.redis_client import get_redis
from app.schemas.currency import ConversionResult, CurrencyRead, RateTable
from app.services.currency_service import RATE_LOOKUP_ERRORS, CurrencyService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=list[CurrencyRead])
async def list_currencies():
    return [CurrencyRead.model_validate(c) for c in CurrencyService.list_currencies()]


@router.get("/rates", response_model=RateTable)
async def get_rates(redis=Depends(get_redis)):
    """
    Current rates per one unit of the base currency.

    Served from the Redis cache (refreshed daily); a cache miss fetches
    from the rate provider.
    """
    try:
        table = await CurrencyService(redis).get_rate_table()
    except RATE_LOOKUP_ERRORS:
        logger.exception("Exchange rates unavailable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Exchange rates are temporarily unavailable",
        )
    return RateTable(**table)


@router.get("/convert", response_model=ConversionResult)
async def convert(
    amount: Decimal = Query(..., ge=0, examples=[100]),
    source: str = Query(..., min_length=3, max_length=3, examples=["EUR"]),
    target: str = Query(..., min_length=3, max_length=3, examples=["XAF"]),
    redis=Depends(get_redis),
):
    """Convert *amount*; unknown rates return the amount unchanged."""
    source = source.upper()
    target = target.upper()
    svc = CurrencyService(redis)
    converted = await svc.convert(amount, source, target)
    return ConversionResult(
        amount=amount,
        source=source,
        target=target,
        converted=converted,
        formatted=svc.format_amount(converted, target),
    )
