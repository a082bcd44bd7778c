"""
Pydantic schemas for currencies, the rate table and conversions.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class CurrencyRead(BaseModel):
    code: str
    name: str
    symbol: str
    decimals: int

    model_config = {"from_attributes": True}


class RateTable(BaseModel):
    """Rates per one unit of ``base``."""
    base: str
    rates: dict[str, Decimal]
    timestamp: datetime
    source: str


class ConversionResult(BaseModel):
    amount: Decimal
    source: str
    target: str
    converted: Decimal
    formatted: str
