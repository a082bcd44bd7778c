"""
Currency helper: daily exchange-rate table, conversion and formatting.

Rates are expressed per one unit of the base currency (EUR) and cached in
Redis for a day.  Conversion is presentation-only: stored prices are never
rewritten, callers only add a converted view next to them.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Protocol

import httpx
from redis.exceptions import RedisError

from app.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

RATE_CACHE_KEY_PREFIX = "fx_rates:"

CENT = Decimal("0.01")

# Provider, cache or corrupt-table failures while loading rates
RATE_LOOKUP_ERRORS = (httpx.HTTPError, RedisError, RuntimeError, ValueError, KeyError, ArithmeticError)


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    name: str
    symbol: str
    decimals: int = 2


KNOWN_CURRENCIES: dict[str, CurrencyInfo] = {
    c.code: c
    for c in (
        CurrencyInfo("EUR", "Euro", "€"),
        CurrencyInfo("XAF", "Franc CFA (CEMAC)", "FCFA", 0),
        CurrencyInfo("XOF", "Franc CFA (UEMOA)", "FCFA", 0),
        CurrencyInfo("USD", "US Dollar", "$"),
        CurrencyInfo("CAD", "Canadian Dollar", "CA$"),
        CurrencyInfo("GBP", "Pound Sterling", "£"),
        CurrencyInfo("CHF", "Swiss Franc", "CHF"),
        CurrencyInfo("MAD", "Moroccan Dirham", "MAD"),
        CurrencyInfo("NGN", "Naira", "₦"),
        CurrencyInfo("GHS", "Ghana Cedi", "GH₵"),
        CurrencyInfo("KES", "Kenyan Shilling", "KSh"),
        CurrencyInfo("ZAR", "Rand", "R"),
    )
}

# Mock rates per 1 EUR (deterministic for dev/testing).  Both CFA francs
# are pegged to the euro.
MOCK_RATES_PER_EUR: dict[str, Decimal] = {
    "EUR": Decimal("1"),
    "XAF": Decimal("655.957"),
    "XOF": Decimal("655.957"),
    "USD": Decimal("1.08"),
    "CAD": Decimal("1.47"),
    "GBP": Decimal("0.85"),
    "CHF": Decimal("0.95"),
    "MAD": Decimal("10.90"),
    "NGN": Decimal("1650.00"),
    "GHS": Decimal("16.20"),
    "KES": Decimal("140.00"),
    "ZAR": Decimal("20.10"),
}


# ---------------------------------------------------------------------------
# Rate provider protocol
# ---------------------------------------------------------------------------


class RateProvider(Protocol):
    async def fetch_rates(self, base: str) -> dict[str, Decimal]:
        """Fetch {CODE: rate} per 1 unit of *base*."""
        ...


class MockRateProvider:
    """Deterministic rates for dev/testing."""

    async def fetch_rates(self, base: str) -> dict[str, Decimal]:
        if base not in MOCK_RATES_PER_EUR:
            raise RuntimeError(f"Mock rates unavailable for base {base}")
        pivot = MOCK_RATES_PER_EUR[base]
        return {code: rate / pivot for code, rate in MOCK_RATES_PER_EUR.items()}


class ExchangeRateAPIProvider:
    """Fetch live rates from exchangerate-api.com (keyed v6 endpoint)."""

    API_URL = "https://v6.exchangerate-api.com/v6/{key}/latest/{base}"

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def fetch_rates(self, base: str) -> dict[str, Decimal]:
        url = self.API_URL.format(key=self.api_key, base=base)
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            data = resp.json()

        if data.get("result") != "success":
            raise RuntimeError(f"Rate API error: {data.get('error-type', 'unknown')}")

        return {
            code: Decimal(str(rate))
            for code, rate in data["conversion_rates"].items()
        }


# Module-level provider override (for tests)
_provider: RateProvider | None = None


def get_rate_provider() -> RateProvider:
    """Return the configured rate provider."""
    if _provider is not None:
        return _provider
    if settings.FX_RATE_MOCK:
        return MockRateProvider()
    return ExchangeRateAPIProvider(settings.FX_RATE_API_KEY)


def set_rate_provider(provider: RateProvider | None) -> None:
    """Override the rate provider (for testing)."""
    global _provider
    _provider = provider


# ---------------------------------------------------------------------------
# CurrencyService
# ---------------------------------------------------------------------------


class CurrencyService:
    """Exchange-rate table with a Redis cache, conversion and formatting."""

    def __init__(self, redis, base: str | None = None):
        self.redis = redis
        self.base = (base or settings.FX_BASE_CURRENCY).upper()

    @property
    def cache_key(self) -> str:
        return f"{RATE_CACHE_KEY_PREFIX}{self.base}"

    # --- Rate table ---

    async def get_rate_table(self) -> dict:
        """
        Cached rate table as stored in Redis.

        Shape: ``{"base", "rates": {CODE: "rate"}, "timestamp", "source"}``
        with rates as strings for JSON serialization.
        """
        cached = await self.redis.get(self.cache_key)
        if cached is not None:
            return json.loads(cached)

        provider = get_rate_provider()
        raw = await provider.fetch_rates(self.base)
        raw[self.base] = Decimal("1")

        table = {
            "base": self.base,
            "rates": {code: str(rate) for code, rate in raw.items()},
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": "mock" if isinstance(provider, MockRateProvider) else "exchangerate-api",
        }

        await self.redis.setex(
            self.cache_key,
            settings.FX_RATE_CACHE_TTL_SECONDS,
            json.dumps(table),
        )
        logger.info("Exchange rates refreshed: base=%s count=%d", self.base, len(raw))
        return table

    async def get_rates(self) -> dict[str, Decimal]:
        """Rates per one unit of the base currency."""
        table = await self.get_rate_table()
        return {code: Decimal(rate) for code, rate in table["rates"].items()}

    async def refresh_rates(self) -> dict:
        """Drop the cached table and fetch a fresh one."""
        await self.redis.delete(self.cache_key)
        return await self.get_rate_table()

    # --- Conversion ---

    async def convert(self, amount: Decimal, from_code: str, to_code: str) -> Decimal:
        """
        Convert *amount* via the base currency, rounded half-up to cents.

        Same code returns *amount* unchanged.  When either rate is unknown,
        or the rates cannot be loaded, the original amount is returned.
        """
        from_code = from_code.upper()
        to_code = to_code.upper()
        if from_code == to_code:
            return amount

        try:
            rates = await self.get_rates()
        except RATE_LOOKUP_ERRORS:
            logger.exception("Exchange rates unavailable, %s -> %s not converted", from_code, to_code)
            return amount

        from_rate = rates.get(from_code)
        to_rate = rates.get(to_code)
        if not from_rate or to_rate is None:
            logger.error("Exchange rate not found: from=%s to=%s", from_code, to_code)
            return amount

        converted = Decimal(amount) / from_rate * to_rate
        return converted.quantize(CENT, rounding=ROUND_HALF_UP)

    # --- Formatting & lookup ---

    @staticmethod
    def format_amount(amount: Decimal, code: str) -> str:
        """
        Human-readable amount, French style: ``1 234,50 €``, ``65 596 FCFA``.

        Unknown codes fall back to two decimals followed by the code.
        """
        code = code.upper()
        info = KNOWN_CURRENCIES.get(code)
        decimals = info.decimals if info else 2
        suffix = info.symbol if info else code

        quantum = Decimal(1).scaleb(-decimals)
        value = Decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)
        text = f"{value:,.{decimals}f}".translate(str.maketrans({",": " ", ".": ","}))
        return f"{text} {suffix}"

    @staticmethod
    def is_supported(code: str) -> bool:
        return code.upper() in KNOWN_CURRENCIES

    @staticmethod
    def list_currencies() -> list[CurrencyInfo]:
        return list(KNOWN_CURRENCIES.values())
