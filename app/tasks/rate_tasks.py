"""
Exchange-rate Celery task: refresh the cached daily rate table.
"""

import asyncio
import logging

from app.redis_client import new_client
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _refresh_exchange_rates_async() -> dict:
    from app.services.currency_service import CurrencyService

    # Private client: the shared one is bound to the API server's event loop
    client = new_client()
    try:
        table = await CurrencyService(client).refresh_rates()
    finally:
        await client.aclose()
    return {
        "base": table["base"],
        "count": len(table["rates"]),
        "source": table["source"],
        "timestamp": table["timestamp"],
    }


@celery_app.task(name="app.tasks.rate_tasks.refresh_exchange_rates")
def refresh_exchange_rates():
    """Drop the cached rate table and fetch a fresh one from the provider."""
    loop = asyncio.new_event_loop()
    try:
        result = loop.run_until_complete(_refresh_exchange_rates_async())
    except Exception:
        logger.exception("Exchange rate refresh failed")
        raise
    finally:
        loop.close()
    logger.info("Exchange rates refreshed: %d rates from %s", result["count"], result["source"])
    return result
