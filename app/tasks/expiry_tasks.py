"""
Expiry Celery tasks: close listings whose date has passed.

* itineraries still ACTIVE with a departure date before today -> FINISHED
* requests still SEARCHING with a deadline before today       -> EXPIRED

Rows are processed in batches of ``EXPIRY_BATCH_SIZE``, one commit per
batch, locking with ``SKIP LOCKED`` so a concurrent accept or cancel on
the same row is never blocked.
"""

import asyncio
import logging
from datetime import date, datetime, timezone

from sqlalchemy import select

from app.config import settings
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


async def _expire_itineraries_async(today: date | None = None) -> dict:
    """
    Async inner function that finishes departed itineraries.

    Uses async_session() directly (not FastAPI deps, Celery runs
    outside the request lifecycle).
    """
    from app.database import async_session
    from app.models.itinerary import Itinerary, ItineraryStatus

    today = today or _today()
    finished: list[str] = []

    async with async_session() as session:
        while True:
            result = await session.execute(
                select(Itinerary)
                .where(
                    Itinerary.status == ItineraryStatus.ACTIVE,
                    Itinerary.departure_date < today,
                )
                .order_by(Itinerary.departure_date.asc())
                .limit(settings.EXPIRY_BATCH_SIZE)
                .with_for_update(skip_locked=True)
            )
            batch = list(result.scalars().all())

            for itinerary in batch:
                itinerary.transition_to(ItineraryStatus.FINISHED)
                finished.append(str(itinerary.id))
            await session.commit()

            if len(batch) < settings.EXPIRY_BATCH_SIZE:
                break

    return {"finished_count": len(finished), "finished_ids": finished, "today": today.isoformat()}


async def _expire_requests_async(today: date | None = None) -> dict:
    """Async inner function that expires requests past their deadline."""
    from app.database import async_session
    from app.models.transport_request import RequestStatus, TransportRequest

    today = today or _today()
    expired: list[str] = []

    async with async_session() as session:
        while True:
            result = await session.execute(
                select(TransportRequest)
                .where(
                    TransportRequest.status == RequestStatus.SEARCHING,
                    TransportRequest.deadline.is_not(None),
                    TransportRequest.deadline < today,
                )
                .order_by(TransportRequest.deadline.asc())
                .limit(settings.EXPIRY_BATCH_SIZE)
                .with_for_update(skip_locked=True)
            )
            batch = list(result.scalars().all())

            for request in batch:
                request.transition_to(RequestStatus.EXPIRED)
                expired.append(str(request.id))
            await session.commit()

            if len(batch) < settings.EXPIRY_BATCH_SIZE:
                break

    return {"expired_count": len(expired), "expired_ids": expired, "today": today.isoformat()}


def _run(coro):
    # Celery tasks are synchronous; run the coroutine on a private loop
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(name="app.tasks.expiry_tasks.expire_itineraries")
def expire_itineraries():
    """Mark ACTIVE itineraries whose departure date has passed as FINISHED."""
    logger.info("Starting itinerary expiry")
    try:
        result = _run(_expire_itineraries_async())
    except Exception:
        logger.exception("Itinerary expiry failed")
        raise
    logger.info("Itinerary expiry completed: %d finished", result["finished_count"])
    return result


@celery_app.task(name="app.tasks.expiry_tasks.expire_requests")
def expire_requests():
    """Mark SEARCHING requests whose deadline has passed as EXPIRED."""
    logger.info("Starting request expiry")
    try:
        result = _run(_expire_requests_async())
    except Exception:
        logger.exception("Request expiry failed")
        raise
    logger.info("Request expiry completed: %d expired", result["expired_count"])
    return result
