"""Tests for the Celery expiry and exchange-rate tasks."""

from contextlib import asynccontextmanager
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.models.itinerary import ItineraryStatus
from app.models.transport_request import RequestStatus
from app.tasks import expiry_tasks, rate_tasks
from app.tasks.celery_app import celery_app

TODAY = date(2026, 10, 19)


def _session_with_batches(*batches):
    """Fake async_session() whose successive execute() calls return *batches*."""
    session = AsyncMock()
    results = []
    for batch in batches:
        result = MagicMock()
        result.scalars.return_value.all.return_value = list(batch)
        results.append(result)
    session.execute = AsyncMock(side_effect=results)
    session.commit = AsyncMock()

    @asynccontextmanager
    async def factory():
        yield session

    return factory, session


class TestExpireItineraries:

    @pytest.mark.asyncio
    async def test_departed_itineraries_finish(self, make_user, make_itinerary):
        owner = make_user()
        rows = [
            make_itinerary(owner, departure_date=TODAY - timedelta(days=1)),
            make_itinerary(owner, departure_date=TODAY - timedelta(days=3)),
        ]
        factory, session = _session_with_batches(rows)

        with patch("app.database.async_session", factory):
            result = await expiry_tasks._expire_itineraries_async(TODAY)

        assert result["finished_count"] == 2
        assert result["today"] == "2026-10-19"
        assert all(r.status == ItineraryStatus.FINISHED for r in rows)
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_batches_until_short_page(self, make_user, make_itinerary, monkeypatch):
        monkeypatch.setattr(expiry_tasks.settings, "EXPIRY_BATCH_SIZE", 2)
        owner = make_user()
        past = TODAY - timedelta(days=1)
        first = [make_itinerary(owner, departure_date=past) for _ in range(2)]
        second = [make_itinerary(owner, departure_date=past)]
        factory, session = _session_with_batches(first, second)

        with patch("app.database.async_session", factory):
            result = await expiry_tasks._expire_itineraries_async(TODAY)

        assert result["finished_count"] == 3
        assert session.execute.await_count == 2
        assert session.commit.await_count == 2

    @pytest.mark.asyncio
    async def test_query_skips_locked_rows(self):
        factory, session = _session_with_batches([])

        with patch("app.database.async_session", factory):
            await expiry_tasks._expire_itineraries_async(TODAY)

        stmt = session.execute.await_args.args[0]
        assert stmt._for_update_arg.skip_locked is True
        assert "itineraries.departure_date <" in str(stmt)


class TestExpireRequests:

    @pytest.mark.asyncio
    async def test_past_deadline_expires(self, make_user, make_request):
        rows = [make_request(make_user(), deadline=TODAY - timedelta(days=2))]
        factory, session = _session_with_batches(rows)

        with patch("app.database.async_session", factory):
            result = await expiry_tasks._expire_requests_async(TODAY)

        assert result["expired_count"] == 1
        assert result["expired_ids"] == [str(rows[0].id)]
        assert rows[0].status == RequestStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_requests_without_deadline_are_excluded(self):
        factory, session = _session_with_batches([])

        with patch("app.database.async_session", factory):
            result = await expiry_tasks._expire_requests_async(TODAY)

        assert result["expired_count"] == 0
        assert "transport_requests.deadline IS NOT NULL" in str(session.execute.await_args.args[0])


class TestTaskWrappers:
    def test_sync_task_runs_coroutine(self):
        expected = {"finished_count": 0, "finished_ids": [], "today": TODAY.isoformat()}
        with patch.object(expiry_tasks, "_expire_itineraries_async", AsyncMock(return_value=expected)):
            assert expiry_tasks.expire_itineraries() == expected

    def test_failures_are_reraised(self):
        with patch.object(
            expiry_tasks, "_expire_requests_async", AsyncMock(side_effect=RuntimeError("db down")),
        ):
            with pytest.raises(RuntimeError, match="db down"):
                expiry_tasks.expire_requests()

    def test_beat_schedule(self):
        schedule = celery_app.conf.beat_schedule
        assert schedule["expire-itineraries"]["task"] == "app.tasks.expiry_tasks.expire_itineraries"
        assert schedule["expire-requests"]["task"] == "app.tasks.expiry_tasks.expire_requests"
        assert schedule["refresh-exchange-rates"]["task"] == "app.tasks.rate_tasks.refresh_exchange_rates"


class TestRefreshRates:

    @pytest.mark.asyncio
    async def test_refresh_uses_private_client(self, mock_redis):
        with patch.object(rate_tasks, "new_client", return_value=mock_redis):
            result = await rate_tasks._refresh_exchange_rates_async()

        assert result["base"] == "EUR"
        assert result["source"] == "mock"
        assert result["count"] > 2
        mock_redis.delete.assert_awaited_once_with("fx_rates:EUR")
        mock_redis.aclose.assert_awaited_once()

    def test_private_client_has_its_own_pool(self):
        from app import redis_client

        client = redis_client.new_client()
        assert client is not redis_client.redis
        assert client.connection_pool is not redis_client.redis.connection_pool
