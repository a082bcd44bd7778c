"""Tests for itinerary and transport-request services and endpoints."""

import uuid
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.exceptions import ForbiddenActionError, NotFoundError, RejectedError
from app.models.itinerary import Itinerary, ItineraryStatus
from app.models.proposal import ProposalStatus
from app.models.transport_request import RequestStatus, TransportRequest
from app.schemas.itinerary import ItineraryCreate
from app.schemas.transport_request import RequestCreate
from app.services.events import ItineraryCancelled, RequestCancelled
from app.services.itinerary_service import ItineraryService
from app.services.request_service import RequestService


@pytest.fixture
def notifications():
    svc = AsyncMock()
    svc.dispatch = AsyncMock(return_value=0)
    svc.notify_matching_requests = AsyncMock(return_value=0)
    svc.notify_matching_itineraries = AsyncMock(return_value=0)
    return svc


def _execute_returns(mock_db, rows=()):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(rows)
    mock_db.execute = AsyncMock(return_value=result)


def _dispatched(notifications) -> list:
    return list(notifications.dispatch.call_args.args[0])


# ---------------------------------------------------------------------------
# Itineraries
# ---------------------------------------------------------------------------


class TestItineraryService:

    @pytest.mark.asyncio
    async def test_create_commits_then_alerts(self, mock_db, notifications, make_user):
        owner = make_user()
        payload = ItineraryCreate(
            departure_city="Paris", arrival_city="Douala",
            departure_date=date(2026, 11, 2), arrival_date=date(2026, 11, 3),
            available_weight=Decimal("23"), currency="XAF",
        )

        itinerary = await ItineraryService(mock_db, notifications).create(payload, owner)

        assert isinstance(itinerary, Itinerary)
        assert itinerary.owner_id == owner.id
        assert itinerary.status == ItineraryStatus.ACTIVE
        assert itinerary.currency == "XAF"
        mock_db.add.assert_called_once_with(itinerary)
        mock_db.commit.assert_awaited_once()
        notifications.notify_matching_requests.assert_awaited_once_with(itinerary)

    @pytest.mark.asyncio
    async def test_hidden_itinerary_is_not_found(
        self, mock_db, register, make_user, make_itinerary,
    ):
        owner = make_user(settings={"show_in_search_results": False})
        itinerary = make_itinerary(owner)
        register(itinerary)
        service = ItineraryService(mock_db)

        with pytest.raises(NotFoundError):
            await service.get_visible(itinerary.id, make_user())
        assert await service.get_visible(itinerary.id, owner) is itinerary

    @pytest.mark.asyncio
    async def test_list_active_filters_visibility(self, mock_db, make_user, make_itinerary):
        public = make_itinerary(make_user())
        verified_only = make_itinerary(make_user(settings={"profile_visibility": "verified_only"}))
        _execute_returns(mock_db, [public, verified_only])

        rows = await ItineraryService(mock_db).list_active(None, departure_city="Par")

        assert rows == [public]

    @pytest.mark.asyncio
    async def test_cancel_withdraws_pending_proposals(
        self, mock_db, notifications, register, make_user, make_itinerary, make_request, make_proposal,
    ):
        owner = make_user()
        itinerary = make_itinerary(owner)
        pending = make_proposal(itinerary, make_request(make_user()))
        register(itinerary)
        _execute_returns(mock_db, [pending])

        result = await ItineraryService(mock_db, notifications).cancel(itinerary.id, owner)

        assert result.status == ItineraryStatus.CANCELLED
        assert pending.status == ProposalStatus.CANCELLED
        mock_db.commit.assert_awaited_once()
        assert _dispatched(notifications) == [ItineraryCancelled(itinerary, pending)]

    @pytest.mark.asyncio
    async def test_cancel_requires_owner(self, mock_db, register, make_user, make_itinerary):
        itinerary = make_itinerary(make_user())
        register(itinerary)
        with pytest.raises(ForbiddenActionError):
            await ItineraryService(mock_db).cancel(itinerary.id, make_user())

    @pytest.mark.asyncio
    async def test_finished_itinerary_cannot_be_cancelled(
        self, mock_db, register, make_user, make_itinerary,
    ):
        owner = make_user()
        itinerary = make_itinerary(owner, status=ItineraryStatus.FINISHED)
        register(itinerary)
        with pytest.raises(RejectedError):
            await ItineraryService(mock_db).cancel(itinerary.id, owner)
        mock_db.commit.assert_not_awaited()


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequestService:

    @pytest.mark.asyncio
    async def test_create_commits_then_alerts(self, mock_db, notifications, make_user):
        owner = make_user()
        payload = RequestCreate(
            departure_city="Paris", arrival_city="Dakar", estimated_weight=Decimal("4"),
        )

        request = await RequestService(mock_db, notifications).create(payload, owner)

        assert isinstance(request, TransportRequest)
        assert request.status == RequestStatus.SEARCHING
        assert request.deadline is None
        mock_db.commit.assert_awaited_once()
        notifications.notify_matching_itineraries.assert_awaited_once_with(request)

    @pytest.mark.asyncio
    async def test_cancel_withdraws_pending_proposals(
        self, mock_db, notifications, register, make_user, make_itinerary, make_request, make_proposal,
    ):
        owner = make_user()
        request = make_request(owner)
        first = make_proposal(make_itinerary(make_user()), request)
        second = make_proposal(make_itinerary(make_user()), request)
        register(request)
        _execute_returns(mock_db, [first, second])

        await RequestService(mock_db, notifications).cancel(request.id, owner)

        assert request.status == RequestStatus.CANCELLED
        assert first.status == second.status == ProposalStatus.CANCELLED
        assert _dispatched(notifications) == [
            RequestCancelled(request, first),
            RequestCancelled(request, second),
        ]

    @pytest.mark.asyncio
    async def test_only_searching_requests_can_be_cancelled(
        self, mock_db, register, make_user, make_request,
    ):
        owner = make_user()
        request = make_request(owner, status=RequestStatus.TRAVELER_FOUND)
        register(request)
        with pytest.raises(RejectedError):
            await RequestService(mock_db).cancel(request.id, owner)
        assert request.status == RequestStatus.TRAVELER_FOUND

    @pytest.mark.asyncio
    async def test_get_owned(self, mock_db, register, make_user, make_request):
        owner = make_user()
        request = make_request(owner)
        register(request)
        service = RequestService(mock_db)

        assert await service.get_owned(request.id, owner) is request
        with pytest.raises(ForbiddenActionError):
            await service.get_owned(request.id, make_user())
        with pytest.raises(NotFoundError):
            await service.get_owned(uuid.uuid4(), owner)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class TestListingEndpoints:

    @pytest.mark.asyncio
    async def test_publish_itinerary(self, client, mock_db, register, auth_headers_for, make_user):
        owner = make_user()
        register(owner)
        departure = date.today() + timedelta(days=5)

        resp = await client.post(
            "/api/v1/itineraries/",
            json={
                "departure_city": "Paris",
                "arrival_city": "Douala",
                "departure_date": departure.isoformat(),
                "arrival_date": (departure + timedelta(days=1)).isoformat(),
                "available_weight": 23,
                "price_per_kilo": 5000,
                "currency": "XAF",
            },
            headers=auth_headers_for(owner),
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "active"
        assert data["owner"]["id"] == str(owner.id)
        assert Decimal(data["available_weight"]) == Decimal("23")
        mock_db.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_arrival_before_departure_is_422(
        self, client, register, auth_headers_for, make_user,
    ):
        owner = make_user()
        register(owner)

        resp = await client.post(
            "/api/v1/itineraries/",
            json={
                "departure_city": "Paris",
                "arrival_city": "Douala",
                "departure_date": "2026-11-10",
                "arrival_date": "2026-11-09",
                "available_weight": 10,
            },
            headers=auth_headers_for(owner),
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_anonymous_can_read_public_itinerary(
        self, client, register, make_user, make_itinerary,
    ):
        itinerary = make_itinerary(make_user())
        register(itinerary)

        resp = await client.get(f"/api/v1/itineraries/{itinerary.id}")

        assert resp.status_code == 200
        assert resp.json()["departure_city"] == "Paris"

    @pytest.mark.asyncio
    async def test_cancel_foreign_request_is_400(
        self, client, register, auth_headers_for, make_user, make_request,
    ):
        caller = make_user()
        request = make_request(make_user())
        register(caller, request)

        resp = await client.post(
            f"/api/v1/requests/{request.id}/cancel", headers=auth_headers_for(caller),
        )

        assert resp.status_code == 400
        assert resp.json() == {"detail": "You are not the owner of this request"}
