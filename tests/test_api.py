"""Endpoint tests: proposals, user profiles and settings, matching, health."""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.models.proposal import ProposalStatus
from app.models.transport_request import RequestStatus
from app.models.user import ProfileVisibility, UserSettings


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def traveler(make_user):
    return make_user(first_name="Jean", last_name="Mbarga")


@pytest.fixture
def client_user(make_user):
    return make_user(first_name="Claire", last_name="Martin", settings={"currency": "XAF"})


@pytest.fixture
def deal(make_itinerary, make_request, make_proposal, traveler, client_user):
    """(itinerary, request, pending proposal) between traveler and client."""
    itinerary = make_itinerary(traveler)
    request = make_request(client_user)
    proposal = make_proposal(itinerary, request, price_per_kilo=Decimal("10"))
    return itinerary, request, proposal


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


class TestCreateProposalEndpoint:

    @pytest.mark.asyncio
    async def test_create_returns_converted_view(
        self, client, register, auth_headers_for, make_itinerary, make_request,
        traveler, client_user,
    ):
        itinerary = make_itinerary(traveler)
        request = make_request(client_user, currency="EUR")
        register(client_user, itinerary, request)

        resp = await client.post(
            f"/api/v1/proposals/itineraries/{itinerary.id}",
            json={"request_id": str(request.id), "price_per_kilo": 10, "commission": 5},
            headers=auth_headers_for(client_user),
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "pending"
        assert data["currency"] == "EUR"
        assert data["viewer_currency"] == "XAF"
        assert Decimal(data["converted"]["price_per_kilo"]) == Decimal("6559.57")
        assert data["converted"]["price_per_kilo_formatted"] == "6 560 FCFA"

    @pytest.mark.asyncio
    async def test_rate_cache_outage_keeps_original_amounts(
        self, client, mock_db, mock_redis, register, auth_headers_for, make_itinerary, make_request,
        traveler, client_user,
    ):
        itinerary = make_itinerary(traveler)
        request = make_request(client_user, currency="EUR")
        register(client_user, itinerary, request)
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("down"))

        resp = await client.post(
            f"/api/v1/proposals/itineraries/{itinerary.id}",
            json={"request_id": str(request.id), "price_per_kilo": 10, "commission": 5},
            headers=auth_headers_for(client_user),
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "pending"
        assert data["converted"]["currency"] == "XAF"
        assert Decimal(data["converted"]["price_per_kilo"]) == Decimal("10")
        mock_db.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_own_itinerary_is_400(
        self, client, register, auth_headers_for, make_itinerary, make_request, client_user,
    ):
        itinerary = make_itinerary(client_user)
        request = make_request(client_user)
        register(client_user, itinerary, request)

        resp = await client.post(
            f"/api/v1/proposals/itineraries/{itinerary.id}",
            json={"request_id": str(request.id), "price_per_kilo": 10, "commission": 5},
            headers=auth_headers_for(client_user),
        )

        assert resp.status_code == 400
        assert resp.json() == {"detail": "You cannot make a proposal on your own itinerary"}

    @pytest.mark.asyncio
    async def test_unknown_itinerary_is_404(
        self, client, register, auth_headers_for, client_user,
    ):
        register(client_user)
        resp = await client.post(
            f"/api/v1/proposals/itineraries/{uuid.uuid4()}",
            json={"request_id": str(uuid.uuid4()), "price_per_kilo": 10, "commission": 5},
            headers=auth_headers_for(client_user),
        )
        assert resp.status_code == 404


class TestRespondEndpoint:

    @pytest.mark.parametrize("action", ["accept", "accepter", "ACCEPT"])
    @pytest.mark.asyncio
    async def test_accept_aliases(
        self, client, register, auth_headers_for, deal, traveler, action,
    ):
        itinerary, request, proposal = deal
        register(traveler, itinerary, request, proposal)

        resp = await client.patch(
            f"/api/v1/proposals/{proposal.id}/respond",
            json={"action": action},
            headers=auth_headers_for(traveler),
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "accepted"
        assert data["responded_at"] is not None
        assert data["converted"] is None
        assert request.status == RequestStatus.TRAVELER_FOUND
        assert itinerary.available_weight == Decimal("6")

    @pytest.mark.asyncio
    async def test_reject_with_legacy_value(
        self, client, register, auth_headers_for, deal, traveler,
    ):
        itinerary, request, proposal = deal
        register(traveler, itinerary, request, proposal)

        resp = await client.patch(
            f"/api/v1/proposals/{proposal.id}/respond",
            json={"action": "refuser", "reject_message": "Complet"},
            headers=auth_headers_for(traveler),
        )

        assert resp.status_code == 200
        assert resp.json()["status"] == "rejected"
        assert resp.json()["reject_message"] == "Complet"
        assert request.status == RequestStatus.SEARCHING

    @pytest.mark.parametrize("action", ["maybe", "", None, 1])
    @pytest.mark.asyncio
    async def test_unknown_action_is_422(
        self, client, register, auth_headers_for, deal, traveler, action,
    ):
        itinerary, request, proposal = deal
        register(traveler, itinerary, request, proposal)

        resp = await client.patch(
            f"/api/v1/proposals/{proposal.id}/respond",
            json={"action": action},
            headers=auth_headers_for(traveler),
        )

        assert resp.status_code == 422
        assert proposal.status == ProposalStatus.PENDING

    @pytest.mark.asyncio
    async def test_client_cannot_respond(
        self, client, register, auth_headers_for, deal, client_user,
    ):
        itinerary, request, proposal = deal
        register(client_user, itinerary, request, proposal)

        resp = await client.patch(
            f"/api/v1/proposals/{proposal.id}/respond",
            json={"action": "accept"},
            headers=auth_headers_for(client_user),
        )

        assert resp.status_code == 400
        assert proposal.status == ProposalStatus.PENDING

    @pytest.mark.asyncio
    async def test_participant_read_is_converted_for_client(
        self, client, register, auth_headers_for, deal, client_user,
    ):
        itinerary, request, proposal = deal
        register(client_user, proposal)

        resp = await client.get(
            f"/api/v1/proposals/{proposal.id}", headers=auth_headers_for(client_user),
        )

        assert resp.status_code == 200
        assert resp.json()["converted"]["currency"] == "XAF"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestProfileEndpoint:

    @pytest.mark.asyncio
    async def test_default_profile_masks_contacts(self, client, register, make_user):
        owner = make_user()
        register(owner)

        resp = await client.get(f"/api/v1/users/{owner.id}")

        assert resp.status_code == 200
        data = resp.json()
        assert data["first_name"] == "Awa"
        assert data["email"] is None
        assert data["phone"] is None
        assert data["created_at"] is not None
        assert data["can_message"] is False

    @pytest.mark.asyncio
    async def test_revealed_contacts_and_messaging(
        self, client, register, auth_headers_for, make_user,
    ):
        owner = make_user(settings={"show_phone": True, "show_email": True, "show_stats": False})
        viewer = make_user()
        register(owner, viewer)

        resp = await client.get(f"/api/v1/users/{owner.id}", headers=auth_headers_for(viewer))

        data = resp.json()
        assert data["email"] == owner.email
        assert data["phone"] == owner.phone
        assert data["created_at"] is None
        assert data["can_message"] is True

    @pytest.mark.asyncio
    async def test_private_profile_is_404(self, client, register, auth_headers_for, make_user):
        owner = make_user(settings={"profile_visibility": ProfileVisibility.PRIVATE})
        viewer = make_user()
        register(owner, viewer)

        resp = await client.get(f"/api/v1/users/{owner.id}", headers=auth_headers_for(viewer))
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_banned_user_is_404(self, client, register, make_user):
        owner = make_user(is_banned=True)
        register(owner)

        resp = await client.get(f"/api/v1/users/{owner.id}")
        assert resp.status_code == 404


class TestSettingsEndpoint:

    @pytest.mark.asyncio
    async def test_defaults_without_row(self, client, register, auth_headers_for, make_user):
        user = make_user()
        register(user)

        resp = await client.get("/api/v1/users/me/settings", headers=auth_headers_for(user))

        assert resp.status_code == 200
        data = resp.json()
        assert data["show_phone"] is False
        assert data["show_in_search_results"] is True
        assert data["profile_visibility"] == "public"

    @pytest.mark.asyncio
    async def test_first_update_creates_row(
        self, client, mock_db, register, auth_headers_for, make_user,
    ):
        user = make_user()
        register(user)

        resp = await client.patch(
            "/api/v1/users/me/settings",
            json={"show_email": True, "currency": "XOF", "message_permission": "no_one"},
            headers=auth_headers_for(user),
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["show_email"] is True
        assert data["show_phone"] is False
        assert data["currency"] == "XOF"
        assert data["message_permission"] == "no_one"

        [row] = [c.args[0] for c in mock_db.add.call_args_list]
        assert isinstance(row, UserSettings)
        assert row.user_id == user.id

    @pytest.mark.asyncio
    async def test_invalid_currency_is_422(self, client, register, auth_headers_for, make_user):
        user = make_user()
        register(user)

        resp = await client.patch(
            "/api/v1/users/me/settings", json={"currency": "xof"}, headers=auth_headers_for(user),
        )
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Matching & health
# ---------------------------------------------------------------------------


class TestMatchingEndpoint:

    @pytest.mark.asyncio
    async def test_owner_only(self, client, register, auth_headers_for, make_user, make_request):
        caller = make_user()
        request = make_request(make_user())
        register(caller, request)

        resp = await client.get(
            f"/api/v1/matching/requests/{request.id}/itineraries",
            headers=auth_headers_for(caller),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_ranked_itineraries(
        self, client, mock_db, register, auth_headers_for, make_user, make_request, make_itinerary,
    ):
        owner = make_user()
        request = make_request(owner)
        trip = make_itinerary(make_user())
        register(owner, request)
        mock_db.execute.return_value.scalars.return_value.all.return_value = [trip]

        resp = await client.get(
            f"/api/v1/matching/requests/{request.id}/itineraries",
            headers=auth_headers_for(owner),
        )

        assert resp.status_code == 200
        [match] = resp.json()
        assert match["score"] == 100
        assert match["itinerary"]["id"] == str(trip.id)


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["service"] == "ColisLink"
