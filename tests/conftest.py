"""
Shared test fixtures for ColisLink.

Provides async test client, database session mocks, Redis mocks,
model factories and RSA key fixtures for JWT testing.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient

from app.core import security
from app.database import get_db
from app.models.itinerary import Itinerary
from app.models.proposal import Proposal
from app.models.transport_request import TransportRequest
from app.models.user import User, UserSettings
from app.redis_client import get_redis
from app.services.currency_service import MockRateProvider, set_rate_provider


# --- RSA Key Fixtures ---


@pytest.fixture(scope="session")
def test_rsa_keys():
    """Generate a temporary RSA keypair for test JWT signing."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    return {"private_key": private_pem, "public_key": public_pem}


@pytest.fixture(autouse=True)
def security_with_keys(test_rsa_keys):
    """Configure the security module to use test RSA keys for every test."""
    security.configure_keys(
        private_key=test_rsa_keys["private_key"],
        public_key=test_rsa_keys["public_key"],
        algorithm="RS256",
    )


@pytest.fixture(autouse=True)
def mock_rates():
    """Deterministic exchange rates; never call the live API from tests."""
    set_rate_provider(MockRateProvider())
    yield
    set_rate_provider(None)


# --- Mock Redis ---


@pytest.fixture
def mock_redis():
    """AsyncMock Redis client with common methods."""
    redis = AsyncMock()
    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock()
    return redis


# --- Model factories ---


def _make_user(**overrides) -> User:
    """Create a User with test defaults via the normal constructor."""
    settings_data = overrides.pop("settings", None)
    defaults = {
        "email": f"user-{uuid.uuid4().hex[:8]}@example.com",
        "phone": "+33612345678",
        "first_name": "Awa",
        "last_name": "Diop",
        "email_verified": True,
        "phone_verified": True,
    }
    defaults.update(overrides)
    user = User(**defaults)
    if settings_data is not None:
        UserSettings(user=user, user_id=user.id, **settings_data)
    return user


def _make_itinerary(owner: User, **overrides) -> Itinerary:
    """Active Paris -> Dakar trip departing in ten days."""
    departure = overrides.pop("departure_date", date.today() + timedelta(days=10))
    defaults = {
        "owner_id": owner.id,
        "departure_city": "Paris",
        "arrival_city": "Dakar",
        "departure_date": departure,
        "arrival_date": departure + timedelta(days=1),
        "available_weight": Decimal("10"),
        "price_per_kilo": Decimal("8"),
        "currency": "EUR",
    }
    defaults.update(overrides)
    itinerary = Itinerary(**defaults)
    itinerary.owner = owner
    return itinerary


def _make_request(owner: User, **overrides) -> TransportRequest:
    """Searching Paris -> Dakar request for 4kg."""
    defaults = {
        "owner_id": owner.id,
        "departure_city": "Paris",
        "arrival_city": "Dakar",
        "deadline": date.today() + timedelta(days=12),
        "estimated_weight": Decimal("4"),
        "currency": "EUR",
    }
    defaults.update(overrides)
    request = TransportRequest(**defaults)
    request.owner = owner
    return request


def _make_proposal(itinerary: Itinerary, request: TransportRequest, **overrides) -> Proposal:
    """Pending proposal linking *request* to *itinerary*."""
    defaults = {
        "itinerary_id": itinerary.id,
        "request_id": request.id,
        "client_id": request.owner_id,
        "traveler_id": itinerary.owner_id,
        "price_per_kilo": Decimal("8"),
        "commission": Decimal("5"),
        "currency": request.currency,
    }
    defaults.update(overrides)
    proposal = Proposal(**defaults)
    proposal.itinerary = itinerary
    proposal.request = request
    proposal.client = request.owner
    proposal.traveler = itinerary.owner
    return proposal


@pytest.fixture
def make_user():
    """Factory fixture for creating User instances."""
    return _make_user


@pytest.fixture
def make_itinerary():
    return _make_itinerary


@pytest.fixture
def make_request():
    return _make_request


@pytest.fixture
def make_proposal():
    return _make_proposal


# --- Mock Database Session ---


class _Savepoint:
    """Stand-in for ``AsyncSession.begin_nested()``; exceptions propagate."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


def _register_rows(db, *rows) -> None:
    """Make ``db.get(Model, id)`` return the matching row from *rows*."""
    index = {(type(row), row.id): row for row in rows}

    async def _get(model, ident, **kwargs):
        return index.get((model, ident))

    db.get = AsyncMock(side_effect=_get)


@pytest.fixture
def mock_db():
    """AsyncMock database session."""
    db = AsyncMock()

    # Mock the result object returned by db.execute()
    mock_result = MagicMock()
    mock_result.scalar_one_or_none = MagicMock(return_value=None)
    mock_result.scalars.return_value.all.return_value = []
    db.execute = AsyncMock(return_value=mock_result)
    db.get = AsyncMock(return_value=None)
    db.flush = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.begin_nested = MagicMock(side_effect=lambda: _Savepoint())

    return db


@pytest.fixture
def register(mock_db):
    """Factory: make mock_db.get() resolve the given rows by (model, id)."""
    return lambda *rows: _register_rows(mock_db, *rows)


# --- Dependency Override Helpers ---


@pytest_asyncio.fixture
async def client(mock_db, mock_redis):
    """
    Async HTTP test client with get_db and get_redis overridden
    to use test doubles.
    """
    from app.main import app

    async def override_get_db():
        yield mock_db

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _auth_headers(user: User) -> dict:
    token = security.create_access_token(str(user.id), user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_for():
    """Factory returning a JWT Authorization header for a user."""
    return _auth_headers
