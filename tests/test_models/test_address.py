"""Tests for the Address model: formats and the six-month change cooldown."""

import uuid
from datetime import datetime, timezone

import pytest

from app.models.address import Address, add_months

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def address():
    return Address(user_id=uuid.uuid4(), country="Cameroun", city="Douala", district="Akwa")


class TestAddMonths:
    @pytest.mark.parametrize("start, months, expected", [
        (datetime(2026, 1, 15), 6, datetime(2026, 7, 15)),
        (datetime(2026, 9, 10), 6, datetime(2027, 3, 10)),
        (datetime(2026, 8, 31), 6, datetime(2027, 2, 28)),
        (datetime(2027, 8, 31), 6, datetime(2028, 2, 29)),
        (datetime(2026, 12, 1), 1, datetime(2027, 1, 1)),
    ])
    def test_calendar_months(self, start, months, expected):
        assert add_months(start, months) == expected


class TestAddressCreation:
    def test_defaults(self, address):
        assert address.id is not None
        assert address.created_at is not None
        assert address.last_modified_at is None

    def test_address_type(self, address):
        assert address.address_type == "district"

        postal = Address(
            user_id=uuid.uuid4(), country="France", city="Lyon",
            address_line1="12 rue Royale", postal_code="69001",
        )
        assert postal.address_type == "postal"

        incomplete = Address(user_id=uuid.uuid4(), country="France", city="Lyon", address_line1="x")
        assert incomplete.address_type is None


class TestModificationCooldown:
    def test_never_modified_can_change(self, address):
        assert address.can_be_modified(NOW)
        assert address.next_modification_date() is None
        assert address.days_until_modification(NOW) == 0

    def test_exactly_six_months_later(self, address):
        address.last_modified_at = datetime(2026, 4, 19, 12, 0, tzinfo=timezone.utc)
        assert address.can_be_modified(NOW)

    def test_one_day_short(self, address):
        address.last_modified_at = datetime(2026, 4, 20, 12, 0, tzinfo=timezone.utc)
        assert not address.can_be_modified(NOW)
        assert address.days_until_modification(NOW) == 1

    def test_days_remaining(self, address):
        address.last_modified_at = datetime(2026, 9, 19, 12, 0, tzinfo=timezone.utc)
        assert address.next_modification_date() == datetime(2027, 3, 19, 12, 0, tzinfo=timezone.utc)
        assert address.days_until_modification(NOW) == 151

    def test_mark_as_modified_starts_cooldown(self, address):
        address.mark_as_modified(NOW)
        assert address.last_modified_at == NOW
        assert not address.can_be_modified(NOW)
