"""
Development data seeder: users, settings, itineraries and requests.

Usage:
    python scripts/seed_data.py

Creates:
  - 6 users (travelers and senders), two with privacy settings
  - 5 itineraries between Europe and West / Central Africa
  - 5 transport requests, some matching the itineraries

Idempotent: users are looked up by email, and listings are only created
for users that were just inserted.  Prints an access token per user so
the API can be called straight away.
"""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select

from app.core.security import create_access_token
from app.database import async_session
from app.models import (
    Itinerary,
    MessagePermission,
    ProfileVisibility,
    TransportRequest,
    User,
    UserSettings,
)

# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

SAMPLE_USERS: list[dict] = [
    {
        "email": "awa.diop@example.com",
        "phone": "+221771234501",
        "first_name": "Awa",
        "last_name": "Diop",
        "email_verified": True,
        "phone_verified": True,
    },
    {
        "email": "jean.mbarga@example.com",
        "phone": "+237677123402",
        "first_name": "Jean",
        "last_name": "Mbarga",
        "email_verified": True,
        "phone_verified": True,
        "settings": {"currency": "XAF", "show_phone": True},
    },
    {
        "email": "claire.martin@example.com",
        "phone": "+33612345603",
        "first_name": "Claire",
        "last_name": "Martin",
        "email_verified": True,
        "phone_verified": False,
        "settings": {"currency": "EUR"},
    },
    {
        "email": "moussa.traore@example.com",
        "phone": "+22376123404",
        "first_name": "Moussa",
        "last_name": "Traore",
        "email_verified": False,
        "phone_verified": False,
    },
    {
        "email": "fatou.ndiaye@example.com",
        "phone": "+221781234505",
        "first_name": "Fatou",
        "last_name": "Ndiaye",
        "email_verified": True,
        "phone_verified": True,
        "settings": {
            "currency": "XOF",
            "profile_visibility": ProfileVisibility.VERIFIED_ONLY,
            "message_permission": MessagePermission.VERIFIED_ONLY,
        },
    },
    {
        "email": "paul.essomba@example.com",
        "phone": "+237699123406",
        "first_name": "Paul",
        "last_name": "Essomba",
        "email_verified": True,
        "phone_verified": True,
        "settings": {"show_in_search_results": False},
    },
]

# (owner index, departure, arrival, days from today, trip days, kg, price/kg, currency)
SAMPLE_ITINERARIES = [
    (0, "Paris", "Dakar", 10, 1, "23", "8", "EUR"),
    (1, "Paris", "Douala", 5, 1, "30", "5000", "XAF"),
    (1, "Bruxelles", "Yaoundé", 25, 2, "15", "4500", "XAF"),
    (2, "Lyon", "Abidjan", 40, 1, "10", "9", "EUR"),
    (5, "Paris", "Douala", 12, 1, "20", "6", "EUR"),
]

# (owner index, departure, arrival, deadline in days or None, kg, currency)
SAMPLE_REQUESTS = [
    (2, "Paris", "Dakar", 12, "4", "EUR"),
    (3, "Paris", "Douala", None, "6", "EUR"),
    (4, "Paris", "Dakar", 30, "2.5", "XOF"),
    (3, "Lyon", "Abidjan", 45, "8", "EUR"),
    (0, "Paris", "Douala", 20, "12", "EUR"),
]


async def seed() -> None:
    """Insert sample data into the database. Safe to run multiple times."""
    today = date.today()

    async with async_session() as session:
        existing = {
            u.email: u
            for u in (await session.execute(select(User))).scalars().all()
        }

        users: list[User] = []
        created: set[int] = set()
        for index, data in enumerate(SAMPLE_USERS):
            data = dict(data)
            settings_data = data.pop("settings", None)

            user = existing.get(data["email"])
            if user is None:
                user = User(**data)
                session.add(user)
                if settings_data is not None:
                    session.add(UserSettings(user=user, **settings_data))
                created.add(index)
            users.append(user)

        await session.flush()
        print(f"  Users: {len(created)} new, {len(users) - len(created)} existing")

        itineraries = 0
        for owner, dep, arr, offset, trip, kg, price, currency in SAMPLE_ITINERARIES:
            if owner not in created:
                continue
            start = today + timedelta(days=offset)
            session.add(Itinerary(
                owner_id=users[owner].id,
                departure_city=dep,
                arrival_city=arr,
                departure_date=start,
                arrival_date=start + timedelta(days=trip),
                available_weight=Decimal(kg),
                price_per_kilo=Decimal(price),
                currency=currency,
            ))
            itineraries += 1

        requests = 0
        for owner, dep, arr, deadline, kg, currency in SAMPLE_REQUESTS:
            if owner not in created:
                continue
            session.add(TransportRequest(
                owner_id=users[owner].id,
                departure_city=dep,
                arrival_city=arr,
                deadline=today + timedelta(days=deadline) if deadline is not None else None,
                estimated_weight=Decimal(kg),
                currency=currency,
            ))
            requests += 1

        await session.commit()
        print(f"  Itineraries: {itineraries} new")
        print(f"  Requests: {requests} new")

        _print_tokens(users)


def _print_tokens(users: list[User]) -> None:
    """Print a bearer token per seeded user."""
    print("\n  Seed complete! Access tokens:")
    for user in users:
        token = create_access_token(str(user.id), user.email)
        print(f"  {user.email:<30} {token}")


if __name__ == "__main__":
    print("Seeding ColisLink development data...")
    asyncio.run(seed())
