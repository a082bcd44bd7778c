"""
Integration test fixtures: real PostgreSQL.

Requires a PostgreSQL test database, e.g.:
  docker run -d -p 5433:5432 -e POSTGRES_USER=colislink_test \
      -e POSTGRES_PASSWORD=colislink_test -e POSTGRES_DB=colislink_test postgres:16

Override the target with TEST_DATABASE_URL.
"""

import os
import socket

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base


# ── Service availability check ─────────────────────────────────────────────

def _port_open(host: str, port: int, timeout: float = 1.0) -> bool:
    """Return True if a TCP connection to host:port succeeds."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


_PG_HOST = os.environ.get("PGHOST", "localhost")
_PG_PORT = int(os.environ.get("PGPORT", "5433"))
PG_UP = _port_open(_PG_HOST, _PG_PORT)

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    f"postgresql+asyncpg://colislink_test:colislink_test@{_PG_HOST}:{_PG_PORT}/colislink_test",
)


# ── Real async engine + sessions ───────────────────────────────────────────

@pytest_asyncio.fixture
async def db_engine():
    """Fresh schema per test; dropped afterwards."""
    if not PG_UP:
        pytest.skip("PostgreSQL not available")
    # Import all models so Base.metadata knows about them
    import app.models  # noqa: F401

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """
    Independent sessions, each on its own connection, so concurrent
    service calls really contend for row locks.
    """
    return async_sessionmaker(db_engine, expire_on_commit=False)
