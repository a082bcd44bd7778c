"""
ColisLink: FastAPI application entry point.

Configures the app, middleware, domain-error handlers and registers all
API routers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import currencies, itineraries, matching, notifications, proposals, requests, users
from app.config import settings
from app.core.exceptions import register_exception_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    from app.database import engine
    from app.redis_client import close_redis

    yield

    # Shutdown: close connections
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    description="Peer-to-peer baggage courier marketplace connecting travelers and senders.",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Domain errors -> HTTP ---
register_exception_handlers(app)

# --- Routers ---
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(itineraries.router, prefix="/api/v1/itineraries", tags=["Itineraries"])
app.include_router(requests.router, prefix="/api/v1/requests", tags=["Requests"])
app.include_router(proposals.router, prefix="/api/v1/proposals", tags=["Proposals"])
app.include_router(matching.router, prefix="/api/v1/matching", tags=["Matching"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])
app.include_router(currencies.router, prefix="/api/v1/currencies", tags=["Currencies"])


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": "0.1.0",
    }
