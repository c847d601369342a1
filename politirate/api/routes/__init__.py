"""Top level API router registration."""
from fastapi import APIRouter, Depends, FastAPI

from politirate.api.maintenance import require_site_available
from politirate.api.routes import admin, auth, health, leaders, notifications, polls, support, users


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application.

    Public routers sit behind the maintenance gate; admin, auth and health
    routes stay reachable while the site is down.
    """
    api_router = APIRouter(prefix="/api")
    gated = [Depends(require_site_available)]

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(admin.router, tags=["admin"])
    api_router.include_router(leaders.router, tags=["leaders"], dependencies=gated)
    api_router.include_router(polls.router, tags=["polls"], dependencies=gated)
    api_router.include_router(support.router, tags=["support"], dependencies=gated)
    api_router.include_router(notifications.router, tags=["notifications"], dependencies=gated)
    api_router.include_router(users.router, tags=["profile"], dependencies=gated)

    application.include_router(api_router)


__all__ = ["register_routes"]
