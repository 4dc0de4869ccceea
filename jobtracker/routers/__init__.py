"""API routers."""

from jobtracker.routers.account import router as account_router
from jobtracker.routers.applications import router as applications_router
from jobtracker.routers.auth import router as auth_router
from jobtracker.routers.notifications import router as notifications_router

__all__ = [
    "account_router",
    "applications_router",
    "auth_router",
    "notifications_router",
]
