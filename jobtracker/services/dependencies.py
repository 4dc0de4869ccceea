"""Application state container and FastAPI dependencies."""

from dataclasses import dataclass

from fastapi import Request

from jobtracker.core.config import settings
from jobtracker.core.redis_client import AuthSnapshotStore, BrowserSessionStore
from jobtracker.services.application_service import ApplicationService
from jobtracker.services.application_store import ApplicationStore
from jobtracker.services.appwrite import AccountClient, AppwriteClient, DatabaseClient
from jobtracker.services.auth_service import AuthService
from jobtracker.services.auth_state import AuthState
from jobtracker.services.connectivity import ConnectivityMonitor
from jobtracker.services.notifications import Notifier
from jobtracker.services.query_cache import QueryClient


@dataclass
class AppState:
    """Everything a request needs, built once per process."""

    auth_service: AuthService
    auth_state: AuthState
    query_client: QueryClient
    application_service: ApplicationService
    notifier: Notifier
    connectivity: ConnectivityMonitor
    sessions: BrowserSessionStore
    appwrite: AppwriteClient | None = None

    async def close(self) -> None:
        await self.connectivity.stop()
        await self.auth_state.close()
        if self.appwrite is not None:
            await self.appwrite.close()


def build_app_state() -> AppState:
    """Wire the Appwrite clients, caches and services from settings."""
    appwrite = AppwriteClient()
    auth_service = AuthService(AccountClient(appwrite))
    query_client = QueryClient()
    notifier = Notifier()
    return AppState(
        auth_service=auth_service,
        auth_state=AuthState(auth_service, AuthSnapshotStore()),
        query_client=query_client,
        application_service=ApplicationService(
            ApplicationStore(DatabaseClient(appwrite)), query_client
        ),
        notifier=notifier,
        connectivity=ConnectivityMonitor(
            notifier, appwrite.ping, settings.connectivity_probe_interval_seconds
        ),
        sessions=BrowserSessionStore(),
        appwrite=appwrite,
    )


def get_app_state(request: Request) -> AppState:
    return request.app.state.tracker


def get_auth_state(request: Request) -> AuthState:
    return get_app_state(request).auth_state


def get_application_service(request: Request) -> ApplicationService:
    return get_app_state(request).application_service


def get_auth_service(request: Request) -> AuthService:
    return get_app_state(request).auth_service


def get_notifier(request: Request) -> Notifier:
    return get_app_state(request).notifier


def get_sessions(request: Request) -> BrowserSessionStore:
    return get_app_state(request).sessions


def get_connectivity(request: Request) -> ConnectivityMonitor:
    return get_app_state(request).connectivity
