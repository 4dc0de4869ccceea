"""Application services."""

from jobtracker.services.application_service import ApplicationService
from jobtracker.services.auth_state import AuthState
from jobtracker.services.query_cache import QueryClient

__all__ = ["ApplicationService", "AuthState", "QueryClient"]
