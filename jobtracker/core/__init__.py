"""Core application components."""

from jobtracker.core.config import settings
from jobtracker.core.exceptions import (
    AppwriteError,
    AuthenticationError,
    RedirectRequired,
    TrackerError,
)

__all__ = [
    "AppwriteError",
    "AuthenticationError",
    "RedirectRequired",
    "TrackerError",
    "settings",
]
