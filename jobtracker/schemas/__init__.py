"""Pydantic schemas for records, forms and views."""

from jobtracker.schemas.application import (
    Application,
    ApplicationForm,
    ApplicationStatus,
    StatusUpdate,
)
from jobtracker.schemas.auth import LoginRequest, PasswordChange, User

__all__ = [
    "Application",
    "ApplicationForm",
    "ApplicationStatus",
    "LoginRequest",
    "PasswordChange",
    "StatusUpdate",
    "User",
]
