"""Account/profile panel: profile details, name and password changes."""

import logging

from fastapi import APIRouter, Depends

from jobtracker.core.exceptions import (
    AppwriteError,
    backend_exception,
    error_message,
    not_found_exception,
)
from jobtracker.routers.guards import require_auth
from jobtracker.schemas.auth import NameUpdate, PasswordChange
from jobtracker.schemas.views import MessageResponse, ProfileView
from jobtracker.services.auth_service import AuthService
from jobtracker.services.auth_state import AuthState
from jobtracker.services.dependencies import get_auth_service, get_notifier
from jobtracker.services.notifications import Notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["account"])


@router.get("", response_model=ProfileView)
async def profile(auth_state: AuthState = Depends(require_auth)):
    """Profile of the signed-in account."""
    if auth_state.user is None:
        raise not_found_exception("User profile not available")
    return ProfileView.from_user(auth_state.user)


@router.patch("/name", response_model=ProfileView)
async def update_name(
    update: NameUpdate,
    auth_state: AuthState = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        user = await auth_service.update_name(update.name)
    except AppwriteError as e:
        message = error_message(e)
        notifier.error(message)
        raise backend_exception(e, message) from e

    await auth_state.refresh_user()
    notifier.success("Name updated successfully")
    return ProfileView.from_user(auth_state.user or user)


@router.post("/password", response_model=MessageResponse)
async def change_password(
    change: PasswordChange,
    _: AuthState = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service),
    notifier: Notifier = Depends(get_notifier),
):
    """Change the account password; the current password is verified remotely."""
    try:
        await auth_service.update_password(
            change.new_password, change.current_password
        )
    except AppwriteError as e:
        message = error_message(e)
        notifier.error(message)
        raise backend_exception(e, message) from e

    logger.info("Account password changed")
    notifier.success("Password changed successfully")
    return MessageResponse(message="Password changed successfully")
