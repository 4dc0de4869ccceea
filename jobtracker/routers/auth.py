"""Authentication views: login, logout and auth status."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Request, Response

from jobtracker.core.config import settings
from jobtracker.core.exceptions import (
    AppwriteError,
    AuthenticationError,
    error_message,
    unauthorized_exception,
)
from jobtracker.core.redis_client import BrowserSessionStore
from jobtracker.routers.guards import (
    LOGIN_PATH,
    is_signed_in,
    public_only,
    safe_next,
)
from jobtracker.schemas.auth import AuthStatus, LoginRequest
from jobtracker.schemas.views import LoginView, MessageResponse
from jobtracker.services.auth_state import AuthState
from jobtracker.services.dependencies import get_auth_state, get_notifier, get_sessions
from jobtracker.services.notifications import Notifier

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials. Please try again."

router = APIRouter(tags=["auth"])


@router.get("/", response_model=LoginView)
async def login_view(
    next: str | None = None,
    _: AuthState = Depends(public_only),
):
    """Login view; authenticated users are redirected to the list."""
    return LoginView(next=safe_next(next), year=date.today().year)


@router.post("/auth/login", response_model=MessageResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    next: str | None = None,
    auth_state: AuthState = Depends(public_only),
    sessions: BrowserSessionStore = Depends(get_sessions),
    notifier: Notifier = Depends(get_notifier),
):
    """Sign in with the pre-provisioned account."""
    try:
        await auth_state.login(credentials.email, credentials.password)
    except AppwriteError as e:
        message = error_message(e)
        notifier.error(message)
        raise unauthorized_exception(message) from e
    except AuthenticationError as e:
        notifier.error(INVALID_CREDENTIALS)
        raise unauthorized_exception(INVALID_CREDENTIALS) from e

    token = await sessions.issue(auth_state.user_id)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )
    return MessageResponse(message="Logged in successfully", redirect=safe_next(next))


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    auth_state: AuthState = Depends(get_auth_state),
    sessions: BrowserSessionStore = Depends(get_sessions),
    notifier: Notifier = Depends(get_notifier),
):
    """Sign out. Local auth state is cleared even if the backend is unreachable.

    Callers without a live session cookie only lose the cookie; the account
    session is left alone.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if await sessions.is_valid(token):
        await sessions.revoke(token)
        await auth_state.logout()
        notifier.success("Logged out successfully")
    response.delete_cookie(settings.session_cookie_name)
    return MessageResponse(message="Logged out successfully", redirect=LOGIN_PATH)


@router.get("/auth/status", response_model=AuthStatus)
async def auth_status(
    request: Request,
    auth_state: AuthState = Depends(get_auth_state),
    sessions: BrowserSessionStore = Depends(get_sessions),
):
    """Check the caller's authentication status."""
    if await is_signed_in(request, auth_state, sessions):
        return auth_state.status()
    return auth_state.status().model_copy(
        update={"authenticated": False, "user": None}
    )
